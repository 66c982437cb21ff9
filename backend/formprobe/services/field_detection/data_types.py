"""
Field Data Type Vocabulary
==========================

Defines the canonical set of data types a detected form field can carry.
This vocabulary is CLOSED - no values outside this set are permitted.

The same vocabulary is shared with the external inference service (it is
listed verbatim in the inference prompt) and with downstream record
generation, so the three must be versioned together. Any value coming back
from an external service that is not part of the set is coerced to
``Word`` rather than accepted.

Categories:
- Personal Data, Contact Information, Address Data
- Network Data, Visual Data
- Business Data, Financial Data
- Text Data, Numeric Data, Date/Time
- Identifiers, Boolean Data
"""

import logging
from enum import Enum
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class DataType(str, Enum):
    """Canonical data types for detected form fields."""

    # === PERSONAL DATA ===
    FIRST_NAME = "FirstName"
    LAST_NAME = "LastName"
    FULL_NAME = "FullName"
    GENDER = "Gender"
    AGE = "Age"
    DATE_OF_BIRTH = "DateOfBirth"

    # === CONTACT INFORMATION ===
    EMAIL_ADDRESS = "EmailAddress"
    PHONE_NUMBER = "PhoneNumber"
    MOBILE_NUMBER = "MobileNumber"

    # === ADDRESS DATA ===
    STREET_ADDRESS = "StreetAddress"
    CITY = "City"
    STATE_PROVINCE = "State/Province"
    COUNTRY = "Country"
    ZIP_POSTAL_CODE = "ZIP/Postal Code"

    # === NETWORK DATA ===
    IPV4_ADDRESS = "IPv4Address"
    IPV6_ADDRESS = "IPv6Address"
    MAC_ADDRESS = "MACAddress"
    URL = "URL"
    DOMAIN_NAME = "DomainName"

    # === VISUAL DATA ===
    COLOR_HEX = "ColorHex"
    COLOR_NAME = "ColorName"
    IMAGE_URL = "ImageURL"

    # === BUSINESS DATA ===
    COMPANY_NAME = "CompanyName"
    JOB_TITLE = "JobTitle"
    DEPARTMENT = "Department"
    EMPLOYEE_ID = "EmployeeID"

    # === FINANCIAL DATA ===
    CREDIT_CARD_NUMBER = "CreditCardNumber"
    BANK_ACCOUNT_NUMBER = "BankAccountNumber"
    CURRENCY = "Currency"
    PRICE = "Price"

    # === TEXT DATA ===
    RANDOM_TEXT = "RandomText"
    LOREM_IPSUM = "LoremIpsum"
    SENTENCE = "Sentence"
    PARAGRAPH = "Paragraph"
    WORD = "Word"

    # === NUMERIC DATA ===
    RANDOM_NUMBER = "RandomNumber"
    INTEGER_RANGE = "IntegerRange"
    DECIMAL = "Decimal"
    PERCENTAGE = "Percentage"

    # === DATE/TIME ===
    DATE = "Date"
    TIME = "Time"
    DATE_TIME = "DateTime"
    TIMESTAMP = "Timestamp"
    UNIX_TIMESTAMP = "UnixTimestamp"

    # === IDENTIFIERS ===
    UUID = "UUID"
    GUID = "GUID"
    RANDOM_ID = "RandomID"
    USERNAME = "Username"
    PASSWORD = "Password"

    # === BOOLEAN DATA ===
    BOOLEAN = "Boolean"
    YES_NO = "YesNo"
    TRUE_FALSE = "TrueFalse"
    ACTIVE_INACTIVE = "ActiveInactive"


# Category -> member types, in display order
DATA_TYPE_GROUPS: Dict[str, List[DataType]] = {
    "Personal Data": [
        DataType.FIRST_NAME, DataType.LAST_NAME, DataType.FULL_NAME,
        DataType.GENDER, DataType.AGE, DataType.DATE_OF_BIRTH,
    ],
    "Contact Information": [
        DataType.EMAIL_ADDRESS, DataType.PHONE_NUMBER, DataType.MOBILE_NUMBER,
    ],
    "Address Data": [
        DataType.STREET_ADDRESS, DataType.CITY, DataType.STATE_PROVINCE,
        DataType.COUNTRY, DataType.ZIP_POSTAL_CODE,
    ],
    "Network Data": [
        DataType.IPV4_ADDRESS, DataType.IPV6_ADDRESS, DataType.MAC_ADDRESS,
        DataType.URL, DataType.DOMAIN_NAME,
    ],
    "Visual Data": [
        DataType.COLOR_HEX, DataType.COLOR_NAME, DataType.IMAGE_URL,
    ],
    "Business Data": [
        DataType.COMPANY_NAME, DataType.JOB_TITLE, DataType.DEPARTMENT,
        DataType.EMPLOYEE_ID,
    ],
    "Financial Data": [
        DataType.CREDIT_CARD_NUMBER, DataType.BANK_ACCOUNT_NUMBER,
        DataType.CURRENCY, DataType.PRICE,
    ],
    "Text Data": [
        DataType.RANDOM_TEXT, DataType.LOREM_IPSUM, DataType.SENTENCE,
        DataType.PARAGRAPH, DataType.WORD,
    ],
    "Numeric Data": [
        DataType.RANDOM_NUMBER, DataType.INTEGER_RANGE, DataType.DECIMAL,
        DataType.PERCENTAGE,
    ],
    "Date/Time": [
        DataType.DATE, DataType.TIME, DataType.DATE_TIME, DataType.TIMESTAMP,
        DataType.UNIX_TIMESTAMP,
    ],
    "Identifiers": [
        DataType.UUID, DataType.GUID, DataType.RANDOM_ID, DataType.USERNAME,
        DataType.PASSWORD,
    ],
    "Boolean Data": [
        DataType.BOOLEAN, DataType.YES_NO, DataType.TRUE_FALSE,
        DataType.ACTIVE_INACTIVE,
    ],
}


class DataTypeCatalog:
    """
    Lookup utilities over the closed data type vocabulary.

    Thread-safe: all data is immutable after initialization.
    """

    # Fallback used when nothing better is known
    DEFAULT = DataType.WORD

    def __init__(self):
        """Check that every data type belongs to a category."""
        grouped = {d for members in DATA_TYPE_GROUPS.values() for d in members}
        missing = [d for d in DataType if d not in grouped]
        if missing:
            raise ValueError(f"Data types without a category: {missing}")

    @property
    def values(self) -> List[str]:
        """Return all data type values as strings, in declaration order."""
        return [data_type.value for data_type in DataType]

    @property
    def groups(self) -> Dict[str, List[str]]:
        """Return category -> data type values."""
        return {
            category: [d.value for d in members]
            for category, members in DATA_TYPE_GROUPS.items()
        }

    def is_valid(self, value: str) -> bool:
        """Check if a string is a member of the vocabulary."""
        try:
            DataType(value)
            return True
        except ValueError:
            return False

    def coerce(self, value: Optional[str]) -> DataType:
        """
        Convert a raw value into a DataType.

        Unknown values are never accepted as-is; they fall back to
        ``Word`` with a warning.
        """
        if isinstance(value, DataType):
            return value
        if value and self.is_valid(value):
            return DataType(value)
        logger.warning(f"Unknown data type '{value}' replaced with '{self.DEFAULT.value}'")
        return self.DEFAULT


# Global singleton instance
CATALOG = DataTypeCatalog()
