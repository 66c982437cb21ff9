"""
Detected field record shared by every stage of the detection pipeline.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .data_types import DataType

_NON_ALNUM = re.compile(r'[^a-zA-Z0-9]+')

STREET_ADDRESS_FIELD = "streetAddress"


def to_camel_case(text: str) -> str:
    """
    Convert free text into a camelCase identifier.

    "first_name" -> "firstName", "Date of Birth" -> "dateOfBirth",
    "FirstName" -> "firstName". Returns "" when the text has no
    letters or digits.
    """
    words = [w for w in _NON_ALNUM.split(text or '') if w]
    if not words:
        return ''
    first = words[0][0].lower() + words[0][1:]
    return first + ''.join(w[0].upper() + w[1:] for w in words[1:])


@dataclass(frozen=True)
class Field:
    """
    A single detected logical form field.

    Frozen so pipeline stages build new lists instead of mutating
    entries they received.
    """
    field_name: str
    data_type: DataType
    label: Optional[str] = None

    def with_name(self, field_name: str) -> 'Field':
        """Return a copy with a different field name."""
        return Field(field_name=field_name, data_type=self.data_type, label=self.label)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire format shared with downstream generation."""
        data: Dict[str, Any] = {
            'fieldName': self.field_name,
            'dataType': self.data_type.value,
        }
        if self.label:
            data['label'] = self.label
        return data

    @classmethod
    def street_address(cls, label: Optional[str] = None) -> 'Field':
        """The canonical address field all address-like inputs collapse into."""
        return cls(STREET_ADDRESS_FIELD, DataType.STREET_ADDRESS, label or None)
