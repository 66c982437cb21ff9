"""
Heuristic Field Parser
======================

Infers candidate form fields from static markup without calling any
external service. Its output is the safety net of the detection pipeline:
when the inference service fails or returns nothing, these fields are the
result.

Detection passes:
1. Input-like elements (input, textarea, select) with their labels
2. Two-cell table rows (label text in the first cell, control in the second)
3. Checkbox-group safety net for "hobbies" style groups

Design Principles:
------------------
- Rules are ordered lists evaluated top-down; first match wins
- Hidden controls never produce a field
- Elements with nothing to name them by are skipped, never emitted with
  an empty name
- Address-like fields collapse into one canonical ``streetAddress`` field

Tradeoffs:
----------
1. Keyword matching is substring based:
   - "tel" also matches words such as "hotel"
   - Mitigation: the HTML type attribute is consulted first
2. Only static markup is inspected:
   - Controls rendered by client-side scripts are invisible here
   - Mitigation: the inference service sees the same markup and may
     recognise ARIA-role custom controls
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup, Tag

from .data_types import DataType
from .fields import Field, to_camel_case

logger = logging.getLogger(__name__)

CONTROL_SELECTOR = 'input, textarea, select'

# Input types that are never tester-visible data entry controls
SKIPPED_INPUT_TYPES = frozenset({'hidden', 'submit', 'reset', 'button', 'image'})

HOBBY_FIELD_PATTERN = re.compile(r'hobb', re.IGNORECASE)
HOBBY_MARKUP_PATTERN = re.compile(r'hobbies?', re.IGNORECASE)
ADDRESS_TOKEN = 'address'


@dataclass(frozen=True)
class HeuristicRule:
    """A keyword rule: any keyword contained in the text selects the data type."""
    keywords: Tuple[str, ...]
    data_type: DataType

    def matches(self, lower_text: str) -> bool:
        return any(keyword in lower_text for keyword in self.keywords)


# Ordered from most specific to least specific. Order is part of the
# contract: "email address" must hit EmailAddress before the generic
# address rule, "first name" must hit FirstName before FullName.
LABEL_RULES: Tuple[HeuristicRule, ...] = (
    HeuristicRule(('first name', 'firstname', 'given name'), DataType.FIRST_NAME),
    HeuristicRule(('last name', 'lastname', 'surname', 'family name'), DataType.LAST_NAME),
    HeuristicRule(('full name', 'fullname', 'name'), DataType.FULL_NAME),
    HeuristicRule(('email',), DataType.EMAIL_ADDRESS),
    HeuristicRule(('phone', 'mobile', 'tel'), DataType.PHONE_NUMBER),
    HeuristicRule(('company', 'organisation', 'organization', 'employer'), DataType.COMPANY_NAME),
    HeuristicRule(('job', 'occupation', 'position', 'title'), DataType.JOB_TITLE),
    HeuristicRule(('gender', 'sex'), DataType.GENDER),
    HeuristicRule(('hobby', 'hobbies', 'interest'), DataType.WORD),
    HeuristicRule(('photo', 'picture', 'image'), DataType.IMAGE_URL),
    HeuristicRule(('street', 'address line1', 'address line 1', 'addr'), DataType.STREET_ADDRESS),
    HeuristicRule(('city', 'town'), DataType.CITY),
    HeuristicRule(('state', 'province', 'region'), DataType.STATE_PROVINCE),
    HeuristicRule(('country',), DataType.COUNTRY),
    HeuristicRule(('address',), DataType.STREET_ADDRESS),
    HeuristicRule(('zip', 'postal', 'postcode'), DataType.ZIP_POSTAL_CODE),
    HeuristicRule(('dob', 'birth', 'birthday', 'date of birth'), DataType.DATE_OF_BIRTH),
)

BIRTH_RULE = LABEL_RULES[-1]


def infer_label_data_type(text: str) -> Optional[DataType]:
    """Run the label keyword table over text; None if no rule matches."""
    lower = (text or '').lower()
    for rule in LABEL_RULES:
        if rule.matches(lower):
            return rule.data_type
    return None


def _date_type(text: str) -> DataType:
    # A date picker labelled as a birth date is the more specific type
    if BIRTH_RULE.matches(text.lower()):
        return DataType.DATE_OF_BIRTH
    return DataType.DATE


# HTML type attribute -> outcome (given the label/name text), in precedence order
TYPE_RULES: Tuple[Tuple[str, Callable[[str], DataType]], ...] = (
    ('email', lambda text: DataType.EMAIL_ADDRESS),
    ('tel', lambda text: DataType.PHONE_NUMBER),
    ('phone', lambda text: DataType.PHONE_NUMBER),
    ('date', _date_type),
    ('datetime', lambda text: DataType.DATE_TIME),
    ('password', lambda text: DataType.PASSWORD),
    ('number', lambda text: DataType.RANDOM_NUMBER),
    ('file', lambda text: infer_label_data_type(text) or DataType.IMAGE_URL),
)


def _type_rule_matches(key: str, type_attr: str) -> bool:
    # "datetime-local" belongs to the datetime rule, not the date rule
    return type_attr == key or type_attr.startswith(key + '-')


def infer_data_type(label_or_name: str, type_attr: Optional[str] = None) -> DataType:
    """
    Classify a field from its label/name text and HTML type attribute.

    Precedence: type attribute rules, then the label keyword table,
    then the ``Word`` fallback.
    """
    if type_attr:
        lowered_type = type_attr.lower().strip()
        for key, outcome in TYPE_RULES:
            if _type_rule_matches(key, lowered_type):
                return outcome(label_or_name)

    return infer_label_data_type(label_or_name) or DataType.WORD


class HeuristicFieldParser:
    """Detects form fields from markup using deterministic rules."""

    def parse(self, markup: str) -> List[Field]:
        """
        Detect fields in the given markup.

        Args:
            markup: HTML text (raw or sanitized)

        Returns:
            Ordered, de-duplicated list of fields; empty if the markup
            cannot be parsed.
        """
        try:
            soup = BeautifulSoup(markup or '', 'html.parser')
        except Exception as e:
            logger.warning(f"Could not parse markup for heuristic detection: {e}")
            return []

        fields: List[Field] = []

        for element in soup.select(CONTROL_SELECTOR):
            if self._is_skipped_control(element):
                continue
            field = self._field_from_control(soup, element)
            if field is not None:
                self._append_unique(fields, field)

        for field in self._fields_from_table_rows(soup):
            self._append_unique(fields, field)

        if self._needs_hobbies_field(fields, markup or ''):
            fields.append(Field('hobbies', DataType.WORD, 'Hobbies'))

        logger.debug(f"Heuristic parser detected {len(fields)} field(s)")
        return fields

    def _field_from_control(self, soup: BeautifulSoup, element: Tag) -> Optional[Field]:
        """Build a field for a single input-like element."""
        tag = element.name.lower()
        type_attr = _attr(element, 'type').lower()
        element_id = _attr(element, 'id')
        placeholder = _attr(element, 'placeholder')
        aria_label = _attr(element, 'aria-label')

        explicit_label = self._explicit_label(soup, element_id)
        label_text = explicit_label
        if not label_text:
            label_text = self._enclosing_label(element)

        name_id = element_id
        if explicit_label and not _id_outranks_label(element_id, explicit_label):
            name_id = ''
        raw_name = _first_non_empty(
            _attr(element, 'name'), name_id, placeholder, aria_label, label_text
        )
        if not raw_name:
            return None

        label = label_text or placeholder or aria_label or None

        if tag == 'textarea' and ADDRESS_TOKEN in (placeholder + label_text + raw_name).lower():
            return Field.street_address(label)

        return self._resolve(raw_name, label_text or raw_name, type_attr, label)

    def _fields_from_table_rows(self, soup: BeautifulSoup) -> List[Field]:
        """Detect label/control pairs laid out as two-cell table rows."""
        fields = []
        for row in soup.find_all('tr'):
            cells = row.find_all('td')
            if len(cells) < 2:
                continue

            label_text = cells[0].get_text(' ', strip=True)
            control = cells[1].select_one(CONTROL_SELECTOR)
            if control is None or self._is_skipped_control(control):
                continue

            raw_name = _first_non_empty(_attr(control, 'name'), _attr(control, 'id'), label_text)
            if not raw_name:
                continue

            field = self._resolve(
                raw_name, label_text or raw_name, _attr(control, 'type').lower(), label_text or None
            )
            if field is not None:
                fields.append(field)
        return fields

    def _resolve(
        self,
        raw_name: str,
        classification_text: str,
        type_attr: str,
        label: Optional[str]
    ) -> Optional[Field]:
        """Turn a resolved name source into a field (or None if unnameable)."""
        if ADDRESS_TOKEN in raw_name.lower():
            return Field.street_address(label)

        field_name = to_camel_case(raw_name)
        if not field_name:
            return None

        return Field(field_name, infer_data_type(classification_text, type_attr), label)

    def _explicit_label(self, soup: BeautifulSoup, element_id: str) -> str:
        if not element_id:
            return ''
        label = soup.find('label', attrs={'for': element_id})
        return label.get_text(' ', strip=True) if label else ''

    def _enclosing_label(self, element: Tag) -> str:
        parent = element.find_parent('label')
        return parent.get_text(' ', strip=True) if parent else ''

    def _is_skipped_control(self, element: Tag) -> bool:
        return _attr(element, 'type').lower() in SKIPPED_INPUT_TYPES

    def _needs_hobbies_field(self, fields: Sequence[Field], markup: str) -> bool:
        # Checkbox groups repeat one name with no label per control, so the
        # element passes above tend to miss them
        if any(HOBBY_FIELD_PATTERN.search(f.field_name) for f in fields):
            return False
        return bool(HOBBY_MARKUP_PATTERN.search(markup))

    @staticmethod
    def _append_unique(fields: List[Field], field: Field) -> None:
        if not any(existing.field_name == field.field_name for existing in fields):
            fields.append(field)


def _attr(element: Tag, name: str) -> str:
    value = element.get(name)
    if isinstance(value, list):
        value = ' '.join(value)
    return (value or '').strip()


def _id_outranks_label(element_id: str, label_text: str) -> bool:
    """
    Whether a label-bound id names the control better than its label.

    Short wiring keys ("e", "fn") and numbered ids ("q1") lose to the
    label text; a descriptive id such as "firstName" beats "First".
    """
    if any(ch.isdigit() for ch in element_id):
        return False
    return len(to_camel_case(element_id)) > len(to_camel_case(label_text))


def _first_non_empty(*candidates: str) -> str:
    for candidate in candidates:
        if candidate:
            return candidate
    return ''


def parse_fields(markup: str) -> List[Field]:
    """Convenience wrapper around HeuristicFieldParser.parse."""
    return HeuristicFieldParser().parse(markup)
