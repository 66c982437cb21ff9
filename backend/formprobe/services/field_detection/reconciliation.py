"""
Reconciliation Engine
=====================

Merges the inference service's field list with the heuristic parser's
field list into one consistent result.

Stages (each a pure, order-preserving list transform):
1. UNION: inference fields first, then heuristic fields with unseen names
2. FALLBACK: no inference fields -> heuristic fields verbatim, no
   further stages
3. PRUNE: drop "picture" paragraphs once a street address is known
4. CANONICALIZE: address-like fields become ``streetAddress``
5. REFINE: generic placeholder names are replaced by the name refiner
6. DEDUPE: first occurrence of each name wins

The inference service is ADVISORY, not authoritative: its entries lead the
result, but the heuristic list fills every gap.
"""

import logging
import re
from typing import Iterable, List, Optional, Sequence

from .data_types import DataType
from .fields import Field, STREET_ADDRESS_FIELD, to_camel_case
from .name_refiner import NameRefiner, RefinementRequestItem

logger = logging.getLogger(__name__)

MISDETECTED_PICTURE_PATTERN = re.compile(r'picture', re.IGNORECASE)
ADDRESS_LIKE_PATTERN = re.compile(r'(current|street|postal|address)', re.IGNORECASE)
# Numeric-only names and similar are not refined
GENERIC_NAME_PATTERN = re.compile(r'^(field|input|text|textarea|select)[0-9_]*$', re.IGNORECASE)


def union_fields(ai_fields: Sequence[Field], heuristic_fields: Sequence[Field]) -> List[Field]:
    """Inference fields in order, then heuristic fields whose name is not taken."""
    if not ai_fields:
        return list(heuristic_fields)

    combined = list(ai_fields)
    seen = {f.field_name for f in combined}
    for field in heuristic_fields:
        if field.field_name not in seen:
            combined.append(field)
            seen.add(field.field_name)
    return combined


def prune_misdetections(fields: Sequence[Field]) -> List[Field]:
    """
    Drop paragraph fields named like "picture" when a street address exists.

    An "upload a picture of your ID" control tends to be read as a paragraph
    once the address block has been recognised.
    """
    if not any(f.field_name == STREET_ADDRESS_FIELD for f in fields):
        return list(fields)
    return [
        f for f in fields
        if not (f.data_type == DataType.PARAGRAPH and MISDETECTED_PICTURE_PATTERN.search(f.field_name))
    ]


def is_address_like(field: Field) -> bool:
    return bool(
        ADDRESS_LIKE_PATTERN.search(field.label or '')
        or ADDRESS_LIKE_PATTERN.search(field.field_name)
    )


def canonicalize_addresses(fields: Sequence[Field]) -> List[Field]:
    """
    Force every address-like field to ``streetAddress``/``StreetAddress``.

    Idempotent. May create duplicate names; de-duplication is a separate
    stage.
    """
    return [
        Field(STREET_ADDRESS_FIELD, DataType.STREET_ADDRESS, f.label) if is_address_like(f) else f
        for f in fields
    ]


def is_generic_name(field_name: str) -> bool:
    return bool(GENERIC_NAME_PATTERN.match(field_name))


def find_generic_fields(fields: Sequence[Field]) -> List[int]:
    """Indexes of fields whose names are placeholder names, in order."""
    return [i for i, f in enumerate(fields) if is_generic_name(f.field_name)]


def apply_refined_names(
    fields: Sequence[Field],
    generic_indexes: Sequence[int],
    refined_names: Sequence[str]
) -> List[Field]:
    """
    Substitute refined names positionally into the generic fields.

    The i-th generic field takes the i-th refined name. A field keeps its
    name when the refined list is too short or the refined name is empty.
    A refined name may equal the heuristic entry for the same control;
    the final de-duplication collapses the pair.
    """
    result = list(fields)

    for position, index in enumerate(generic_indexes):
        if position >= len(refined_names):
            break
        new_name = to_camel_case(refined_names[position] or '')
        if new_name:
            result[index] = result[index].with_name(new_name)

    return result


def dedupe_fields(fields: Iterable[Field]) -> List[Field]:
    """First occurrence of each field name wins."""
    seen = set()
    unique = []
    for field in fields:
        if field.field_name in seen:
            continue
        seen.add(field.field_name)
        unique.append(field)
    return unique


class Reconciler:
    """
    Runs the reconciliation stages with an optional name refiner.

    Without a refiner, generic names are left untouched.
    """

    def __init__(self, refiner: Optional[NameRefiner] = None):
        self.refiner = refiner

    def reconcile(
        self,
        ai_fields: Sequence[Field],
        heuristic_fields: Sequence[Field],
        source_url: Optional[str] = None
    ) -> List[Field]:
        """
        Merge both candidate lists into the final field list.

        Args:
            ai_fields: Fields from the inference service (may be empty)
            heuristic_fields: Fields from the heuristic parser
            source_url: Address the markup came from, passed to the refiner

        Returns:
            Ordered list of unique fields

        Raises:
            RefinementError: if the refiner is called and fails
        """
        if not ai_fields:
            return list(heuristic_fields)

        combined = union_fields(ai_fields, heuristic_fields)
        combined = prune_misdetections(combined)
        combined = canonicalize_addresses(combined)

        generic_indexes = find_generic_fields(combined)
        if generic_indexes and self.refiner is not None:
            logger.info(f"Refining {len(generic_indexes)} generic field name(s)")
            # The refiner sees the heuristic names/labels, which carry the
            # label text the inference names lack
            request = [
                RefinementRequestItem(original=h.field_name, label=h.label)
                for h in heuristic_fields
            ]
            refined = self.refiner.refine_names(request, source_url)
            combined = apply_refined_names(combined, generic_indexes, refined)

        return dedupe_fields(combined)


def reconcile(
    ai_fields: Sequence[Field],
    heuristic_fields: Sequence[Field],
    source_url: Optional[str] = None,
    refiner: Optional[NameRefiner] = None
) -> List[Field]:
    """Convenience wrapper around Reconciler.reconcile."""
    return Reconciler(refiner).reconcile(ai_fields, heuristic_fields, source_url)
