"""Tests for the reconciliation engine."""
import pytest

from formprobe.services.field_detection.data_types import DataType
from formprobe.services.field_detection.errors import RefinementError
from formprobe.services.field_detection.fields import Field
from formprobe.services.field_detection.name_refiner import RefinementRequestItem
from formprobe.services.field_detection.reconciliation import (
    apply_refined_names,
    canonicalize_addresses,
    dedupe_fields,
    find_generic_fields,
    is_generic_name,
    prune_misdetections,
    reconcile,
    union_fields,
)

FIRST = Field('firstName', DataType.FIRST_NAME, 'First Name')
EMAIL = Field('email', DataType.EMAIL_ADDRESS, 'Email')
PHONE = Field('phone', DataType.PHONE_NUMBER)
STREET = Field('streetAddress', DataType.STREET_ADDRESS, 'Street Address')


def names(fields):
    return [f.field_name for f in fields]


class TestUnion:

    def test_ai_fields_lead_then_unseen_heuristics(self):
        ai = [EMAIL, Field('firstName', DataType.FULL_NAME)]
        heuristic = [FIRST, PHONE, EMAIL]

        result = union_fields(ai, heuristic)

        assert names(result) == ['email', 'firstName', 'phone']
        # The AI entry wins for a shared name
        assert result[1].data_type == DataType.FULL_NAME

    def test_empty_ai_list_falls_back_to_heuristics(self):
        heuristic = [FIRST, EMAIL, PHONE]

        assert union_fields([], heuristic) == heuristic

    def test_fallback_completeness(self):
        heuristic = [PHONE, FIRST, EMAIL]

        assert reconcile([], heuristic) == heuristic

    def test_fallback_skips_address_canonicalization(self):
        heuristic = [STREET, Field('zip', DataType.ZIP_POSTAL_CODE, 'Postal Code'), Field('picture', DataType.PARAGRAPH)]

        assert reconcile([], heuristic) == heuristic


class TestPruning:

    def test_picture_paragraph_dropped_when_street_address_known(self):
        fields = [STREET, Field('pictureOfId', DataType.PARAGRAPH), Field('notes', DataType.PARAGRAPH)]

        assert names(prune_misdetections(fields)) == ['streetAddress', 'notes']

    def test_kept_without_street_address(self):
        fields = [Field('pictureOfId', DataType.PARAGRAPH), EMAIL]

        assert prune_misdetections(fields) == fields

    def test_only_paragraphs_are_pruned(self):
        fields = [STREET, Field('profilePicture', DataType.IMAGE_URL)]

        assert prune_misdetections(fields) == fields


class TestAddressCanonicalization:

    @pytest.mark.parametrize('field', [
        Field('currentResidence', DataType.WORD),
        Field('homeStreet', DataType.WORD),
        Field('postalCode', DataType.ZIP_POSTAL_CODE),
        Field('where', DataType.WORD, 'Mailing Address'),
    ])
    def test_address_like_fields_become_street_address(self, field):
        [result] = canonicalize_addresses([field])

        assert result.field_name == 'streetAddress'
        assert result.data_type == DataType.STREET_ADDRESS
        assert result.label == field.label

    def test_other_fields_untouched(self):
        fields = [FIRST, EMAIL, PHONE]

        assert canonicalize_addresses(fields) == fields

    def test_idempotent(self):
        fields = [FIRST, Field('addr1', DataType.WORD, 'Street'), Field('postal', DataType.WORD), EMAIL]

        once = canonicalize_addresses(fields)

        assert canonicalize_addresses(once) == once

    def test_may_create_duplicates(self):
        fields = [Field('street1', DataType.WORD), Field('street2', DataType.WORD)]

        assert names(canonicalize_addresses(fields)) == ['streetAddress', 'streetAddress']


class TestGenericNames:

    @pytest.mark.parametrize('name', ['field1', 'input_2', 'TEXT', 'select', 'textarea3', 'field_1_2'])
    def test_generic(self, name):
        assert is_generic_name(name)

    @pytest.mark.parametrize('name', ['fieldName', 'field1a', '12', 'inputs', 'myField1', 'email'])
    def test_not_generic(self, name):
        assert not is_generic_name(name)

    def test_find_generic_fields_returns_positions(self):
        fields = [EMAIL, Field('field1', DataType.WORD), PHONE, Field('input2', DataType.WORD)]

        assert find_generic_fields(fields) == [1, 3]


class TestApplyRefinedNames:

    def test_positional_substitution(self):
        fields = [Field('field1', DataType.WORD), EMAIL, Field('input2', DataType.AGE)]

        result = apply_refined_names(fields, [0, 2], ['favourite_color', 'Your Age'])

        assert names(result) == ['favouriteColor', 'email', 'yourAge']
        assert result[2].data_type == DataType.AGE

    def test_short_or_empty_output_keeps_names(self):
        fields = [Field('field1', DataType.WORD), Field('field2', DataType.WORD), Field('field3', DataType.WORD)]

        result = apply_refined_names(fields, [0, 1, 2], ['', 'nickname'])

        assert names(result) == ['field1', 'nickname', 'field3']


class TestReconcile:

    def test_refinement_replaces_generic_name(self, stubs):
        refiner = stubs.Refiner(names=['yourAge'])
        ai = [Field('field1', DataType.WORD)]
        heuristic = [Field('yourAge', DataType.AGE, 'Your Age')]

        result = reconcile(ai, heuristic, 'https://example.com/survey', refiner=refiner)

        assert result == [Field('yourAge', DataType.WORD)]
        [(request, url)] = refiner.calls
        assert request == [RefinementRequestItem(original='yourAge', label='Your Age')]
        assert url == 'https://example.com/survey'

    def test_refiner_not_called_without_generic_names(self, stubs):
        refiner = stubs.Refiner(names=['unused'])

        result = reconcile([EMAIL], [FIRST], refiner=refiner)

        assert names(result) == ['email', 'firstName']
        assert refiner.calls == []

    def test_generic_names_kept_without_refiner(self):
        result = reconcile([Field('input1', DataType.WORD)], [])

        assert names(result) == ['input1']

    def test_refinement_failure_propagates(self, stubs):
        refiner = stubs.Refiner(error=RefinementError("service down"))

        with pytest.raises(RefinementError):
            reconcile([Field('field1', DataType.WORD)], [EMAIL], refiner=refiner)

    def test_output_names_are_unique(self):
        ai = [Field('homeAddress', DataType.WORD), EMAIL, Field('street', DataType.WORD)]
        heuristic = [STREET, Field('pictureUpload', DataType.PARAGRAPH), EMAIL, PHONE]

        result = reconcile(ai, heuristic)

        assert names(result) == ['streetAddress', 'email', 'phone']
        assert result[0].data_type == DataType.STREET_ADDRESS

    def test_dedupe_keeps_first(self):
        fields = [Field('a', DataType.WORD), Field('a', DataType.AGE), Field('b', DataType.WORD)]

        assert dedupe_fields(fields) == [Field('a', DataType.WORD), Field('b', DataType.WORD)]
