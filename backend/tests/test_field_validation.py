"""Tests for Lookup field relationship validation."""

import pytest

from entityforge.core.errors import DataConflictError
from entityforge.entities.validation import (
    RELATED_FIELD_ID_DEFINED_NAMES_SHOULD_BE_UNDEFINED_ERROR_MESSAGE,
    RELATED_FIELD_ID_UNDEFINED_AND_NAMES_UNDEFINED_ERROR_MESSAGE,
    RELATED_FIELD_NAMES_SHOULD_BE_UNDEFINED_ERROR_MESSAGE,
    validate_field_mutation_args,
)


def field_args(data_type, related_field_id=None, name=None, display_name=None):
    args = {"data": {"name": "customer", "dataType": data_type, "properties": {}}}
    if related_field_id is not None:
        args["data"]["properties"]["relatedFieldId"] = related_field_id
    if name is not None:
        args["relatedFieldName"] = name
    if display_name is not None:
        args["relatedFieldDisplayName"] = display_name
    return args


class TestLookupFields:
    def test_accepts_new_related_field_names(self):
        validate_field_mutation_args(
            field_args("Lookup", name="orders", display_name="Orders")
        )

    def test_accepts_existing_related_field(self):
        validate_field_mutation_args(field_args("Lookup", related_field_id="f9"))

    def test_rejects_no_relation(self):
        with pytest.raises(DataConflictError) as exc_info:
            validate_field_mutation_args(field_args("Lookup"))
        assert exc_info.value.message == RELATED_FIELD_ID_UNDEFINED_AND_NAMES_UNDEFINED_ERROR_MESSAGE

    @pytest.mark.parametrize(
        "name,display_name",
        [("orders", None), (None, "Orders"), ("orders", ""), ("", "")],
    )
    def test_rejects_incomplete_names(self, name, display_name):
        with pytest.raises(DataConflictError) as exc_info:
            validate_field_mutation_args(
                field_args("Lookup", name=name, display_name=display_name)
            )
        assert exc_info.value.message == RELATED_FIELD_ID_UNDEFINED_AND_NAMES_UNDEFINED_ERROR_MESSAGE

    def test_empty_related_field_id_counts_as_absent(self):
        with pytest.raises(DataConflictError) as exc_info:
            validate_field_mutation_args(field_args("Lookup", related_field_id=""))
        assert exc_info.value.message == RELATED_FIELD_ID_UNDEFINED_AND_NAMES_UNDEFINED_ERROR_MESSAGE

    @pytest.mark.parametrize(
        "name,display_name",
        [("orders", "Orders"), ("orders", None), (None, "Orders")],
    )
    def test_rejects_related_field_id_with_names(self, name, display_name):
        with pytest.raises(DataConflictError) as exc_info:
            validate_field_mutation_args(
                field_args("Lookup", related_field_id="f9", name=name, display_name=display_name)
            )
        assert exc_info.value.message == RELATED_FIELD_ID_DEFINED_NAMES_SHOULD_BE_UNDEFINED_ERROR_MESSAGE

    def test_missing_properties_treated_as_no_related_field_id(self):
        args = {"data": {"dataType": "Lookup"}, "relatedFieldName": "a", "relatedFieldDisplayName": "A"}
        validate_field_mutation_args(args)


class TestNonLookupFields:
    def test_accepts_plain_field(self):
        validate_field_mutation_args(field_args("SingleLineText"))

    def test_related_field_id_alone_is_ignored(self):
        validate_field_mutation_args(field_args("WholeNumber", related_field_id="f9"))

    @pytest.mark.parametrize(
        "related_field_id,name,display_name",
        [
            (None, "x", None),
            (None, None, "X"),
            (None, "x", "X"),
            ("f9", "x", "X"),
        ],
    )
    def test_rejects_related_field_names(self, related_field_id, name, display_name):
        with pytest.raises(DataConflictError) as exc_info:
            validate_field_mutation_args(
                field_args("Boolean", related_field_id, name, display_name)
            )
        assert exc_info.value.message == RELATED_FIELD_NAMES_SHOULD_BE_UNDEFINED_ERROR_MESSAGE

    def test_partial_update_without_data_type(self):
        validate_field_mutation_args({"data": {"displayName": "Renamed"}, "where": {"id": "f1"}})

    def test_partial_update_with_names_rejected(self):
        with pytest.raises(DataConflictError):
            validate_field_mutation_args(
                {"data": {"displayName": "Renamed"}, "relatedFieldName": "x"}
            )


class TestRepeatability:
    def test_rejection_is_identical_when_reissued(self):
        args = field_args("Lookup")
        messages = []
        for _ in range(2):
            with pytest.raises(DataConflictError) as exc_info:
                validate_field_mutation_args(args)
            messages.append(exc_info.value.message)
        assert messages[0] == messages[1]
