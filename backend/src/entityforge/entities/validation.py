"""Lookup field relationship validation.

A Lookup field references a record of another entity and is paired with a
mirror field on that entity. A field mutation either references an
existing mirror field (``data.properties.relatedFieldId``) or asks for a
new one to be created (``relatedFieldName`` and ``relatedFieldDisplayName``),
never both. Non-Lookup fields carry neither.
"""

from typing import Any

from entityforge.core.errors import DataConflictError
from entityforge.core.types import EnumDataType

RELATED_FIELD_ID_DEFINED_NAMES_SHOULD_BE_UNDEFINED_ERROR_MESSAGE = (
    "When data.dataType is Lookup and data.properties.relatedFieldId is defined, "
    "relatedFieldName and relatedFieldDisplayName must be null"
)
RELATED_FIELD_ID_UNDEFINED_AND_NAMES_UNDEFINED_ERROR_MESSAGE = (
    "When data.dataType is Lookup, either data.properties.relatedFieldId must be "
    "defined or relatedFieldName and relatedFieldDisplayName must not be null "
    "and not be empty"
)
RELATED_FIELD_NAMES_SHOULD_BE_UNDEFINED_ERROR_MESSAGE = (
    "When data.dataType is not Lookup, relatedFieldName and "
    "relatedFieldDisplayName must be null"
)


def validate_field_mutation_args(args: dict[str, Any]) -> None:
    """Check the Lookup relationship rules of a field create/update payload.

    Empty strings count as absent.

    Args:
        args: Operation arguments with ``data`` and the optional top-level
            ``relatedFieldName`` / ``relatedFieldDisplayName``

    Raises:
        DataConflictError: With one of the three fixed messages above
    """
    data = args.get("data") or {}
    related_field_name = args.get("relatedFieldName")
    related_field_display_name = args.get("relatedFieldDisplayName")

    if data.get("dataType") == EnumDataType.LOOKUP.value:
        related_field_id = (data.get("properties") or {}).get("relatedFieldId")
        if not related_field_id and (
            not related_field_name or not related_field_display_name
        ):
            raise DataConflictError(
                RELATED_FIELD_ID_UNDEFINED_AND_NAMES_UNDEFINED_ERROR_MESSAGE
            )
        if related_field_id and (related_field_name or related_field_display_name):
            raise DataConflictError(
                RELATED_FIELD_ID_DEFINED_NAMES_SHOULD_BE_UNDEFINED_ERROR_MESSAGE
            )
    elif related_field_name or related_field_display_name:
        raise DataConflictError(RELATED_FIELD_NAMES_SHOULD_BE_UNDEFINED_ERROR_MESSAGE)
