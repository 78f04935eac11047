"""Field name and data type inference from a display name."""

import re
from dataclasses import dataclass, field
from typing import Any

from entityforge.core.errors import InvalidArgumentsError
from entityforge.core.types import EnumDataType, default_properties
from entityforge.entities.models import Entity

_WORD_PATTERN = re.compile(r"[A-Za-z0-9]+")

# Checked in order; first hit wins
_KEYWORD_TYPES: list[tuple[tuple[str, ...], EnumDataType]] = [
    (("date", "time"), EnumDataType.DATE_TIME),
    (("email",), EnumDataType.EMAIL),
    (("description", "comment", "comments", "notes"), EnumDataType.MULTI_LINE_TEXT),
    (("price", "amount", "cost", "total"), EnumDataType.DECIMAL_NUMBER),
    (("count", "quantity", "qty"), EnumDataType.WHOLE_NUMBER),
    (("status", "type"), EnumDataType.OPTION_SET),
]


@dataclass
class FieldSuggestion:
    name: str
    display_name: str
    data_type: EnumDataType
    properties: dict[str, Any] = field(default_factory=dict)
    related_entity: Entity | None = None


def camel_case_name(display_name: str) -> str:
    """Convert "Order Items" to "orderItems".

    Raises:
        InvalidArgumentsError: If the display name has no letters or digits
    """
    words = _WORD_PATTERN.findall(display_name)
    if not words:
        raise InvalidArgumentsError(f"Cannot derive a field name from '{display_name}'")
    name = words[0].lower() + "".join(w[:1].upper() + w[1:].lower() for w in words[1:])
    if name[0].isdigit():
        name = f"field{name[0].upper()}{name[1:]}"
    return name


def _normalize(value: str) -> str:
    return "".join(_WORD_PATTERN.findall(value)).lower()


def _find_related_entity(display_name: str, candidates: list[Entity]) -> tuple[Entity, bool] | None:
    """Match the display name against entity names.

    Returns the matched entity and whether the plural form matched.
    """
    key = _normalize(display_name)
    for entity in candidates:
        if key in (_normalize(entity.name), _normalize(entity.display_name)):
            return entity, False
        if key == _normalize(entity.plural_display_name):
            return entity, True
    return None


def suggest_field(display_name: str, candidates: list[Entity]) -> FieldSuggestion:
    """Guess a field definition from its display name.

    Args:
        display_name: The display name typed by the user
        candidates: Other live entities of the same app, for Lookup detection
    """
    name = camel_case_name(display_name)

    related = _find_related_entity(display_name, candidates)
    if related is not None:
        entity, plural = related
        properties = default_properties(EnumDataType.LOOKUP)
        properties["relatedEntityId"] = entity.id
        properties["allowMultipleSelection"] = plural
        return FieldSuggestion(name, display_name, EnumDataType.LOOKUP, properties, entity)

    words = [w.lower() for w in _WORD_PATTERN.findall(display_name)]
    if words and words[0] in ("is", "has") and len(words) > 1:
        return FieldSuggestion(
            name, display_name, EnumDataType.BOOLEAN, default_properties(EnumDataType.BOOLEAN)
        )

    for keywords, data_type in _KEYWORD_TYPES:
        if any(word in keywords for word in words):
            return FieldSuggestion(name, display_name, data_type, default_properties(data_type))

    return FieldSuggestion(
        name,
        display_name,
        EnumDataType.SINGLE_LINE_TEXT,
        default_properties(EnumDataType.SINGLE_LINE_TEXT),
    )
