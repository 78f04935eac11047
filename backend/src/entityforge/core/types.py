"""Field data type registry with storage and property defaults."""

from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EnumDataType(str, Enum):
    """Data type tag of an entity field."""

    SINGLE_LINE_TEXT = "SingleLineText"
    MULTI_LINE_TEXT = "MultiLineText"
    EMAIL = "Email"
    WHOLE_NUMBER = "WholeNumber"
    DATE_TIME = "DateTime"
    DECIMAL_NUMBER = "DecimalNumber"
    LOOKUP = "Lookup"
    MULTI_SELECT_OPTION_SET = "MultiSelectOptionSet"
    OPTION_SET = "OptionSet"
    BOOLEAN = "Boolean"
    GEOGRAPHIC_LOCATION = "GeographicLocation"
    ID = "Id"
    CREATED_AT = "CreatedAt"
    UPDATED_AT = "UpdatedAt"
    ROLES = "Roles"
    USERNAME = "Username"
    PASSWORD = "Password"


@dataclass
class DataType:
    name: EnumDataType
    storage_type: str
    system: bool = False
    default_properties: dict[str, Any] = field(default_factory=dict)


# Built-in data types
DATA_TYPES: dict[EnumDataType, DataType] = {
    EnumDataType.SINGLE_LINE_TEXT: DataType(
        name=EnumDataType.SINGLE_LINE_TEXT,
        storage_type="TEXT",
    ),
    EnumDataType.MULTI_LINE_TEXT: DataType(
        name=EnumDataType.MULTI_LINE_TEXT,
        storage_type="TEXT",
        default_properties={"maxLength": 1000},
    ),
    EnumDataType.EMAIL: DataType(
        name=EnumDataType.EMAIL,
        storage_type="TEXT",
    ),
    EnumDataType.WHOLE_NUMBER: DataType(
        name=EnumDataType.WHOLE_NUMBER,
        storage_type="INTEGER",
        default_properties={"minimumValue": -999999999, "maximumValue": 999999999},
    ),
    EnumDataType.DATE_TIME: DataType(
        name=EnumDataType.DATE_TIME,
        storage_type="TEXT",  # ISO format
        default_properties={"timeZone": "localTime", "dateOnly": False},
    ),
    EnumDataType.DECIMAL_NUMBER: DataType(
        name=EnumDataType.DECIMAL_NUMBER,
        storage_type="REAL",
        default_properties={
            "minimumValue": -999999999,
            "maximumValue": 999999999,
            "precision": 2,
        },
    ),
    EnumDataType.LOOKUP: DataType(
        name=EnumDataType.LOOKUP,
        storage_type="TEXT",  # Foreign key of the related record
        default_properties={"allowMultipleSelection": False},
    ),
    EnumDataType.MULTI_SELECT_OPTION_SET: DataType(
        name=EnumDataType.MULTI_SELECT_OPTION_SET,
        storage_type="TEXT",  # JSON array stored as text
        default_properties={"options": []},
    ),
    EnumDataType.OPTION_SET: DataType(
        name=EnumDataType.OPTION_SET,
        storage_type="TEXT",
        default_properties={"options": []},
    ),
    EnumDataType.BOOLEAN: DataType(
        name=EnumDataType.BOOLEAN,
        storage_type="INTEGER",  # 0/1
    ),
    EnumDataType.GEOGRAPHIC_LOCATION: DataType(
        name=EnumDataType.GEOGRAPHIC_LOCATION,
        storage_type="TEXT",
    ),
    EnumDataType.ID: DataType(
        name=EnumDataType.ID,
        storage_type="TEXT",
        system=True,
        default_properties={"idType": "CUID"},
    ),
    EnumDataType.CREATED_AT: DataType(
        name=EnumDataType.CREATED_AT,
        storage_type="TEXT",
        system=True,
    ),
    EnumDataType.UPDATED_AT: DataType(
        name=EnumDataType.UPDATED_AT,
        storage_type="TEXT",
        system=True,
    ),
    EnumDataType.ROLES: DataType(
        name=EnumDataType.ROLES,
        storage_type="TEXT",
    ),
    EnumDataType.USERNAME: DataType(
        name=EnumDataType.USERNAME,
        storage_type="TEXT",
    ),
    EnumDataType.PASSWORD: DataType(
        name=EnumDataType.PASSWORD,
        storage_type="TEXT",
    ),
}


def get_data_type(type_name: str | EnumDataType) -> DataType:
    """Get data type definition, defaulting to SingleLineText if unknown."""
    try:
        key = EnumDataType(type_name)
    except ValueError:
        return DATA_TYPES[EnumDataType.SINGLE_LINE_TEXT]
    return DATA_TYPES[key]


def is_system_data_type(type_name: str | EnumDataType | None) -> bool:
    """Return True for data types that only the entity itself may create."""
    try:
        return DATA_TYPES[EnumDataType(type_name)].system
    except ValueError:
        return False


def default_properties(type_name: str | EnumDataType) -> dict[str, Any]:
    """Return a fresh copy of the default properties for a data type."""
    return deepcopy(get_data_type(type_name).default_properties)
