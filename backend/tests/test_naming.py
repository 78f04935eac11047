"""Tests for field name and data type inference."""

import pytest

from entityforge.core.errors import InvalidArgumentsError
from entityforge.core.types import EnumDataType
from entityforge.entities.models import Entity
from entityforge.entities.naming import camel_case_name, suggest_field


def make_entity(entity_id, name, display_name, plural_display_name):
    return Entity(
        id=entity_id,
        app_id="app1",
        name=name,
        display_name=display_name,
        plural_display_name=plural_display_name,
    )


CANDIDATES = [
    make_entity("e-customer", "Customer", "Customer", "Customers"),
    make_entity("e-line", "OrderLine", "Order Line", "Order Lines"),
]


class TestCamelCaseName:
    @pytest.mark.parametrize(
        "display_name,expected",
        [
            ("Order Items", "orderItems"),
            ("first name", "firstName"),
            ("E-mail ADDRESS", "eMailAddress"),
            ("  Price  ", "price"),
            ("2nd Address", "field2ndAddress"),
        ],
    )
    def test_converts(self, display_name, expected):
        assert camel_case_name(display_name) == expected

    def test_rejects_names_without_letters(self):
        with pytest.raises(InvalidArgumentsError):
            camel_case_name("!!!")


class TestSuggestField:
    @pytest.mark.parametrize(
        "display_name,data_type",
        [
            ("Start Date", EnumDataType.DATE_TIME),
            ("Email", EnumDataType.EMAIL),
            ("Description", EnumDataType.MULTI_LINE_TEXT),
            ("Unit Price", EnumDataType.DECIMAL_NUMBER),
            ("Quantity", EnumDataType.WHOLE_NUMBER),
            ("Is Active", EnumDataType.BOOLEAN),
            ("Has Children", EnumDataType.BOOLEAN),
            ("Status", EnumDataType.OPTION_SET),
            ("Nickname", EnumDataType.SINGLE_LINE_TEXT),
        ],
    )
    def test_infers_data_type(self, display_name, data_type):
        suggestion = suggest_field(display_name, CANDIDATES)
        assert suggestion.data_type == data_type
        assert suggestion.related_entity is None

    def test_single_word_is_not_boolean(self):
        assert suggest_field("Is", []).data_type == EnumDataType.SINGLE_LINE_TEXT

    def test_singular_entity_name_is_single_lookup(self):
        suggestion = suggest_field("Customer", CANDIDATES)
        assert suggestion.data_type == EnumDataType.LOOKUP
        assert suggestion.related_entity.id == "e-customer"
        assert suggestion.properties == {
            "allowMultipleSelection": False,
            "relatedEntityId": "e-customer",
        }

    def test_plural_display_name_allows_multiple(self):
        suggestion = suggest_field("Order Lines", CANDIDATES)
        assert suggestion.name == "orderLines"
        assert suggestion.related_entity.id == "e-line"
        assert suggestion.properties["allowMultipleSelection"] is True

    def test_lookup_takes_precedence_over_keywords(self):
        candidates = [make_entity("e-status", "Status", "Status", "Statuses")]
        assert suggest_field("Status", candidates).data_type == EnumDataType.LOOKUP

    def test_properties_are_fresh_copies(self):
        first = suggest_field("Tags Count", [])
        first.properties["minimumValue"] = 0
        assert suggest_field("Tags Count", []).properties["minimumValue"] == -999999999
