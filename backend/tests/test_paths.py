"""Tests for dotted-path access into argument trees."""

import pytest

from entityforge.core.paths import (
    ArgumentPath,
    PathAssignmentError,
    PathFound,
    PathMissing,
    PathNotTraversable,
    assign_path,
    resolve_path,
)


class TestArgumentPath:
    def test_parse_splits_segments(self):
        assert ArgumentPath.parse("data.entity.connect.id").segments == (
            "data", "entity", "connect", "id",
        )

    def test_str_round_trips(self):
        assert str(ArgumentPath.parse("where.app.id")) == "where.app.id"

    @pytest.mark.parametrize("path", ["", ".", "where..id", "where.id."])
    def test_parse_rejects_empty_segments(self, path):
        with pytest.raises(ValueError, match="Invalid argument path"):
            ArgumentPath.parse(path)

    def test_prefix(self):
        path = ArgumentPath.parse("a.b.c")
        assert path.prefix(0) == ""
        assert path.prefix(2) == "a.b"


class TestResolvePath:
    def test_found_through_connect(self):
        args = {"data": {"entity": {"connect": {"id": "e1"}}}}
        assert resolve_path(args, "data.entity.connect.id") == PathFound("e1")

    def test_found_through_list_index(self):
        args = {"data": {"add": [{"id": "r1"}, {"id": "r2"}]}}
        assert resolve_path(args, "data.add.1.id") == PathFound("r2")

    def test_missing_key_reports_segment(self):
        result = resolve_path({"where": {}}, "where.id")
        assert isinstance(result, PathMissing)
        assert result.segment == "id"
        assert result.traversed == "where"

    def test_null_value_is_missing(self):
        result = resolve_path({"where": {"id": None}}, "where.id")
        assert isinstance(result, PathMissing)

    def test_index_out_of_range_is_missing(self):
        result = resolve_path({"items": [1]}, "items.3")
        assert isinstance(result, PathMissing)

    def test_non_numeric_index_is_missing(self):
        result = resolve_path({"items": [1]}, "items.first")
        assert isinstance(result, PathMissing)

    def test_descending_into_scalar_is_not_traversable(self):
        result = resolve_path({"where": "e1"}, "where.id")
        assert isinstance(result, PathNotTraversable)
        assert result.node_type == "str"
        assert result.traversed == "where"

    def test_string_is_not_indexed(self):
        result = resolve_path({"name": "abc"}, "name.0")
        assert isinstance(result, PathNotTraversable)

    def test_falsy_values_are_found(self):
        assert resolve_path({"take": 0}, "take") == PathFound(0)
        assert resolve_path({"name": ""}, "name") == PathFound("")


class TestAssignPath:
    def test_creates_intermediate_mappings(self):
        args = {}
        assign_path(args, "data.owner.id", "u1")
        assert args == {"data": {"owner": {"id": "u1"}}}

    def test_preserves_siblings(self):
        args = {"where": {"id": "e1"}}
        assign_path(args, "userId", "u1")
        assign_path(args, "where.userId", "u1")
        assert args == {"where": {"id": "e1", "userId": "u1"}, "userId": "u1"}

    def test_overwrites_existing_value(self):
        args = {"userId": "someone-else"}
        assign_path(args, "userId", "u1")
        assert args["userId"] == "u1"

    def test_replaces_null_intermediate(self):
        args = {"data": None}
        assign_path(args, "data.id", "x")
        assert args == {"data": {"id": "x"}}

    def test_non_mapping_node_raises(self):
        args = {"data": ["not", "a", "mapping"]}
        with pytest.raises(PathAssignmentError) as exc_info:
            assign_path(args, "data.id", "x")
        assert exc_info.value.segment == "data"
        assert "list" in str(exc_info.value)
