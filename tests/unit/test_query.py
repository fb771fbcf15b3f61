"""
Unit tests for query string parsing and argument binding.
"""

import pytest

from microserver.http.query import ParamSpec, bind_arguments, parse_query


class TestParamSpec:
    """Tests for ParamSpec validation."""

    def test_default_is_empty_string(self):
        assert ParamSpec("name").default == ""

    def test_non_string_default_rejected(self):
        """Defaults must be strings so handlers never see None."""
        with pytest.raises(TypeError):
            ParamSpec("count", 3)

        with pytest.raises(TypeError):
            ParamSpec("name", None)

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            ParamSpec("", "x")

    def test_is_immutable(self):
        spec = ParamSpec("name", "World")

        with pytest.raises(AttributeError):
            spec.name = "other"


class TestParseQuery:
    """Tests for parse_query."""

    def test_single_pair(self):
        assert parse_query("name=Nicolas") == {"name": "Nicolas"}

    def test_multiple_pairs(self):
        assert parse_query("a=1&b=2") == {"a": "1", "b": "2"}

    @pytest.mark.parametrize("query_string", [None, ""])
    def test_absent_query(self, query_string):
        assert parse_query(query_string) == {}

    def test_pair_without_equals_dropped(self):
        assert parse_query("flag&name=Ana") == {"name": "Ana"}

    def test_empty_value_dropped(self):
        """"name=" has no value and is ignored."""
        assert parse_query("name=") == {}

    def test_empty_name_dropped(self):
        assert parse_query("=value") == {}

    def test_more_than_one_equals_dropped(self):
        """"a=b=c" splits into three parts and is ignored entirely."""
        assert parse_query("a=b=c&d=e") == {"d": "e"}

    def test_empty_segments_ignored(self):
        assert parse_query("&&a=1&") == {"a": "1"}

    def test_duplicate_last_wins(self):
        assert parse_query("name=Ana&name=Luis") == {"name": "Luis"}

    def test_no_percent_decoding(self):
        assert parse_query("q=hello%20world&p=a+b") == {
            "q": "hello%20world",
            "p": "a+b",
        }


class TestBindArguments:
    """Tests for bind_arguments."""

    def test_supplied_value(self):
        specs = [ParamSpec("name", "World")]

        assert bind_arguments(specs, {"name": "Nicolas"}) == ["Nicolas"]

    def test_default_value(self):
        specs = [ParamSpec("name", "World")]

        assert bind_arguments(specs, {}) == ["World"]

    def test_declaration_order(self):
        """Arguments follow the ParamSpec order, not the query order."""
        specs = [ParamSpec("b", "B"), ParamSpec("a", "A")]

        assert bind_arguments(specs, {"a": "1", "b": "2"}) == ["2", "1"]

    def test_mixed_supplied_and_default(self):
        specs = [ParamSpec("a", "A"), ParamSpec("b", "B")]

        assert bind_arguments(specs, {"b": "2"}) == ["A", "2"]

    def test_unknown_parameters_ignored(self):
        specs = [ParamSpec("name", "World")]

        assert bind_arguments(specs, {"other": "x"}) == ["World"]

    def test_no_params(self):
        assert bind_arguments([], {"name": "x"}) == []

    def test_never_none(self):
        specs = [ParamSpec("a"), ParamSpec("b", "B")]

        args = bind_arguments(specs, parse_query("a=&c=1"))

        assert args == ["", "B"]
        assert all(isinstance(arg, str) for arg in args)
