"""Tests for request parameter parsing."""

import pytest

from ampache_minion.domain.ampache.errors import MissingParameter
from ampache_minion.domain.ampache.params import (
    ActionRequest,
    index_is_within_offset_and_limit,
    parse_bool,
    validate_limit_or_offset,
)


@pytest.mark.parametrize(
    "value, expected",
    [("5", 5), (5, 5), ("0", None), (0, None), ("abc", None), ("-3", None), ("2.5", None),
     ("", None), (None, None)],
)
def test_validate_limit_or_offset(value, expected):
    assert validate_limit_or_offset(value) == expected


def test_index_within_window():
    assert index_is_within_offset_and_limit(3, None, 10)
    assert not index_is_within_offset_and_limit(3, None, 2)
    assert index_is_within_offset_and_limit(3, 3, 1)
    assert not index_is_within_offset_and_limit(3, 4, 10)


def test_index_without_limit_is_always_within():
    assert index_is_within_offset_and_limit(100, 500, None)


@pytest.mark.parametrize("value", ["1", "true", "TRUE", "on", "yes", True])
def test_parse_bool_true(value):
    assert parse_bool(value) is True


@pytest.mark.parametrize("value", ["0", "false", "off", "", None, "maybe"])
def test_parse_bool_false(value):
    assert parse_bool(value) is False


class TestActionRequest:
    def test_from_params(self):
        request = ActionRequest.from_params(
            {"action": "songs", "filter": "abc", "exact": "1", "limit": "10", "offset": "0"}
        )
        assert request.action == "songs"
        assert request.filter == "abc"
        assert request.exact is True
        assert request.limit == 10
        assert request.offset is None

    def test_require(self):
        request = ActionRequest.from_params({"type": "song"})
        assert request.require("type") == "song"
        with pytest.raises(MissingParameter) as exc_info:
            request.require("filter")
        assert exc_info.value.code == 400

    def test_empty_value_is_present(self):
        assert ActionRequest.from_params({"type": ""}).require("type") == ""

    @pytest.mark.parametrize("value, expected", [("1", True), ("true", True), ("false", False), ("0", False)])
    def test_exact_reads_boolean_words(self, value, expected):
        assert ActionRequest.from_params({"exact": value}).exact is expected
