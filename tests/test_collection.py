"""Tests for the generic ObjectCollection operations."""

from __future__ import annotations

import pytest

from flexobjects.core.objects import Criteria, ObjectCollection
from flexobjects.core.objects.collection import parse_order


@pytest.fixture()
def people() -> ObjectCollection:
    return ObjectCollection(
        {
            "a": {"name": "Anna", "age": 31, "team": {"rank": 2}},
            "b": {"name": "Ben", "age": 25, "team": {"rank": 1}},
            "c": {"name": "Cleo", "age": 31, "team": {"rank": 3}},
            "d": {"name": "Dan", "age": None, "team": {"rank": 1}},
        },
        key="people",
    )


def test_mapping_protocol(people):
    assert len(people) == 4
    assert "a" in people
    assert list(people) == ["a", "b", "c", "d"]
    assert people.first()["name"] == "Anna"
    assert people.last()["name"] == "Dan"
    assert ObjectCollection().last() is None
    assert ObjectCollection(["x", "y"]).get_keys() == [0, 1]


def test_select_keeps_requested_order_and_skips_unknown(people):
    selected = people.select(["c", "zzz", "a"])
    assert selected.get_keys() == ["c", "a"]
    assert selected.get_key() == "people"


def test_unselect_filter_and_slice(people):
    assert people.unselect(["a", "b"]).get_keys() == ["c", "d"]
    assert people.filter(lambda p: p["age"] == 31).get_keys() == ["a", "c"]
    assert people.slice(1, 2).get_keys() == ["b", "c"]
    assert people.slice(3).get_keys() == ["d"]


def test_call_returns_none_for_missing_methods():
    class Item:
        def __init__(self, n):
            self.n = n

        def double(self, extra=0):
            return self.n * 2 + extra

    collection = ObjectCollection({"x": Item(1), "y": "not an item"})
    assert collection.call("double", [1]) == {"x": 3, "y": None}


def test_order_by_multiple_fields(people):
    ordered = people.order_by({"age": "desc", "name": "ASC"})
    # None sorts last when descending
    assert ordered.get_keys() == ["a", "c", "b", "d"]


def test_order_by_nested_field_is_stable(people):
    assert people.order_by({"team.rank": "asc"}).get_keys() == ["b", "d", "a", "c"]


def test_order_by_none_first_when_ascending(people):
    assert people.order_by({"age": "asc"}).get_keys()[0] == "d"


def test_order_by_mixed_types_compares_as_strings():
    collection = ObjectCollection({"x": {"v": 10}, "y": {"v": "9"}, "z": {"v": 2}})
    # "10" < "2" < "9"
    assert collection.order_by({"v": "ASC"}).get_keys() == ["x", "z", "y"]


def test_order_by_mixed_types_is_consistent():
    collection = ObjectCollection({"a": {"v": 9}, "b": {"v": 10}, "c": {"v": "15"}, "d": {"v": None}})
    assert collection.order_by({"v": "ASC"}).get_keys() == ["d", "b", "c", "a"]
    assert collection.order_by({"v": "DESC"}).get_keys() == ["a", "c", "b", "d"]
    reordered = ObjectCollection({k: collection[k] for k in ["c", "a", "d", "b"]})
    assert reordered.order_by({"v": "ASC"}).get_keys() == ["d", "b", "c", "a"]


def test_matching_applies_filter_order_and_window(people):
    criteria = Criteria(where=lambda p: p["age"] is not None, order={"age": "ASC"}, limit=2)
    assert people.matching(criteria).get_keys() == ["b", "a"]


def test_parse_order():
    assert parse_order("last_name:desc, first_name") == {"last_name": "DESC", "first_name": "ASC"}
    assert parse_order(None) == {}
    with pytest.raises(ValueError):
        parse_order("name:sideways")
