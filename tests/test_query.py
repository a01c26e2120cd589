from __future__ import annotations

import random

import pytest

from localdb import query
from localdb.errors import QueryOptionsError, UnsupportedFilterError


VOCABS = [
    {"id": "1", "name": "Food", "langUse": "English", "establisher": "admin", "tags": ["daily", "kitchen"]},
    {"id": "2", "name": "Travel", "langUse": "Japanese", "establisher": "U1", "tags": ["trip"]},
    {"id": "3", "name": "Seafood", "langUse": "Korean", "establisher": "U2", "tags": []},
    {"id": "4", "name": "Business", "langUse": "French", "establisher": "admin"},
]


def _ids(docs):
    return [d["id"] for d in docs]


def test_equality_on_string_field():
    assert _ids(query.find(VOCABS, {"establisher": "admin"})) == ["1", "4"]


def test_contains_is_case_insensitive():
    assert _ids(query.find(VOCABS, {"langUse": {"contains": "ENG"}})) == ["1"]
    assert _ids(query.find(VOCABS, {"name": {"contains": "FOOD"}})) == ["1", "3"]


def test_contains_ignores_non_string_fields():
    docs = [{"id": "a", "n": 12}, {"id": "b", "n": "12"}]
    assert _ids(query.find(docs, {"n": {"contains": "1"}})) == ["b"]


def test_in_over_three_values():
    where = {"langUse": {"in": ["English", "Korean", "German"]}}
    assert _ids(query.find(VOCABS, where)) == ["1", "3"]


def test_has_on_array_field():
    assert _ids(query.find(VOCABS, {"tags": {"has": "trip"}})) == ["2"]
    # documents without the array never match
    assert _ids(query.find(VOCABS, {"tags": {"has": "missing"}})) == []


def test_not_excludes_exact_value():
    assert _ids(query.find(VOCABS, {"establisher": {"not": "admin"}})) == ["2", "3"]


def test_not_with_nested_condition():
    where = {"langUse": {"not": {"in": ["English", "Japanese"]}}}
    assert _ids(query.find(VOCABS, where)) == ["3", "4"]


def test_fields_are_combined_with_and():
    where = {"establisher": "admin", "name": {"contains": "bus"}}
    assert _ids(query.find(VOCABS, where)) == ["4"]


def test_missing_field_equals_none():
    assert _ids(query.find(VOCABS, {"tags": None})) == ["4"]


def test_logical_operators():
    where = {"OR": [{"langUse": "English"}, {"langUse": "French"}]}
    assert _ids(query.find(VOCABS, where)) == ["1", "4"]
    assert _ids(query.find(VOCABS, {"NOT": {"establisher": "admin"}})) == ["2", "3"]
    assert _ids(query.find(VOCABS, {"AND": [{"establisher": "admin"}, {"langUse": "French"}]})) == ["4"]


def test_range_and_prefix_operators():
    docs = [{"id": str(i), "points": i, "name": f"Item{i}"} for i in range(5)]
    docs.append({"id": "none", "points": None, "name": "item-none"})
    assert _ids(query.find(docs, {"points": {"gte": 3}})) == ["3", "4"]
    assert _ids(query.find(docs, {"points": {"gt": 0, "lt": 2}})) == ["1"]
    assert _ids(query.find(docs, {"name": {"startsWith": "item"}})) == ["none"]
    assert len(query.find(docs, {"name": {"startsWith": "item", "mode": "insensitive"}})) == 6
    assert _ids(query.find(docs, {"points": {"notIn": [0, 1, 2, 3, None]}})) == ["4"]


def test_unknown_operator_raises():
    with pytest.raises(UnsupportedFilterError):
        query.find(VOCABS, {"name": {"regex": "^F"}})


def test_unknown_mode_raises():
    with pytest.raises(UnsupportedFilterError):
        query.find(VOCABS, {"name": {"contains": "f", "mode": "fuzzy"}})


def test_in_requires_a_list():
    with pytest.raises(QueryOptionsError):
        query.find(VOCABS, {"langUse": {"in": "English"}})


def test_sort_is_stable_on_ties():
    docs = [{"id": str(i), "group": i % 2} for i in range(6)]
    assert _ids(query.find(docs, order_by={"group": "asc"})) == ["0", "2", "4", "1", "3", "5"]
    assert _ids(query.find(docs, order_by={"group": "desc"})) == ["1", "3", "5", "0", "2", "4"]


def test_sort_puts_missing_values_last():
    docs = [{"id": "a"}, {"id": "b", "n": 2}, {"id": "c", "n": None}, {"id": "d", "n": 1}]
    assert _ids(query.find(docs, order_by={"n": "asc"})) == ["d", "b", "a", "c"]
    assert _ids(query.find(docs, order_by={"n": "desc"})) == ["b", "d", "a", "c"]


def test_sort_accepts_single_element_list():
    assert _ids(query.find(VOCABS, order_by=[{"name": "asc"}])) == ["4", "1", "3", "2"]


def test_invalid_sort_options():
    with pytest.raises(QueryOptionsError):
        query.find(VOCABS, order_by={"name": "up"})
    with pytest.raises(QueryOptionsError):
        query.find(VOCABS, order_by=[{"name": "asc"}, {"id": "desc"}])


def test_negative_pagination_rejected():
    with pytest.raises(QueryOptionsError):
        query.find(VOCABS, skip=-1)
    with pytest.raises(QueryOptionsError):
        query.find(VOCABS, take=-2)


def test_take_zero_returns_nothing():
    assert query.find(VOCABS, take=0) == []


@pytest.mark.parametrize("size", [0, 1, 50])
@pytest.mark.parametrize("direction", ["asc", "desc"])
def test_sort_then_paginate_equals_slice_of_full_sort(size, direction):
    rng = random.Random(size)
    docs = [{"id": f"d{i}", "score": rng.randint(0, 9), "kind": rng.choice("ab")} for i in range(size)]
    where = {"kind": "a"}

    expected_full = sorted(
        [d for d in docs if d["kind"] == "a"],
        key=lambda d: d["score"],
        reverse=direction == "desc",
    )
    for skip, take in [(0, 5), (3, 10), (10, 100), (0, None), (60, 5)]:
        got = query.find(docs, where, order_by={"score": direction}, skip=skip, take=take)
        end = None if take is None else skip + take
        assert got == expected_full[skip:end]


def test_projection_copies_only_flagged_existing_fields():
    rows = query.find(VOCABS, {"id": "4"}, select={"name": True, "tags": True, "langUse": False})
    assert rows == [{"name": "Business"}]


def test_count_and_find_unique():
    assert query.count(VOCABS) == 4
    assert query.count(VOCABS, {"establisher": "admin"}) == 2
    assert query.find_unique(VOCABS, {"name": "Travel"})["id"] == "2"
    assert query.find_unique(VOCABS, {"name": "Nope"}) is None
    with pytest.raises(QueryOptionsError):
        query.find_unique(VOCABS, {})
