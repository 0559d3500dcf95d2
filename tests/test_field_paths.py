"""Tests for dotted field paths and filter predicates."""

import pytest

from chainpulse.services.field_paths import (
    FieldPath,
    FieldPredicate,
    compile_filters,
    matches_all,
    values_equal,
)

DOCUMENT = {
    "id": "evt-1",
    "type": "transaction",
    "data": {"address": "0xabc", "value": 10, "tags": ["swap", "dex"], "flag": True},
    "metadata": None,
}


def test_parse_splits_segments():
    assert FieldPath.parse("data.address").segments == ("data", "address")
    assert str(FieldPath.parse("data.address")) == "data.address"


@pytest.mark.parametrize("path", ["", "   ", "data..address", ".data", "data."])
def test_parse_rejects_malformed_paths(path):
    with pytest.raises(ValueError):
        FieldPath.parse(path)


def test_resolve_nested_and_list_index():
    assert FieldPath.parse("data.address").resolve(DOCUMENT) == (True, "0xabc")
    assert FieldPath.parse("data.tags.1").extract(DOCUMENT) == "dex"


def test_unresolved_paths_do_not_raise():
    assert FieldPath.parse("data.missing").resolve(DOCUMENT) == (False, None)
    assert FieldPath.parse("data.address.deeper").resolve(DOCUMENT) == (False, None)
    assert FieldPath.parse("metadata.source").resolve(DOCUMENT) == (False, None)
    assert FieldPath.parse("data.tags.7").extract(DOCUMENT) is None


def test_present_none_value_is_resolved():
    assert FieldPath.parse("metadata").resolve(DOCUMENT) == (True, None)


def test_values_equal_keeps_booleans_apart_from_numbers():
    assert values_equal(1, 1.0)
    assert values_equal(True, True)
    assert not values_equal(True, 1)
    assert not values_equal(0, False)
    assert not values_equal("10", 10)


def test_predicate_membership_and_equality():
    membership = FieldPredicate(FieldPath.parse("data.address"), ["0xabc", "0xdef"])
    equality = FieldPredicate(FieldPath.parse("data.value"), 10)
    assert membership.is_membership
    assert membership.matches(DOCUMENT)
    assert equality.matches(DOCUMENT)
    assert not FieldPredicate(FieldPath.parse("data.flag"), 1).matches(DOCUMENT)
    assert not FieldPredicate(FieldPath.parse("data.nope"), None).matches(DOCUMENT)


def test_compile_filters_and_matches_all():
    assert compile_filters(None) == ()
    predicates = compile_filters({"type": "transaction", "data.value": (5, 10)})
    assert len(predicates) == 2
    assert matches_all(DOCUMENT, predicates)
    assert not matches_all(DOCUMENT, compile_filters({"type": "transaction", "data.value": 11}))
