import pytest

from conftest import make_rows
from sheetcharts.errors import BadInput
from sheetcharts.filters import FilterRule, apply_filters, normalize_filters, passes
from sheetcharts.values import normalize, normalize_row, number


def test_no_filter_always_passes(sales_rows):
    assert all(passes(r, None) for r in sales_rows)
    assert all(passes(r, {}) for r in sales_rows)


def test_eq_uses_normalized_operands(sales_rows):
    spec = normalize_filters({"sales": {"eq": 10}})
    assert [passes(r, spec) for r in sales_rows] == [True, False, False]
    spec = normalize_filters({"region": {"eq": "west"}})
    assert [passes(r, spec) for r in sales_rows] == [False, False, True]


def test_eq_is_strict_about_kind():
    row = normalize_row({"flag": True})
    assert not passes(row, normalize_filters({"flag": {"eq": 1}}))
    assert passes(row, normalize_filters({"flag": {"eq": True}}))


def test_in_membership(sales_rows):
    spec = normalize_filters({"sales": {"in": ["5", 20]}})
    assert [passes(r, spec) for r in sales_rows] == [False, True, True]


def test_range_is_inclusive(sales_rows):
    spec = normalize_filters({"sales": {"range": [10, 100]}})
    assert [passes(r, spec) for r in sales_rows] == [True, True, False]
    spec = normalize_filters({"sales": {"range": [5, 10]}})
    assert [passes(r, spec) for r in sales_rows] == [True, False, True]


def test_range_skipped_for_text_values(sales_rows):
    spec = normalize_filters({"region": {"range": [1, 2]}})
    assert all(passes(r, spec) for r in sales_rows)


def test_range_on_dates():
    rows = make_rows([{"day": "2024-01-01"}, {"day": "2024-02-15"}, {"day": "2024-04-01"}])
    spec = normalize_filters({"day": {"range": ["2024-02-01", "2024-03-31"]}})
    assert [passes(r, spec) for r in rows] == [False, True, False]


def test_range_with_open_bound(sales_rows):
    spec = normalize_filters({"sales": {"range": [None, 10]}})
    assert [passes(r, spec) for r in sales_rows] == [True, False, True]


def test_rules_are_anded_across_columns(sales_rows):
    spec = normalize_filters({"region": {"eq": "east"}, "sales": {"range": [15, 30]}})
    assert apply_filters(sales_rows, spec) == [sales_rows[1]]


def test_missing_column_fails_eq_but_not_range(sales_rows):
    assert not passes(sales_rows[0], normalize_filters({"missing": {"eq": "x"}}))
    assert passes(sales_rows[0], normalize_filters({"missing": {"range": [0, 1]}}))


def test_raw_mapping_is_accepted(sales_rows):
    assert apply_filters(sales_rows, {"sales": {"range": [10, 100]}}) == sales_rows[:2]


def test_filters_from_json_text():
    spec = normalize_filters('{"sales": {"eq": "10"}}')
    assert spec == {"sales": FilterRule(eq=number(10))}
    assert normalize_filters("") is None
    assert normalize_filters("null") is None
    assert normalize_filters(None) is None


def test_in_members_are_normalized():
    spec = normalize_filters({"a": {"in": ["1", "x", None]}})
    assert spec["a"].in_ == frozenset({number(1), normalize("x"), normalize(None)})


@pytest.mark.parametrize(
    "raw",
    [
        "{not json",
        "[1, 2]",
        {"sales": 5},
        {"sales": {"gt": 1}},
        {"sales": {"range": [1]}},
        {"sales": {"range": "1-2"}},
        {"sales": {"in": 5}},
    ],
)
def test_malformed_filters_raise_bad_input(raw):
    with pytest.raises(BadInput):
        normalize_filters(raw)
