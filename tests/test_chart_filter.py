"""Tests for dispositions/chart_filter.py — reason selection and chart series."""
import pytest

from dispositions.aggregation import MonthlyBreakdown, normalize_monthly
from dispositions.chart_filter import (
    ReasonSelection,
    month_label,
    percentage,
    recompute,
    toggle_category,
    toggle_reason,
)


@pytest.fixture()
def dense():
    return normalize_monthly([
        MonthlyBreakdown(month="02", total=10, reasons={"A-1": 3, "A-2": 2, "B-1": 5}),
        MonthlyBreakdown(month="05", total=4, reasons={"B-1": 4}),
    ])


class TestToggleReason:
    def test_adds_missing(self):
        assert toggle_reason(set(), "A-1") == {"A-1"}

    def test_removes_present(self):
        assert toggle_reason({"A-1", "B-1"}, "A-1") == {"B-1"}

    def test_twice_is_identity(self):
        start = frozenset({"B-1"})
        assert toggle_reason(toggle_reason(start, "A-1"), "A-1") == start

    def test_does_not_mutate_input(self):
        sel = {"A-1"}
        toggle_reason(sel, "B-1")
        assert sel == {"A-1"}


class TestToggleCategory:
    def test_empty_selects_all(self, small_catalog):
        assert toggle_category(set(), small_catalog, "A") == {"A-1", "A-2"}

    def test_full_deselects_all(self, small_catalog):
        assert toggle_category({"A-1", "A-2"}, small_catalog, "A") == frozenset()

    def test_partial_selects_rest(self, small_catalog):
        assert toggle_category({"A-1"}, small_catalog, "A") == {"A-1", "A-2"}

    def test_other_categories_untouched(self, small_catalog):
        assert toggle_category({"B-1", "A-1", "A-2"}, small_catalog, "A") == {"B-1"}
        assert toggle_category({"B-1"}, small_catalog, "A") == {"A-1", "A-2", "B-1"}

    def test_involution_on_full_selection(self, small_catalog):
        full = frozenset({"A-1", "A-2"})
        once = toggle_category(full, small_catalog, "A")
        assert not once & full
        assert toggle_category(once, small_catalog, "A") == full

    def test_unknown_category_is_noop(self, small_catalog):
        assert toggle_category({"A-1"}, small_catalog, "ZZZ") == {"A-1"}

    def test_default_catalog_category(self, catalog):
        selected = toggle_category(set(), catalog, "HEALTH")
        assert selected == set(catalog.codes_for_category("HEALTH"))


class TestPercentage:
    def test_zero_total(self):
        assert percentage(0, 0) == 0

    def test_one_decimal(self):
        assert percentage(1, 3) == 33.3
        assert percentage(2, 3) == 66.7

    def test_whole(self):
        assert percentage(5, 5) == 100.0


class TestMonthLabel:
    def test_known(self):
        assert month_label("01") == "Jan"
        assert month_label("12") == "Dec"

    def test_unknown_passthrough(self):
        assert month_label("xx") == "xx"
        assert month_label("13") == "13"
        assert month_label("00") == "00"


class TestRecompute:
    def test_empty_selection(self, dense):
        series = recompute(dense, set())
        assert len(series) == 12
        for point in series:
            assert point["filtered"] == 0
            assert point["remainder"] == point["total"]
            assert point["percentage"] == 0

    def test_selected_codes_summed(self, dense):
        feb = recompute(dense, {"A-1", "A-2"})[1]
        assert feb == {
            "name": "Feb", "month": "02", "total": 10,
            "filtered": 5, "remainder": 5, "percentage": 50.0,
        }

    def test_codes_missing_from_month_count_zero(self, dense):
        may = recompute(dense, {"A-1"})[4]
        assert may["filtered"] == 0
        assert may["remainder"] == 4

    @pytest.mark.parametrize("selection", [set(), {"A-1"}, {"B-1", "A-2"}, {"A-1", "A-2", "B-1", "X"}])
    def test_filtered_plus_remainder_is_total(self, dense, selection):
        for point in recompute(dense, selection):
            assert point["filtered"] + point["remainder"] == point["total"]

    def test_pure(self, dense):
        assert recompute(dense, {"B-1"}) == recompute(dense, {"B-1"})


class TestReasonSelection:
    def test_starts_empty(self, small_catalog):
        assert ReasonSelection(small_catalog).selected == frozenset()

    def test_toggles_and_clear(self, small_catalog):
        sel = ReasonSelection(small_catalog)
        sel.toggle_category("A")
        sel.toggle_reason("B-1")
        assert sel.selected == {"A-1", "A-2", "B-1"}
        sel.toggle_reason("A-1")
        assert sel.selected == {"A-2", "B-1"}
        sel.clear_all()
        assert sel.selected == frozenset()

    def test_ordered_follows_catalog(self, small_catalog):
        sel = ReasonSelection(small_catalog, selected={"B-1", "ZZ", "A-2"})
        assert sel.ordered() == ["A-2", "B-1", "ZZ"]

    def test_series_uses_selection(self, small_catalog, dense):
        sel = ReasonSelection(small_catalog, selected={"B-1"})
        assert sel.series(dense)[4]["filtered"] == 4
