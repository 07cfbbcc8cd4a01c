"""Unit tests for grouped aggregation and ranking."""

import math

import pytest

from prosperity.aggregator import AggregateGroup, group_means, top_n
from prosperity.reconciler import ReconciledRow
from prosperity.timeseries import Observation, TimeSeriesIndex


# ============================================================================
# Group Mean Tests
# ============================================================================

@pytest.mark.unit
class TestGroupMeans:
    """Test grouping and unweighted means."""

    def test_simple_mean(self):
        rows = [{"continent": "Europe", "x": v} for v in (10, 20, 30)]
        [group] = group_means(rows, key="continent", fields=["x"])
        assert group.key == "Europe"
        assert group.count == 3
        assert group.means["x"] == pytest.approx(20.0)

    def test_groups_in_first_seen_order(self):
        rows = [
            {"continent": "Asia", "x": 1.0},
            {"continent": "Africa", "x": 2.0},
            {"continent": "Asia", "x": 3.0},
        ]
        groups = group_means(rows, key="continent", fields=["x"])
        assert [g.key for g in groups] == ["Asia", "Africa"]
        assert groups[0].means["x"] == pytest.approx(2.0)

    def test_rows_without_key_skipped(self):
        rows = [{"continent": None, "x": 5.0}, {"x": 6.0}, {"continent": "", "x": 7.0}]
        assert group_means(rows, key="continent", fields=["x"]) == []

    def test_empty_input(self):
        assert group_means([], key="continent", fields=["x"]) == []

    def test_non_finite_values_excluded_from_mean(self):
        rows = [
            {"continent": "Europe", "x": 10.0, "y": 1.0},
            {"continent": "Europe", "x": float("nan"), "y": 3.0},
            {"continent": "Europe", "x": None, "y": 5.0},
        ]
        [group] = group_means(rows, key="continent", fields=["x", "y"])
        assert group.count == 3
        assert group.means["x"] == pytest.approx(10.0)
        assert group.means["y"] == pytest.approx(3.0)

    def test_complete_rows_divide_by_count(self):
        rows = [
            ReconciledRow(code, code, 2020, values={"internet": i, "gdp": g}, category="Asia")
            for code, i, g in (("JPN", 90.0, 40000.0), ("IND", 46.0, 1900.0), ("CHN", 70.0, 10400.0))
        ]
        [group] = group_means(rows, key="continent", fields=["internet", "gdp"])
        assert group.count == 3
        assert group.means["internet"] == pytest.approx((90.0 + 46.0 + 70.0) / group.count)
        assert group.means["gdp"] == pytest.approx((40000.0 + 1900.0 + 10400.0) / group.count)

    def test_row_missing_field_counted_but_not_averaged(self):
        rows = [
            {"continent": "Africa", "internet": 40.0, "elec": 60.0},
            {"continent": "Africa", "internet": 20.0},
        ]
        [group] = group_means(rows, key="continent", fields=["internet", "elec"])
        assert group.count == 2
        assert group.means["internet"] == pytest.approx(30.0)
        assert group.means["elec"] == pytest.approx(60.0)

    def test_field_without_values_omitted(self):
        [group] = group_means([{"continent": "Europe", "x": 1.0}], key="continent", fields=["x", "z"])
        assert "z" not in group.means

    def test_reconciled_rows(self):
        rows = [
            ReconciledRow("FRA", "France", 2020, values={"internet": 80.0}, category="Europe"),
            ReconciledRow("DEU", "Germany", 2020, values={"internet": 90.0}, category="Europe"),
            ReconciledRow("XKX", "Kosovo", 2020, values={"internet": 70.0}),
        ]
        [group] = group_means(rows, key="continent", fields=["internet"])
        assert group.count == 2
        assert group.means["internet"] == pytest.approx(85.0)

    def test_as_dict(self):
        group = AggregateGroup(key="Europe", count=2, means={"internet": 85.0, "gdp": 40000.0})
        assert group.as_dict("continent") == {
            "continent": "Europe",
            "n": 2,
            "internet_mean": 85.0,
            "gdp_mean": 40000.0,
        }


# ============================================================================
# Top-N Tests
# ============================================================================

@pytest.mark.unit
class TestTopN:
    """Test ranking by latest value in the most recent year."""

    def test_ranks_most_recent_year_only(self):
        index = TimeSeriesIndex(
            "internet",
            [
                Observation("AAA", 2021, 50.0),
                Observation("BBB", 2021, 70.0),
                Observation("CCC", 2020, 99.0),
                Observation("DDD", 2021, 60.0),
            ],
        )
        year, ranked = top_n(index, n=2)
        assert year == 2021
        assert [o.code for o in ranked] == ["BBB", "DDD"]

    def test_fewer_than_n(self, scenario_index):
        year, ranked = top_n(scenario_index, n=10)
        assert year == 2021
        assert [(o.code, o.value) for o in ranked] == [("USA", 90.0)]

    def test_unavailable_or_empty_index(self):
        assert top_n(None) == (None, [])
        assert top_n(TimeSeriesIndex("internet", [])) == (None, [])

    def test_values_sorted_descending(self):
        index = TimeSeriesIndex("x", [Observation(f"C{i:02d}", 2020, float(i)) for i in range(15)])
        year, ranked = top_n(index)
        values = [o.value for o in ranked]
        assert len(ranked) == 10
        assert values == sorted(values, reverse=True)
        assert not any(math.isnan(v) for v in values)
