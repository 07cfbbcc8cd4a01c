"""Unit tests for the per-indicator time-series index."""

import pytest

from prosperity.timeseries import Observation, TimeSeriesIndex


# ============================================================================
# Lookup Tests
# ============================================================================

@pytest.mark.unit
class TestLatestLookups:
    """Test latest and point-in-time lookups."""

    def test_scenario(self, scenario_index):
        """USA 2019=80, USA 2021=90, FRA 2020=85."""
        usa_2020 = scenario_index.latest_at_or_before("USA", 2020)
        assert (usa_2020.year, usa_2020.value) == (2019, 80.0)

        usa_latest = scenario_index.latest("USA")
        assert (usa_latest.year, usa_latest.value) == (2021, 90.0)

        fra_latest = scenario_index.latest("FRA")
        assert (fra_latest.year, fra_latest.value) == (2020, 85.0)

        assert scenario_index.latest_at_or_before("FRA", 2019) is None

    def test_exact_year_is_included(self, scenario_index):
        assert scenario_index.latest_at_or_before("USA", 2021).year == 2021
        assert scenario_index.latest_at_or_before("USA", 2019).year == 2019

    def test_year_after_all_observations(self, scenario_index):
        assert scenario_index.latest_at_or_before("USA", 2050).year == 2021

    def test_unknown_code(self, scenario_index):
        assert scenario_index.latest("DEU") is None
        assert scenario_index.latest_at_or_before("DEU", 2020) is None

    @pytest.mark.parametrize("year", range(2015, 2026))
    def test_at_or_before_is_maximal(self, year):
        years = [2016, 2018, 2019, 2023]
        index = TimeSeriesIndex("x", [Observation("AAA", y, float(y)) for y in reversed(years)])
        obs = index.latest_at_or_before("AAA", year)
        candidates = [y for y in years if y <= year]
        if candidates:
            assert obs.year == max(candidates)
        else:
            assert obs is None

    def test_latest_is_maximal_regardless_of_input_order(self):
        index = TimeSeriesIndex(
            "x",
            [Observation("AAA", 2021, 1.0), Observation("AAA", 2010, 2.0), Observation("AAA", 2015, 3.0)],
        )
        assert index.latest("AAA").year == 2021
        assert [o.year for o in index.observations("AAA")] == [2010, 2015, 2021]


# ============================================================================
# Construction Tests
# ============================================================================

@pytest.mark.unit
class TestConstruction:
    """Test index construction and bookkeeping."""

    def test_duplicates_first_row_kept(self):
        index = TimeSeriesIndex(
            "x",
            [
                Observation("AAA", 2020, 1.0),
                Observation("AAA", 2020, 2.0),
                Observation("AAA", 2020, 3.0),
            ],
        )
        assert index.latest("AAA").value == 1.0
        assert index.duplicates_overwritten == 2
        assert len(index) == 1

    def test_duplicate_years_match_linear_scan(self):
        observations = [
            Observation("USA", 2019, 80.0),
            Observation("USA", 2017, 70.0),
            Observation("USA", 2019, 81.0),
            Observation("USA", 2021, 90.0),
            Observation("USA", 2017, 71.0),
            Observation("USA", 2021, 91.0),
        ]
        index = TimeSeriesIndex("internet", observations)

        def linear_scan(year):
            best = None
            for obs in observations:
                if obs.year <= year and (best is None or obs.year > best.year):
                    best = obs
            return best

        for year in range(2015, 2024):
            assert index.latest_at_or_before("USA", year) == linear_scan(year)
        assert index.latest_at_or_before("USA", 2020).value == 80.0
        assert index.latest("USA").value == 90.0

    def test_empty_index(self):
        index = TimeSeriesIndex("x", [])
        assert len(index) == 0
        assert index.codes() == []
        assert index.years() == []
        assert "USA" not in index

    def test_membership_and_length(self, scenario_index):
        assert "USA" in scenario_index
        assert "DEU" not in scenario_index
        assert len(scenario_index) == 3

    def test_codes_in_first_seen_order(self, scenario_index):
        assert scenario_index.codes() == ["USA", "FRA"]

    def test_years_descending(self, scenario_index):
        assert scenario_index.years() == [2021, 2020, 2019]

    def test_observations_returns_copy(self, scenario_index):
        scenario_index.observations("USA").clear()
        assert len(scenario_index.observations("USA")) == 2

    def test_name_for_uses_most_recent_name(self):
        index = TimeSeriesIndex(
            "x",
            [
                Observation("CIV", 2019, 1.0, "Ivory Coast"),
                Observation("CIV", 2020, 2.0, "Cote d'Ivoire"),
                Observation("CIV", 2021, 3.0),
            ],
        )
        assert index.name_for("CIV") == "Cote d'Ivoire"
        assert index.name_for("XXX") is None

    def test_repr(self, scenario_index):
        assert repr(scenario_index) == "TimeSeriesIndex(field='internet', codes=2, observations=3)"


# ============================================================================
# Year Snapshot Tests
# ============================================================================

@pytest.mark.unit
class TestSnapshot:
    """Test exact-year snapshots with sparse-year backfill."""

    def test_at_year(self, scenario_index):
        assert [o.code for o in scenario_index.at_year(2020)] == ["FRA"]
        assert scenario_index.at_year(2018) == []

    def test_snapshot_exact_when_dense_enough(self, scenario_index):
        snapshot = scenario_index.snapshot(2020, min_count=1)
        assert list(snapshot) == ["FRA"]

    def test_snapshot_backfills_when_sparse(self, scenario_index):
        snapshot = scenario_index.snapshot(2020, min_count=2)
        assert snapshot["FRA"].year == 2020
        assert snapshot["USA"].year == 2019

    def test_backfill_never_looks_ahead(self, scenario_index):
        snapshot = scenario_index.snapshot(2019, min_count=5)
        assert list(snapshot) == ["USA"]
        assert snapshot["USA"].value == 80.0
