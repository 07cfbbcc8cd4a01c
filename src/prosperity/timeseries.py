"""In-memory time-series index for one indicator.

Each country code maps to its observations ordered by year, which makes the
"latest value" and "latest value at or before year Y" lookups a constant-time
read and a binary search respectively.
"""

from bisect import bisect_right
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from prosperity.logging_config import create_logger

logger = create_logger(__name__)


@dataclass(frozen=True)
class Observation:
    """One indicator value for a country in a year."""

    code: str
    year: int
    value: float
    name: Optional[str] = None


class TimeSeriesIndex:
    """Per-indicator index from country code to observations ordered by year.

    Built once from a list of observations and immutable afterwards; a
    re-load builds a new index. A table may hold at most one observation per
    (code, year); when it holds more, the first row in natural order is kept
    and ``duplicates_overwritten`` counts the later ones discarded. Lookups
    therefore return the same observation as a linear scan that keeps the
    first row with the maximal year.
    """

    def __init__(self, field: str, observations: Iterable[Observation]):
        self.field = field
        by_code: Dict[str, Dict[int, Observation]] = {}
        self.duplicates_overwritten = 0

        for obs in observations:
            years = by_code.setdefault(obs.code, {})
            if obs.year in years:
                self.duplicates_overwritten += 1
                continue
            years[obs.year] = obs

        self._series: Dict[str, List[Observation]] = {}
        self._years: Dict[str, List[int]] = {}
        for code, years in by_code.items():
            ordered = [years[y] for y in sorted(years)]
            self._series[code] = ordered
            self._years[code] = [o.year for o in ordered]

        if self.duplicates_overwritten:
            logger.warning(
                f"{field}: {self.duplicates_overwritten} duplicate (code, year) "
                f"observations discarded in favour of earlier rows"
            )

    def __contains__(self, code: str) -> bool:
        return code in self._series

    def __len__(self) -> int:
        return sum(len(obs) for obs in self._series.values())

    def __repr__(self) -> str:
        return f"TimeSeriesIndex(field={self.field!r}, codes={len(self._series)}, observations={len(self)})"

    def codes(self) -> List[str]:
        """Country codes in first-seen order."""
        return list(self._series)

    def observations(self, code: str) -> List[Observation]:
        """All observations for a code, oldest first."""
        return list(self._series.get(code, ()))

    def years(self) -> List[int]:
        """Distinct years present in the index, most recent first."""
        return sorted({y for years in self._years.values() for y in years}, reverse=True)

    def name_for(self, code: str) -> Optional[str]:
        """Most recent non-empty display name recorded for a code."""
        for obs in reversed(self._series.get(code, ())):
            if obs.name:
                return obs.name
        return None

    def latest(self, code: str) -> Optional[Observation]:
        """Observation with the maximum year for a code, or None."""
        series = self._series.get(code)
        return series[-1] if series else None

    def latest_at_or_before(self, code: str, year: int) -> Optional[Observation]:
        """Observation with the maximum year <= ``year`` for a code, or None."""
        years = self._years.get(code)
        if not years:
            return None
        pos = bisect_right(years, year)
        return self._series[code][pos - 1] if pos else None

    def at_year(self, year: int) -> List[Observation]:
        """Observations recorded exactly in ``year``, one per code."""
        hits = []
        for code, years in self._years.items():
            pos = bisect_right(years, year)
            if pos and years[pos - 1] == year:
                hits.append(self._series[code][pos - 1])
        return hits

    def snapshot(self, year: int, min_count: int = 0) -> Dict[str, Observation]:
        """Per-code values for a year, backfilled when the year is sparse.

        Returns the observations recorded exactly in ``year``. If fewer than
        ``min_count`` codes report that year, every code's latest observation
        at or before ``year`` is used instead.
        """
        exact = {o.code: o for o in self.at_year(year)}
        if len(exact) >= min_count:
            return exact

        backfilled = {}
        for code in self._series:
            obs = self.latest_at_or_before(code, year)
            if obs is not None:
                backfilled[code] = obs
        return backfilled
