"""Cross-indicator reconciliation.

Joins several TimeSeriesIndex instances on country code, either on each
indicator's latest observation or on the latest observation at or before a
target year, and computes derived metrics such as the gap between two
indicators.

Example usage:
    reconciler = Reconciler(
        primary=indices["internet"],
        required={"gdp": indices["gdp"]},
        derived=[DerivedMetric("gap", minuend="elec", subtrahend="internet")],
    )
    rows = reconciler.join_at_or_before(2020)
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from prosperity.logging_config import create_logger
from prosperity.timeseries import Observation, TimeSeriesIndex
from prosperity.utils import is_finite_number

logger = create_logger(__name__)


@dataclass(frozen=True)
class DerivedMetric:
    """``name = minuend - subtrahend``, emitted only when both values are finite."""

    name: str
    minuend: str
    subtrahend: str

    def compute(self, values: Mapping[str, float]) -> Optional[float]:
        a = values.get(self.minuend)
        b = values.get(self.subtrahend)
        if is_finite_number(a) and is_finite_number(b):
            return a - b
        return None


@dataclass
class ReconciledRow:
    """One country joined across indicators.

    ``year`` is the representative year of a point-in-time join (the oldest
    contributing observation) and None for a latest-value join, where each
    indicator keeps its own year in ``years``.
    """

    code: str
    name: str
    year: Optional[int]
    values: Dict[str, float] = field(default_factory=dict)
    years: Dict[str, int] = field(default_factory=dict)
    category: Optional[str] = None
    category_field: str = "continent"

    def get(self, key: str, default: Any = None) -> Any:
        if key == self.category_field:
            return self.category if self.category is not None else default
        return self.values.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"code": self.code, "name": self.name, "year": self.year}
        out.update(self.values)
        for name, year in self.years.items():
            out[f"{name}_year"] = year
        if self.category is not None:
            out[self.category_field] = self.category
        return out


def sort_by_name(rows: Iterable[ReconciledRow]) -> List[ReconciledRow]:
    """Alphabetical by display name (case-insensitive), then code."""
    return sorted(rows, key=lambda r: (r.name.casefold(), r.code))


class Reconciler:
    """Join a primary indicator index with required and optional indices.

    Rows are produced for codes of the primary index only. A required index
    that is None (its source failed to load) makes every join empty; an
    optional index that is None simply contributes nothing.
    """

    def __init__(
        self,
        primary: Optional[TimeSeriesIndex],
        required: Optional[Mapping[str, Optional[TimeSeriesIndex]]] = None,
        optional: Optional[Mapping[str, Optional[TimeSeriesIndex]]] = None,
        derived: Sequence[DerivedMetric] = (),
        require_positive: Iterable[str] = (),
        categories: Optional[Mapping[str, str]] = None,
        category_field: str = "continent",
        require_category: bool = False,
    ):
        self.primary = primary
        self.required = dict(required or {})
        self.optional = dict(optional or {})
        self.derived = list(derived)
        self.require_positive = frozenset(require_positive)
        self.categories = categories
        self.category_field = category_field
        self.require_category = require_category

    def _missing_required(self) -> List[str]:
        missing = [] if self.primary is not None else ["<primary>"]
        missing.extend(name for name, index in self.required.items() if index is None)
        return missing

    def join_latest(self) -> List[ReconciledRow]:
        """Join on each indicator's own latest observation."""
        return self._join(lambda index, code: index.latest(code), shared_year=False)

    def join_at_or_before(self, year: int) -> List[ReconciledRow]:
        """Join on the latest observation at or before ``year`` per indicator.

        The row year is the minimum of the contributing years, reflecting the
        staleness of the oldest source.
        """
        return self._join(lambda index, code: index.latest_at_or_before(code, year), shared_year=True)

    def _join(self, pick, shared_year: bool) -> List[ReconciledRow]:
        missing = self._missing_required()
        if missing:
            logger.warning(f"Join skipped, required indicator(s) unavailable: {', '.join(missing)}")
            return []

        rows: List[ReconciledRow] = []
        for code in self.primary.codes():
            row = self._build_row(code, pick, shared_year)
            if row is not None:
                rows.append(row)

        logger.debug(f"Reconciled {len(rows)} rows from {len(self.primary.codes())} primary codes")
        return rows

    def _build_row(self, code: str, pick, shared_year: bool) -> Optional[ReconciledRow]:
        primary_obs = pick(self.primary, code)
        if primary_obs is None:
            return None

        hits: Dict[str, Observation] = {self.primary.field: primary_obs}
        for name, index in self.required.items():
            obs = pick(index, code)
            if obs is None:
                return None
            hits[name] = obs
        for name, index in self.optional.items():
            obs = pick(index, code) if index is not None else None
            if obs is not None:
                hits[name] = obs

        values = {name: obs.value for name, obs in hits.items()}
        if any(not values.get(name, 0) > 0 for name in self.require_positive if name in hits):
            return None

        category = None
        if self.categories is not None:
            category = self.categories.get(code)
        if self.require_category and not category:
            return None

        for metric in self.derived:
            result = metric.compute(values)
            if result is not None:
                values[metric.name] = result

        name = next((obs.name for obs in hits.values() if obs.name), None) or code
        years = {field_name: obs.year for field_name, obs in hits.items()}
        return ReconciledRow(
            code=code,
            name=name,
            year=min(years.values()) if shared_year else None,
            values=values,
            years=years,
            category=category,
            category_field=self.category_field,
        )
