"""Session context owning one snapshot of loaded indicator data.

A Session is built by ``prosperity.ingest.run.Ingest`` and holds the
indicator indices, the continent map and the load report. All dashboard
queries run against this snapshot; nothing is cached at module level, and a
re-load produces a new Session.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from prosperity.aggregator import AggregateGroup, group_means, top_n
from prosperity.config import ELECTRICITY_FIELD, GDP_FIELD, INTERNET_FIELD, EngineConfig
from prosperity.error_handler import STATUS_OK
from prosperity.logging_config import create_logger
from prosperity.quality_metrics import IndexMetrics
from prosperity.reconciler import DerivedMetric, ReconciledRow, Reconciler, sort_by_name
from prosperity.timeseries import Observation, TimeSeriesIndex

logger = create_logger(__name__)

GAP_FIELD = "gap"
CONTINENT_FIELD = "continent"


@dataclass
class SourceStatus:
    """Outcome of loading one source."""

    name: str
    location: Optional[str]
    status: str = STATUS_OK
    message: str = ""
    metrics: Optional[IndexMetrics] = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "location": self.location,
            "status": self.status,
            "message": self.message,
            "metrics": self.metrics.to_dict() if self.metrics else None,
        }


@dataclass
class LoadReport:
    """Per-source outcomes of an ingest run."""

    sources: Dict[str, SourceStatus] = field(default_factory=dict)

    def add(self, status: SourceStatus) -> None:
        self.sources[status.name] = status

    def failed(self) -> List[SourceStatus]:
        return [s for s in self.sources.values() if not s.ok]

    def diagnostics(self) -> List[str]:
        """Human-readable message per failed source."""
        return [f"{s.name} ({s.location}): {s.status}: {s.message}" for s in self.failed()]

    def to_dict(self) -> Dict[str, Any]:
        return {name: status.to_dict() for name, status in self.sources.items()}


@dataclass
class ContinentSummary:
    """Continent means for one target year."""

    year: int
    groups: List[AggregateGroup]
    countries: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "countries": self.countries,
            "continents": [g.as_dict(CONTINENT_FIELD) for g in self.groups],
        }


@dataclass
class Session:
    """One in-memory snapshot of indices, continent labels and load outcomes."""

    indices: Dict[str, Optional[TimeSeriesIndex]]
    continents: Mapping[str, str]
    report: LoadReport = field(default_factory=LoadReport)
    config: EngineConfig = field(default_factory=EngineConfig)

    def index(self, name: str) -> Optional[TimeSeriesIndex]:
        return self.indices.get(name)

    def available_years(self, name: str = INTERNET_FIELD) -> List[int]:
        """Distinct years of an indicator, most recent first."""
        index = self.index(name)
        return index.years() if index is not None else []

    def default_year(self) -> Optional[int]:
        years = self.available_years()
        return years[0] if years else None

    def prosperity(self, year: int) -> List[ReconciledRow]:
        """Internet adoption vs GDP per capita at or before ``year``, sorted by name."""
        reconciler = Reconciler(
            primary=self.index(INTERNET_FIELD),
            required={GDP_FIELD: self.index(GDP_FIELD)},
            require_positive=[GDP_FIELD],
        )
        return sort_by_name(reconciler.join_at_or_before(year))

    def prosperity_by_continent(self, year: int) -> ContinentSummary:
        """Mean internet adoption and GDP per capita per continent."""
        reconciler = Reconciler(
            primary=self.index(INTERNET_FIELD),
            required={GDP_FIELD: self.index(GDP_FIELD)},
            require_positive=[GDP_FIELD],
            categories=self.continents,
            category_field=CONTINENT_FIELD,
            require_category=True,
        )
        rows = reconciler.join_at_or_before(year)
        groups = group_means(rows, key=CONTINENT_FIELD, fields=[INTERNET_FIELD, GDP_FIELD])
        return ContinentSummary(year=year, groups=groups, countries=len(rows))

    def electricity_gap(self) -> List[ReconciledRow]:
        """Latest electricity access minus latest internet adoption, per country."""
        reconciler = Reconciler(
            primary=self.index(INTERNET_FIELD),
            required={ELECTRICITY_FIELD: self.index(ELECTRICITY_FIELD)},
            derived=[DerivedMetric(GAP_FIELD, minuend=ELECTRICITY_FIELD, subtrahend=INTERNET_FIELD)],
        )
        return reconciler.join_latest()

    def quick_compare(self, code_a: str, code_b: str) -> Dict[str, Dict[str, Any]]:
        """Latest internet, GDP per capita and electricity gap for two countries.

        Indicators that cannot be resolved for a country are reported as None.
        """
        reconciler = Reconciler(
            primary=self.index(INTERNET_FIELD),
            optional={
                GDP_FIELD: self.index(GDP_FIELD),
                ELECTRICITY_FIELD: self.index(ELECTRICITY_FIELD),
            },
            derived=[DerivedMetric(GAP_FIELD, minuend=ELECTRICITY_FIELD, subtrahend=INTERNET_FIELD)],
        )
        rows = {row.code: row for row in reconciler.join_latest()}

        out: Dict[str, Dict[str, Any]] = {}
        for label, code in (("A", code_a), ("B", code_b)):
            code = code.strip().upper()
            row = rows.get(code)
            out[label] = {
                "code": code,
                "name": row.name if row else code,
                INTERNET_FIELD: row.get(INTERNET_FIELD) if row else None,
                GDP_FIELD: row.get(GDP_FIELD) if row else None,
                GAP_FIELD: row.get(GAP_FIELD) if row else None,
            }
        return out

    def countries(self) -> List[Tuple[str, str]]:
        """(code, name) of every country with internet data, sorted by name."""
        index = self.index(INTERNET_FIELD)
        if index is None:
            return []
        pairs = [(code, index.name_for(code) or code) for code in index.codes()]
        return sorted(pairs, key=lambda p: (p[1].casefold(), p[0]))

    def top_internet(self, n: Optional[int] = None) -> Tuple[Optional[int], List[Observation]]:
        """Top countries by internet adoption in the most recent year."""
        return top_n(self.index(INTERNET_FIELD), n or self.config.top_n)

    def density_snapshot(self, year: int, min_count: Optional[int] = None) -> Dict[str, float]:
        """Internet adoption per country for ``year``, backfilled when sparse."""
        index = self.index(INTERNET_FIELD)
        if index is None:
            return {}
        if min_count is None:
            min_count = self.config.density_min_countries
        snapshot = index.snapshot(year, min_count=min_count)
        return {code: obs.value for code, obs in snapshot.items()}
