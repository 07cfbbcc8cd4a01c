"""Data quality metrics for loaded indicator indices.

Summarizes each load: how many records were examined, parsed and dropped,
how many countries and years the index covers, and how many duplicate
(code, year) observations were discarded.
"""

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from prosperity.logging_config import create_logger
from prosperity.normalizer import ParseResult
from prosperity.timeseries import TimeSeriesIndex

logger = create_logger(__name__)


@dataclass
class IndexMetrics:
    """Data quality metrics for a single indicator index."""

    field: str
    timestamp: str
    records_seen: int
    records_parsed: int
    records_dropped: int
    completeness_percentage: float
    total_observations: int
    total_countries: int
    total_years: int
    year_range_min: Optional[int]
    year_range_max: Optional[int]
    duplicate_count: int
    scale_factor: float
    issues: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def calculate_index_metrics(index: TimeSeriesIndex, parse_result: ParseResult) -> IndexMetrics:
    """Calculate metrics for an index and the parse that produced it."""
    years = index.years()
    seen = parse_result.records_seen
    completeness = 100.0 * parse_result.records_parsed / seen if seen else 0.0

    issues = []
    if parse_result.records_dropped:
        issues.append(f"{parse_result.records_dropped} records dropped as malformed or empty")
    if index.duplicates_overwritten:
        issues.append(f"{index.duplicates_overwritten} duplicate (code, year) observations discarded")
    if parse_result.scaled:
        issues.append(f"values scaled by {parse_result.scale_factor:g} (fraction-encoded source)")

    metrics = IndexMetrics(
        field=index.field,
        timestamp=datetime.now(timezone.utc).isoformat(),
        records_seen=seen,
        records_parsed=parse_result.records_parsed,
        records_dropped=parse_result.records_dropped,
        completeness_percentage=round(completeness, 2),
        total_observations=len(index),
        total_countries=len(index.codes()),
        total_years=len(years),
        year_range_min=min(years) if years else None,
        year_range_max=max(years) if years else None,
        duplicate_count=index.duplicates_overwritten,
        scale_factor=parse_result.scale_factor,
        issues=issues,
    )
    logger.debug(f"Quality metrics for {index.field}: {metrics.to_dict()}")
    return metrics
