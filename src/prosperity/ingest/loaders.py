"""Whole-table loaders for long-format and wide-format indicator tables.

Each loader takes the raw text handed over by the retrieval layer (or None
when the source was unavailable) and runs it through schema resolution,
record normalization and index construction. Failures are whole-table
failures and are raised as typed ingest errors.
"""

from dataclasses import dataclass
from typing import Optional

from prosperity.exceptions import IngestError, SourceUnavailableError
from prosperity.logging_config import create_logger
from prosperity.normalizer import (
    FractionShareHeuristic,
    NoScaling,
    ParseResult,
    RecordNormalizer,
    UnitHeuristic,
)
from prosperity.quality_metrics import IndexMetrics, calculate_index_metrics
from prosperity.schema_resolver import (
    DEFAULT_HEADER_SCAN,
    LONG_FORMAT_ALIASES,
    WIDE_FORMAT_ALIASES,
    ColumnAliases,
    read_table,
    resolve_columns,
    year_columns,
)
from prosperity.timeseries import TimeSeriesIndex

logger = create_logger(__name__)


@dataclass
class IndicatorLoad:
    """A loaded indicator: its index plus parse metadata and quality metrics."""

    index: TimeSeriesIndex
    parse_result: ParseResult
    metrics: IndexMetrics


def _require_text(text: Optional[str], field: str, source: Optional[str]) -> str:
    if text is None:
        raise SourceUnavailableError(
            f"Source unavailable for {field}: {source or '<unknown>'}", source=source
        )
    return text


def _finish(field: str, parse_result: ParseResult) -> IndicatorLoad:
    index = TimeSeriesIndex(field, parse_result.observations)
    metrics = calculate_index_metrics(index, parse_result)
    logger.info(
        f"Loaded {field}: {metrics.total_observations} observations for "
        f"{metrics.total_countries} countries ({metrics.year_range_min}-{metrics.year_range_max})"
    )
    return IndicatorLoad(index=index, parse_result=parse_result, metrics=metrics)


def load_long_indicator(
    text: Optional[str],
    field: str,
    aliases: ColumnAliases = LONG_FORMAT_ALIASES,
    unit_heuristic: Optional[UnitHeuristic] = None,
    source: Optional[str] = None,
) -> IndicatorLoad:
    """Load a long-format table (code, year, value, optional name per row).

    Fraction-encoded values are harmonized to percentages unless another
    ``unit_heuristic`` is supplied.

    :raises SourceUnavailableError: If ``text`` is None
    :raises SchemaMismatchError: If code, year or value cannot be resolved
    :raises NoDataParsedError: If no row yields a valid observation
    """
    try:
        table = read_table(_require_text(text, field, source))
        columns = resolve_columns(table.columns, aliases)
        logger.debug(f"{field}: resolved columns {columns}")
        normalizer = RecordNormalizer(field, unit_heuristic or FractionShareHeuristic())
        return _finish(field, normalizer.normalize_long(table, columns))
    except IngestError as e:
        e.source = e.source or source
        raise


def load_wide_indicator(
    text: Optional[str],
    field: str,
    aliases: ColumnAliases = WIDE_FORMAT_ALIASES,
    unit_heuristic: Optional[UnitHeuristic] = None,
    max_scan: int = DEFAULT_HEADER_SCAN,
    source: Optional[str] = None,
) -> IndicatorLoad:
    """Load a wide World-Bank-style table (Country Name, Country Code, year columns).

    Metadata lines before the header are skipped. Values are taken as
    published unless a ``unit_heuristic`` is supplied.

    :raises SourceUnavailableError: If ``text`` is None
    :raises SchemaMismatchError: If the country code column cannot be resolved
    :raises NoDataParsedError: If no cell yields a valid observation
    """
    try:
        table = read_table(_require_text(text, field, source), detect_header=True, max_scan=max_scan)
        columns = resolve_columns(table.columns, aliases)
        years = year_columns(table.columns)
        logger.debug(f"{field}: resolved columns {columns}, {len(years)} year columns")
        normalizer = RecordNormalizer(field, unit_heuristic or NoScaling())
        return _finish(field, normalizer.normalize_wide(table, columns, years))
    except IngestError as e:
        e.source = e.source or source
        raise
