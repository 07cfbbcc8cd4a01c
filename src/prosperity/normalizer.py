"""Record normalization and unit harmonization.

Turns raw table cells into typed Observations. Malformed rows are dropped
silently and only counted; a whole-table failure is raised only when no
observation survives. Fraction-encoded indicators (0-1) are harmonized to
percentages (0-100) by a pluggable unit heuristic.
"""

import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from prosperity.exceptions import NoDataParsedError
from prosperity.logging_config import create_logger
from prosperity.schema_resolver import ResolvedColumns
from prosperity.timeseries import Observation

logger = create_logger(__name__)


def coerce_value(cell: Any) -> Optional[float]:
    """Parse a numeric cell, tolerating surrounding whitespace and ``%`` signs."""
    if cell is None:
        return None
    if isinstance(cell, (int, float)) and not isinstance(cell, bool):
        value = float(cell)
    else:
        text = str(cell).replace("%", "").strip()
        if not text:
            return None
        try:
            value = float(text)
        except ValueError:
            return None
    return value if math.isfinite(value) else None


def coerce_year(cell: Any) -> Optional[int]:
    """Parse a year cell; only finite integral numbers qualify."""
    value = coerce_value(cell)
    if value is None or not value.is_integer():
        return None
    return int(value)


def normalize_code(cell: Any) -> Optional[str]:
    """Trim and uppercase a country code; empty or non-text cells yield None."""
    if not isinstance(cell, str):
        return None
    code = cell.strip().upper()
    return code or None


def _clean_name(cell: Any) -> Optional[str]:
    if not isinstance(cell, str):
        return None
    name = cell.strip()
    return name or None


class UnitHeuristic:
    """Strategy deciding the multiplier applied to a whole indicator load."""

    def scale_factor(self, values: Sequence[float]) -> float:
        raise NotImplementedError


class NoScaling(UnitHeuristic):
    """Leave values as published."""

    def scale_factor(self, values: Sequence[float]) -> float:
        return 1.0


@dataclass(frozen=True)
class FractionShareHeuristic(UnitHeuristic):
    """Detect fraction-encoded percentages from a sample of parsed values.

    If more than ``threshold`` of the first ``sample_size`` values lie in
    ``(0, 1]`` the whole indicator is treated as fractions and scaled by 100.
    Genuinely small percentages can be misclassified; that risk is accepted.
    """

    sample_size: int = 400
    threshold: float = 0.6

    def scale_factor(self, values: Sequence[float]) -> float:
        sample = list(values[: self.sample_size])
        if not sample:
            return 1.0
        fraction_share = sum(1 for v in sample if 0 < v <= 1) / len(sample)
        return 100.0 if fraction_share > self.threshold else 1.0


@dataclass
class ParseResult:
    """Observations of one table plus counters for silently dropped records."""

    field: str
    observations: List[Observation] = field(default_factory=list)
    records_seen: int = 0
    records_dropped: int = 0
    scale_factor: float = 1.0

    @property
    def scaled(self) -> bool:
        return self.scale_factor != 1.0

    @property
    def records_parsed(self) -> int:
        return len(self.observations)

    def summary(self) -> Dict[str, Any]:
        return {
            "field": self.field,
            "records_seen": self.records_seen,
            "records_parsed": self.records_parsed,
            "records_dropped": self.records_dropped,
            "scale_factor": self.scale_factor,
        }


class RecordNormalizer:
    """Convert resolved table rows into Observations for one indicator field."""

    def __init__(self, field: str, unit_heuristic: Optional[UnitHeuristic] = None):
        self.field = field
        self.unit_heuristic = unit_heuristic or NoScaling()

    def normalize_long(self, table: pd.DataFrame, columns: ResolvedColumns) -> ParseResult:
        """Normalize a long-format table (one observation per row).

        :raises NoDataParsedError: If no row yields a valid observation
        """
        result = ParseResult(field=self.field)
        for record in table.to_dict("records"):
            result.records_seen += 1
            code = normalize_code(record.get(columns.code))
            year = coerce_year(record.get(columns.year))
            value = coerce_value(record.get(columns.value))
            if code is None or year is None or value is None:
                result.records_dropped += 1
                continue
            name = _clean_name(record.get(columns.name)) if columns.name else None
            result.observations.append(Observation(code=code, year=year, value=value, name=name))

        return self._finish(result)

    def normalize_wide(
        self,
        table: pd.DataFrame,
        columns: ResolvedColumns,
        years: Dict[str, int],
    ) -> ParseResult:
        """Normalize a wide-format table (one column per year).

        Every (row, year column) cell counts as one record; empty cells are
        missing observations and are counted as dropped.

        :raises NoDataParsedError: If no cell yields a valid observation
        """
        result = ParseResult(field=self.field)
        for record in table.to_dict("records"):
            code = normalize_code(record.get(columns.code))
            name = _clean_name(record.get(columns.name)) if columns.name else None
            for column, year in years.items():
                result.records_seen += 1
                value = coerce_value(record.get(column))
                if code is None or value is None:
                    result.records_dropped += 1
                    continue
                result.observations.append(Observation(code=code, year=year, value=value, name=name))

        return self._finish(result)

    def _finish(self, result: ParseResult) -> ParseResult:
        if not result.observations:
            raise NoDataParsedError(
                f"No {self.field} rows parsed ({result.records_seen} records examined)"
            )

        factor = self.unit_heuristic.scale_factor([o.value for o in result.observations])
        if factor != 1.0:
            logger.info(
                f"Detected fraction-encoded {self.field} values; scaling by {factor:g}"
            )
            result.observations = [replace(o, value=o.value * factor) for o in result.observations]
            result.scale_factor = factor

        if result.records_dropped:
            logger.info(
                f"{self.field}: {result.records_parsed} records parsed, "
                f"{result.records_dropped} dropped"
            )
        return result
