"""Grouped aggregation and ranking over reconciled indicator data."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from prosperity.logging_config import create_logger
from prosperity.timeseries import Observation, TimeSeriesIndex
from prosperity.utils import is_finite_number

logger = create_logger(__name__)


@dataclass
class AggregateGroup:
    """Row count and unweighted means of numeric fields for one group."""

    key: str
    count: int
    means: Dict[str, float] = field(default_factory=dict)

    def as_dict(self, key_name: str = "key") -> Dict[str, Any]:
        out: Dict[str, Any] = {key_name: self.key, "n": self.count}
        for name, mean in self.means.items():
            out[f"{name}_mean"] = mean
        return out


def group_means(rows: Iterable[Any], key: str, fields: Sequence[str]) -> List[AggregateGroup]:
    """Group rows by a categorical key and average numeric fields.

    Rows may be dicts or ReconciledRow objects. Rows without a key are
    skipped. ``count`` is the number of rows in the group; each mean is the
    plain sum divided by the number of rows carrying a finite value for
    that field. When every row in the group carries the field, as the
    joined rows built by the Session always do, that divisor is ``count``.
    A row missing a field still counts toward ``count`` but does not drag
    that field's mean towards zero. Groups appear in first-seen order and
    only when non-empty.
    """
    counts: Dict[str, int] = {}
    sums: Dict[str, Dict[str, float]] = {}
    contributors: Dict[str, Dict[str, int]] = {}

    for row in rows:
        group = row.get(key)
        if not group:
            continue
        counts[group] = counts.get(group, 0) + 1
        group_sums = sums.setdefault(group, {})
        group_n = contributors.setdefault(group, {})
        for name in fields:
            value = row.get(name)
            if is_finite_number(value):
                group_sums[name] = group_sums.get(name, 0.0) + value
                group_n[name] = group_n.get(name, 0) + 1

    groups = []
    for group, count in counts.items():
        means = {
            name: sums[group][name] / contributors[group][name]
            for name in fields
            if contributors[group].get(name)
        }
        groups.append(AggregateGroup(key=group, count=count, means=means))
    return groups


def top_n(index: Optional[TimeSeriesIndex], n: int = 10) -> Tuple[Optional[int], List[Observation]]:
    """Highest latest values among codes whose latest year is the most recent.

    :return: (year, observations sorted by value descending); (None, []) when
        the index is unavailable or empty
    """
    if index is None:
        return None, []

    latest = [index.latest(code) for code in index.codes()]
    latest = [obs for obs in latest if obs is not None]
    if not latest:
        return None, []

    year = max(obs.year for obs in latest)
    ranked = sorted((obs for obs in latest if obs.year == year), key=lambda o: o.value, reverse=True)
    return year, ranked[:n]
