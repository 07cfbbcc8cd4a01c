"""Schema resolution for heterogeneous indicator tables.

Locates the header row of a raw table, normalizes physical column names and
maps the logical columns the engine needs (code, year, value, name) onto
them through a declarative alias table. Wide World-Bank-style tables expose
one column per year; those are detected by name.

Example usage:
    table = read_table(text, detect_header=True)
    columns = resolve_columns(table.columns, WIDE_FORMAT_ALIASES)
    years = year_columns(table.columns)
"""

import io
import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

import pandas as pd
from pandas.errors import EmptyDataError, ParserError

from prosperity.exceptions import SchemaMismatchError
from prosperity.logging_config import create_logger

logger = create_logger(__name__)

HEADER_SIGNATURE = re.compile(r'^"?Country Name"?[,;\t]')
YEAR_COLUMN = re.compile(r"^(\d{4})(?:\s*\[YR\1\])?$")
ZERO_WIDTH = re.compile("[\u200b\u200c\u200d\ufeff]")
NON_ALNUM = re.compile(r"[\W_]+")

DELIMITERS = (",", ";", "\t")
DEFAULT_HEADER_SCAN = 20

LOGICAL_COLUMNS = ("code", "year", "value", "name")


def strip_bom_crlf(text: Optional[str]) -> str:
    """Drop a leading byte-order mark and normalize line endings to LF."""
    if not text:
        return ""
    if text[0] == "\ufeff":
        text = text[1:]
    return text.replace("\r\n", "\n").replace("\r", "\n")


def normalize_column_name(name) -> str:
    """Normalize a column name for fuzzy matching.

    Zero-width characters are removed, every run of non-alphanumeric
    characters becomes a single space, and the result is trimmed and
    lowercased: ``"Share-of-Individuals (%)"`` -> ``"share of individuals"``.
    """
    text = ZERO_WIDTH.sub("", str(name or ""))
    return NON_ALNUM.sub(" ", text).strip().lower()


def build_column_lookup(columns: Iterable[str]) -> Dict[str, str]:
    """Map normalized names to physical names; first occurrence wins."""
    lookup: Dict[str, str] = {}
    for column in columns:
        key = normalize_column_name(column)
        if key and key not in lookup:
            lookup[key] = column
    return lookup


def find_header_row(lines: Sequence[str], max_scan: int = DEFAULT_HEADER_SCAN) -> int:
    """Return the index of the "Country Name" header line, or 0 if absent."""
    for i, line in enumerate(lines[:max_scan]):
        if HEADER_SIGNATURE.match(line):
            return i
    return 0


def detect_delimiter(header_line: str) -> str:
    """Pick the most frequent of comma, semicolon and tab (comma on ties)."""
    counts = [(header_line.count(d), -i, d) for i, d in enumerate(DELIMITERS)]
    best = max(counts)
    return best[2] if best[0] > 0 else ","


def year_columns(columns: Iterable[str]) -> Dict[str, int]:
    """Map each year-valued physical column (``2019`` or ``2019 [YR2019]``) to its year."""
    years: Dict[str, int] = {}
    for column in columns:
        match = YEAR_COLUMN.match(ZERO_WIDTH.sub("", str(column)).strip())
        if match:
            years[column] = int(match.group(1))
    return years


@dataclass(frozen=True)
class ColumnAliases:
    """Declarative table of acceptable aliases per logical column.

    Aliases are tried in order and compared after normalization, so new
    spellings can be added without touching the matching code.
    """

    code: Tuple[str, ...] = ("code", "country code")
    year: Tuple[str, ...] = ("year",)
    value: Tuple[str, ...] = ("value",)
    name: Tuple[str, ...] = ("entity", "country", "country name")
    required: FrozenSet[str] = frozenset({"code", "year", "value"})

    def aliases_for(self, logical: str) -> Tuple[str, ...]:
        return getattr(self, logical)


LONG_FORMAT_ALIASES = ColumnAliases(
    value=(
        "share of individuals using the internet",
        "share-of-individuals-using-the-internet",
        "internet users (share of population)",
        "individuals using the internet % of population",
        "value",
    ),
)

WIDE_FORMAT_ALIASES = ColumnAliases(
    code=("country code",),
    year=(),
    value=(),
    name=("country name",),
    required=frozenset({"code"}),
)


@dataclass(frozen=True)
class ResolvedColumns:
    """Physical column names for each logical column (None when unresolved)."""

    code: Optional[str] = None
    year: Optional[str] = None
    value: Optional[str] = None
    name: Optional[str] = None


def resolve_columns(columns: Iterable[str], aliases: ColumnAliases) -> ResolvedColumns:
    """Resolve logical columns onto physical column names.

    :param columns: Physical column names of the table
    :param aliases: Alias table to match against
    :return: ResolvedColumns with the first matching alias per logical column
    :raises SchemaMismatchError: If a required logical column is unresolved
    """
    lookup = build_column_lookup(columns)
    resolved: Dict[str, Optional[str]] = {}
    for logical in LOGICAL_COLUMNS:
        resolved[logical] = next(
            (
                lookup[normalize_column_name(alias)]
                for alias in aliases.aliases_for(logical)
                if normalize_column_name(alias) in lookup
            ),
            None,
        )

    missing = [name for name in LOGICAL_COLUMNS if name in aliases.required and not resolved[name]]
    if missing:
        raise SchemaMismatchError(
            f"Schema mismatch: could not resolve {', '.join(missing)} "
            f"among columns {list(lookup.values())}",
            missing=missing,
        )

    return ResolvedColumns(**resolved)


def read_table(
    text: Optional[str],
    detect_header: bool = False,
    max_scan: int = DEFAULT_HEADER_SCAN,
) -> pd.DataFrame:
    """Parse raw delimited text into a string-typed DataFrame.

    With ``detect_header`` the first ``max_scan`` lines are searched for the
    World Bank header signature and any preceding metadata lines are dropped.
    Cells are kept as text; empty cells stay ``""``.

    :raises SchemaMismatchError: If the text holds no parseable header
    """
    lines: List[str] = strip_bom_crlf(text).split("\n")
    header_idx = find_header_row(lines, max_scan) if detect_header else 0
    if header_idx:
        logger.debug(f"Skipping {header_idx} metadata line(s) before header")
    lines = lines[header_idx:]

    if not lines or not lines[0].strip():
        raise SchemaMismatchError("Schema mismatch: table has no header row")

    delimiter = detect_delimiter(lines[0])
    try:
        return pd.read_csv(
            io.StringIO("\n".join(lines)),
            sep=delimiter,
            dtype=str,
            keep_default_na=False,
            na_filter=False,
            skip_blank_lines=True,
            on_bad_lines="skip",
        )
    except (EmptyDataError, ParserError) as e:
        raise SchemaMismatchError(f"Schema mismatch: unreadable table ({e})")
