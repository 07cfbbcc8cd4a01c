#!/usr/bin/env python3
"""Command-line entry point for the prosperity engine.

Loads every configured source into a Session and prints the requested
query result as JSON on stdout. Logs go to stderr.

Examples:
    prosperity report
    prosperity prosperity --year 2020
    prosperity continents --year 2020
    prosperity compare USA FRA
"""

import argparse
import json
import sys
from typing import Any, List, Optional

from prosperity.config import INTERNET_FIELD, validate_config
from prosperity.exceptions import ConfigurationError
from prosperity.ingest.run import Ingest
from prosperity.logging_config import create_logger
from prosperity.session import Session

logger = create_logger(__name__)


def _year(session: Session, year: Optional[int]) -> Optional[int]:
    return year if year is not None else session.default_year()


def run_command(session: Session, args: argparse.Namespace) -> Any:
    """Execute one subcommand against a loaded session."""
    if args.command == "report":
        return {"sources": session.report.to_dict(), "diagnostics": session.report.diagnostics()}

    if args.command == "years":
        return session.available_years()

    if args.command == "prosperity":
        year = _year(session, args.year)
        rows = session.prosperity(year) if year is not None else []
        return {"year": year, "countries": len(rows), "rows": [r.as_dict() for r in rows]}

    if args.command == "continents":
        year = _year(session, args.year)
        if year is None:
            return {"year": None, "countries": 0, "continents": []}
        return session.prosperity_by_continent(year).to_dict()

    if args.command == "gap":
        return [r.as_dict() for r in session.electricity_gap()]

    if args.command == "compare":
        return session.quick_compare(args.code_a, args.code_b)

    if args.command == "top":
        year, ranked = session.top_internet(args.n)
        return {
            "year": year,
            "rows": [
                {"rank": i + 1, "code": o.code, "name": o.name or o.code, INTERNET_FIELD: o.value}
                for i, o in enumerate(ranked)
            ],
        }

    if args.command == "density":
        year = _year(session, args.year)
        values = session.density_snapshot(year, args.min_count) if year is not None else {}
        return {"year": year, "countries": len(values), "values": values}

    raise ValueError(f"Unknown command: {args.command}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prosperity",
        description="Reconcile internet adoption, GDP per capita and electricity access by country",
    )
    parser.add_argument("--indent", type=int, default=2, help="JSON indentation (default: 2)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("report", help="Show per-source load status and quality metrics")
    sub.add_parser("years", help="List years with internet adoption data")

    p = sub.add_parser("prosperity", help="Internet adoption vs GDP per capita for a year")
    p.add_argument("--year", type=int, help="Target year (default: most recent)")

    p = sub.add_parser("continents", help="Continent means of internet adoption and GDP per capita")
    p.add_argument("--year", type=int, help="Target year (default: most recent)")

    sub.add_parser("gap", help="Latest electricity access minus internet adoption")

    p = sub.add_parser("compare", help="Compare two countries by ISO alpha-3 code")
    p.add_argument("code_a")
    p.add_argument("code_b")

    p = sub.add_parser("top", help="Top countries by internet adoption in the latest year")
    p.add_argument("-n", type=int, default=None, help="Number of countries (default: TOP_N)")

    p = sub.add_parser("density", help="Internet adoption values per country for a year")
    p.add_argument("--year", type=int, help="Target year (default: most recent)")
    p.add_argument("--min-count", type=int, default=None, help="Backfill below this many countries")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the prosperity command."""
    args = build_parser().parse_args(argv)

    try:
        config = validate_config()
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    session = Ingest(config).run()
    for line in session.report.diagnostics():
        logger.warning(line)

    print(json.dumps(run_command(session, args), indent=args.indent, default=str))

    if session.index(INTERNET_FIELD) is None:
        logger.error("Primary internet adoption source failed to load")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
