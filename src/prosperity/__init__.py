"""Prosperity engine for country indicator ingestion and reconciliation.

This package ingests country-level indicator tables (internet adoption,
GDP per capita, electricity access) and a geographic continent source,
reconciles them on ISO alpha-3 codes and answers latest-value,
point-in-time and grouped queries.
"""

import logging
import os

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


def init_engine_package() -> None:
    """Log package details at debug level."""
    logger.debug("Initializing prosperity engine package")
    logger.debug("   Modules: schema resolution, normalization, time-series index,")
    logger.debug("            reconciliation, continent classification, aggregation")

    package_path = os.path.dirname(os.path.abspath(__file__))
    logger.debug(f"   Package Path: {package_path}")


init_engine_package()
