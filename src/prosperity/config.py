"""Configuration module for project settings and environment variables.

This module manages source locations, heuristic thresholds and runtime
parameters for the prosperity engine. Values come from the environment
(optionally a ``.env`` file) and are bundled into an ``EngineConfig`` that
is handed to each ingest run, so no component reads hidden globals.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from dotenv import load_dotenv

from prosperity.exceptions import ConfigurationError
from prosperity.logging_config import create_logger

load_dotenv()

logger = create_logger(__name__)

# get the local root directory
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

DATA_DIR = os.getenv("DATA_DIR", os.path.join(ROOT_DIR, "data"))

# Source locations: local paths (relative to DATA_DIR), http(s) URLs or s3:// URIs
INTERNET_USERS_SOURCE = os.getenv(
    "INTERNET_USERS_SOURCE", "share-of-individuals-using-the-internet.csv"
)
GDP_SOURCE = os.getenv("GDP_SOURCE", "API_NY.GDP.PCAP.CD_DS2_en_csv_v2_24794.csv")
ELECTRICITY_SOURCE = os.getenv(
    "ELECTRICITY_SOURCE", "API_EG.ELC.ACCS.ZS_DS2_en_csv_v2_568.csv"
)
GEOJSON_SOURCE = os.getenv("GEOJSON_SOURCE", "countries.geojson")

# Schema and unit heuristics
HEADER_SCAN_LINES = os.getenv("HEADER_SCAN_LINES", "20")
UNIT_SAMPLE_SIZE = os.getenv("UNIT_SAMPLE_SIZE", "400")
FRACTION_SHARE_THRESHOLD = os.getenv("FRACTION_SHARE_THRESHOLD", "0.6")

# Query defaults
DENSITY_MIN_COUNTRIES = os.getenv("DENSITY_MIN_COUNTRIES", "20")
TOP_N = os.getenv("TOP_N", "10")

# Runtime
MAX_WORKERS = os.getenv("MAX_WORKERS", "4")
HTTP_TIMEOUT = os.getenv("HTTP_TIMEOUT", "30")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Indicator field names used throughout the engine
INTERNET_FIELD = "internet"
GDP_FIELD = "gdp"
ELECTRICITY_FIELD = "elec"

# Table layout per indicator: "long" (one observation per row) or "wide" (one column per year)
INDICATOR_FORMATS = {
    INTERNET_FIELD: "long",
    GDP_FIELD: "wide",
    ELECTRICITY_FIELD: "wide",
}


def _as_int(name: str, value, minimum: int = 0) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if parsed < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {parsed}")
    return parsed


def _as_float(name: str, value, low: float, high: float) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    if not low <= parsed <= high:
        raise ConfigurationError(f"{name} must be within [{low}, {high}], got {parsed}")
    return parsed


def _env_int(name: str, default: str, minimum: int = 0):
    return field(default_factory=lambda: _as_int(name, os.getenv(name, default), minimum))


def _env_float(name: str, default: str, low: float, high: float):
    return field(default_factory=lambda: _as_float(name, os.getenv(name, default), low, high))


@dataclass(frozen=True)
class EngineConfig:
    """Resolved engine settings for one ingest run.

    Numeric settings not passed explicitly are read and validated from the
    environment when the config is created, so a bare ``EngineConfig()``
    and ``EngineConfig.from_env()`` agree on them.
    """

    data_dir: str = DATA_DIR
    sources: Dict[str, str] = field(
        default_factory=lambda: {
            INTERNET_FIELD: INTERNET_USERS_SOURCE,
            GDP_FIELD: GDP_SOURCE,
            ELECTRICITY_FIELD: ELECTRICITY_SOURCE,
        }
    )
    geojson_source: Optional[str] = GEOJSON_SOURCE
    header_scan_lines: int = _env_int("HEADER_SCAN_LINES", HEADER_SCAN_LINES, 1)
    unit_sample_size: int = _env_int("UNIT_SAMPLE_SIZE", UNIT_SAMPLE_SIZE, 1)
    fraction_share_threshold: float = _env_float(
        "FRACTION_SHARE_THRESHOLD", FRACTION_SHARE_THRESHOLD, 0.0, 1.0
    )
    density_min_countries: int = _env_int("DENSITY_MIN_COUNTRIES", DENSITY_MIN_COUNTRIES)
    top_n: int = _env_int("TOP_N", TOP_N, 1)
    max_workers: int = _env_int("MAX_WORKERS", MAX_WORKERS, 1)
    http_timeout: float = _env_float("HTTP_TIMEOUT", HTTP_TIMEOUT, 0.1, 3600.0)

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build a validated config from the current environment."""
        return cls(
            data_dir=os.getenv("DATA_DIR", DATA_DIR),
            sources={
                INTERNET_FIELD: os.getenv("INTERNET_USERS_SOURCE", INTERNET_USERS_SOURCE),
                GDP_FIELD: os.getenv("GDP_SOURCE", GDP_SOURCE),
                ELECTRICITY_FIELD: os.getenv("ELECTRICITY_SOURCE", ELECTRICITY_SOURCE),
            },
            geojson_source=os.getenv("GEOJSON_SOURCE", GEOJSON_SOURCE) or None,
        )


def validate_config() -> EngineConfig:
    """
    Validate configuration parameters.

    :return: The validated EngineConfig
    :raises ConfigurationError: If configuration is invalid
    """
    config = EngineConfig.from_env()

    if not config.data_dir:
        raise ConfigurationError("Missing required directory configuration: DATA_DIR")

    for field_name, location in config.sources.items():
        if not location:
            raise ConfigurationError(f"Missing source location for indicator '{field_name}'")

    if not os.path.isdir(config.data_dir):
        logger.warning(f"Data directory does not exist: {config.data_dir}")

    logger.debug("Configuration validation successful")
    return config
