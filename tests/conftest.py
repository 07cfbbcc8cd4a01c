"""Pytest configuration and shared fixtures for prosperity engine tests.

This module provides fixtures for:
- Raw indicator payloads (long-format, World Bank wide-format, GeoJSON)
- Prebuilt time-series indices
- Mock AWS S3 services using moto
- Temporary data directories and engine configuration
"""

import json
import tempfile
from pathlib import Path
from typing import Dict, Generator

import boto3
import pytest
from moto import mock_aws

from prosperity.config import ELECTRICITY_FIELD, GDP_FIELD, INTERNET_FIELD, EngineConfig
from prosperity.timeseries import Observation, TimeSeriesIndex


# ============================================================================
# Raw Payload Fixtures
# ============================================================================

@pytest.fixture(scope="session")
def internet_csv_text() -> str:
    """Long-format internet adoption table, values in percent."""
    return (
        "Entity,Code,Year,Share of individuals using the internet\n"
        "France,FRA,2019,83.3\n"
        "France,FRA,2020,84.8\n"
        "Germany,DEU,2020,89.8\n"
        "Japan,JPN,2020,90.2\n"
        "Nigeria,NGA,2020,35.5\n"
        "Russia,RUS,2020,85.0\n"
        "United States,USA,2019,89.4\n"
        "United States,USA,2021,91.8\n"
        "World,OWID_WRL,2020,59.1\n"
    )


@pytest.fixture(scope="session")
def fraction_csv_text() -> str:
    """Long-format internet table with fraction-encoded values and noise rows."""
    return (
        "\ufeffCountry,Country Code,Year,Internet users (share of population)\r\n"
        "France,FRA,2019,0.833\r\n"
        "France,FRA,2020,0.848\r\n"
        "Germany,DEU,2020,0.898\r\n"
        "Nigeria,NGA,2020,0.355\r\n"
        "United States,USA,2020,0.909\r\n"
        "Nowhere,,2020,0.5\r\n"
        "Bad Year,BYR,20x0,0.5\r\n"
        "Bad Value,BVL,2020,n/a\r\n"
    )


@pytest.fixture(scope="session")
def gdp_csv_text() -> str:
    """World Bank wide-format GDP per capita table with a metadata preamble."""
    return (
        '"Data Source","World Development Indicators",\n'
        "\n"
        '"Last Updated Date","2024-06-28",\n'
        "\n"
        '"Country Name","Country Code","Indicator Name","Indicator Code","2019","2020","2021",\n'
        '"France","FRA","GDP per capita (current US$)","NY.GDP.PCAP.CD","40494.9","39169.9","43659.0",\n'
        '"Germany","DEU","GDP per capita (current US$)","NY.GDP.PCAP.CD","46805.1","46772.8","51203.6",\n'
        '"Japan","JPN","GDP per capita (current US$)","NY.GDP.PCAP.CD","40415.9","40040.8","",\n'
        '"Nigeria","NGA","GDP per capita (current US$)","NY.GDP.PCAP.CD","2334.0","2074.6","2065.7",\n'
        '"Russian Federation","RUS","GDP per capita (current US$)","NY.GDP.PCAP.CD","11497.6","10194.4","12194.8",\n'
        '"United States","USA","GDP per capita (current US$)","NY.GDP.PCAP.CD","65120.4","63528.6","70248.6",\n'
    )


@pytest.fixture(scope="session")
def electricity_csv_text() -> str:
    """World Bank wide-format electricity access table without a preamble."""
    return (
        "Country Name,Country Code,Indicator Name,Indicator Code,2019,2020,2021\n"
        "France,FRA,Access to electricity (% of population),EG.ELC.ACCS.ZS,100,100,100\n"
        "Nigeria,NGA,Access to electricity (% of population),EG.ELC.ACCS.ZS,55.4,55.4,59.5\n"
        "United States,USA,Access to electricity (% of population),EG.ELC.ACCS.ZS,100,100,100\n"
    )


@pytest.fixture(scope="session")
def feature_collection() -> Dict:
    """GeoJSON-like feature collection using several property spellings."""
    return {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "properties": {"ISO_A3": "FRA", "CONTINENT": "Europe"}},
            {
                "type": "Feature",
                "properties": {"ISO3166-1-Alpha-3": "usa", "continent": "North America"},
            },
            {"type": "Feature", "properties": {"ISO_A3": "RUS", "CONTINENT": "Asia"}},
            {
                "type": "Feature",
                "properties": {"ISO_A3": "-99", "ADM0_A3": "NGA", "region_un": "Africa"},
            },
            {"type": "Feature", "properties": {"ISO_A3": "ATA"}},
            {"type": "Feature", "properties": None},
        ],
    }


# ============================================================================
# Index Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def scenario_index() -> TimeSeriesIndex:
    """USA 2019=80, USA 2021=90, FRA 2020=85."""
    return TimeSeriesIndex(
        INTERNET_FIELD,
        [
            Observation("USA", 2019, 80.0, "United States"),
            Observation("USA", 2021, 90.0, "United States"),
            Observation("FRA", 2020, 85.0, "France"),
        ],
    )


@pytest.fixture(scope="function")
def gdp_index() -> TimeSeriesIndex:
    """GDP per capita for USA, FRA and a zero-valued entry for ZZZ."""
    return TimeSeriesIndex(
        GDP_FIELD,
        [
            Observation("USA", 2018, 62000.0, "United States of America"),
            Observation("USA", 2020, 63500.0, "United States of America"),
            Observation("FRA", 2020, 39000.0, "France"),
            Observation("ZZZ", 2020, 0.0),
        ],
    )


@pytest.fixture(scope="function")
def electricity_index() -> TimeSeriesIndex:
    """Electricity access for USA and FRA."""
    return TimeSeriesIndex(
        ELECTRICITY_FIELD,
        [
            Observation("USA", 2020, 100.0),
            Observation("FRA", 2019, 99.5),
        ],
    )


# ============================================================================
# AWS S3 Mocking Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def aws_credentials(monkeypatch):
    """Mock AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture(scope="function")
def s3_client(aws_credentials):
    """Provide a boto3 S3 client backed by moto.

    Yields:
        boto3 S3 client
    """
    with mock_aws():
        yield boto3.client("s3", region_name="us-east-1")


@pytest.fixture(scope="function")
def s3_bucket(s3_client) -> str:
    """Create a test S3 bucket.

    Returns:
        S3 bucket name
    """
    bucket_name = "test-prosperity-sources"
    s3_client.create_bucket(Bucket=bucket_name)
    return bucket_name


# ============================================================================
# Temporary File Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for testing.

    Yields:
        Path to temporary directory
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(scope="function")
def data_dir(
    temp_dir: Path,
    internet_csv_text: str,
    gdp_csv_text: str,
    electricity_csv_text: str,
    feature_collection: Dict,
) -> Path:
    """Write every source file into a temporary data directory.

    Returns:
        Path to the data directory
    """
    (temp_dir / "internet.csv").write_text(internet_csv_text, encoding="utf-8")
    (temp_dir / "gdp.csv").write_text(gdp_csv_text, encoding="utf-8")
    (temp_dir / "elec.csv").write_text(electricity_csv_text, encoding="utf-8")
    (temp_dir / "countries.geojson").write_text(json.dumps(feature_collection), encoding="utf-8")
    return temp_dir


@pytest.fixture(scope="function")
def engine_config(data_dir: Path) -> EngineConfig:
    """EngineConfig pointing at the temporary data directory."""
    return EngineConfig(
        data_dir=str(data_dir),
        sources={
            INTERNET_FIELD: "internet.csv",
            GDP_FIELD: "gdp.csv",
            ELECTRICITY_FIELD: "elec.csv",
        },
        geojson_source="countries.geojson",
        max_workers=2,
    )


@pytest.fixture(scope="function")
def source_env(data_dir: Path, monkeypatch) -> Path:
    """Point the source environment variables at the temporary data directory.

    Returns:
        Path to the data directory
    """
    monkeypatch.setenv("DATA_DIR", str(data_dir))
    monkeypatch.setenv("INTERNET_USERS_SOURCE", "internet.csv")
    monkeypatch.setenv("GDP_SOURCE", "gdp.csv")
    monkeypatch.setenv("ELECTRICITY_SOURCE", "elec.csv")
    monkeypatch.setenv("GEOJSON_SOURCE", "countries.geojson")
    return data_dir
