"""Retrieval layer for raw indicator payloads.

Resolves local files, http(s) URLs and s3:// URIs into raw text or parsed
JSON. Every failure is logged and reported as ``None`` so that callers can
treat an unavailable source as a normal, non-fatal input state.
"""

import json
from typing import Any, Optional, Tuple

import boto3
import requests
from botocore.exceptions import BotoCoreError, ClientError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from prosperity.logging_config import create_logger
from prosperity.utils import resolve_location, retry

logger = create_logger(__name__)

DEFAULT_TIMEOUT = 30.0


def _build_retry_session() -> requests.Session:
    """
    Build a requests Session with conservative retries.
    Open-data portals can be slow or transiently flaky.
    """
    session = requests.Session()

    retry_policy = Retry(
        total=3,
        connect=3,
        read=3,
        status=3,
        backoff_factor=0.6,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset({"GET"}),
        raise_on_status=False,
    )

    adapter = HTTPAdapter(max_retries=retry_policy, pool_connections=10, pool_maxsize=10)
    session.mount("https://", adapter)
    session.mount("http://", adapter)

    return session


def _split_s3_uri(uri: str) -> Tuple[str, str]:
    """Split ``s3://bucket/key`` into (bucket, key)."""
    path = uri[len("s3://"):]
    bucket, _, key = path.partition("/")
    if not bucket or not key:
        raise ValueError(f"Malformed S3 URI: {uri}")
    return bucket, key


@retry(max_attempts=3, delay=0.5, exceptions=(BotoCoreError,))
def _read_s3_object(bucket: str, key: str) -> bytes:
    """Download an S3 object body with retry logic."""
    s3_client = boto3.client("s3")
    response = s3_client.get_object(Bucket=bucket, Key=key)
    return response["Body"].read()


def _read_bytes(location: str, timeout: float) -> bytes:
    lowered = location.lower()
    if lowered.startswith("s3://"):
        bucket, key = _split_s3_uri(location)
        return _read_s3_object(bucket, key)
    if lowered.startswith(("http://", "https://")):
        with _build_retry_session() as session:
            resp = session.get(location, timeout=timeout)
            resp.raise_for_status()
            return resp.content
    with open(location, "rb") as fh:
        return fh.read()


def fetch_text(
    location: Optional[str],
    data_dir: Optional[str] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Optional[str]:
    """Fetch a raw text payload.

    Args:
        location: Local path, http(s) URL or s3:// URI
        data_dir: Base directory for relative local paths
        timeout: HTTP timeout in seconds

    Returns:
        The decoded text, or None if the source is unavailable
    """
    if not location:
        return None

    target = resolve_location(location, data_dir)
    try:
        raw = _read_bytes(target, timeout)
    except (OSError, ValueError, requests.RequestException, ClientError, BotoCoreError) as e:
        logger.warning(f"Source unavailable: {target} ({type(e).__name__}: {e})")
        return None

    logger.debug(f"Fetched {len(raw)} bytes from {target}")
    return raw.decode("utf-8", errors="replace")


def fetch_json(
    location: Optional[str],
    data_dir: Optional[str] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Optional[Any]:
    """Fetch and parse a JSON payload; None on retrieval or parse failure."""
    text = fetch_text(location, data_dir=data_dir, timeout=timeout)
    if text is None:
        return None
    try:
        return json.loads(text.lstrip("\ufeff"))
    except json.JSONDecodeError as e:
        logger.warning(f"Invalid JSON payload from {location}: {e}")
        return None
