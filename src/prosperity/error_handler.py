"""
Partial failure handling for multi-source loads.

Independent indicator loads may fail on their own (unavailable source,
schema mismatch, empty table). The collector records each outcome so the
run can continue with the sources that did load and still report, per
source, what went wrong.
"""

from typing import Any, List, Tuple

from prosperity.exceptions import (
    NoDataParsedError,
    SchemaMismatchError,
    SourceUnavailableError,
)
from prosperity.logging_config import create_logger

logger = create_logger(__name__)

STATUS_OK = "ok"
STATUS_UNAVAILABLE = "unavailable"
STATUS_SCHEMA_MISMATCH = "schema_mismatch"
STATUS_NO_DATA = "no_data"
STATUS_ERROR = "error"


def categorize_error(exception: Exception) -> str:
    """Map a load exception onto a source status."""
    if isinstance(exception, SourceUnavailableError):
        return STATUS_UNAVAILABLE
    if isinstance(exception, SchemaMismatchError):
        return STATUS_SCHEMA_MISMATCH
    if isinstance(exception, NoDataParsedError):
        return STATUS_NO_DATA
    return STATUS_ERROR


class PartialFailureCollector:
    """Collects per-source outcomes during a multi-source load.

    Example:
        collector = PartialFailureCollector()
        for source in sources:
            try:
                load(source)
                collector.add_success(source)
            except IngestError as e:
                collector.add_failure(source, e)

        collector.log_summary()
    """

    def __init__(self):
        self.failures: List[Tuple[Any, Exception]] = []
        self.successes: List[Any] = []

    def add_failure(self, item: Any, exception: Exception) -> None:
        """Record a failed item.

        Args:
            item: The item that failed
            exception: The exception that occurred
        """
        self.failures.append((item, exception))
        logger.warning(f"Source failed: {item} - {str(exception)[:200]}")

    def add_success(self, item: Any) -> None:
        """Record a successful item."""
        self.successes.append(item)

    def get_success_count(self) -> int:
        return len(self.successes)

    def get_total_count(self) -> int:
        return len(self.failures) + len(self.successes)

    def log_summary(self) -> None:
        """Log a one-line summary plus one line per failed source."""
        logger.info(
            f"Loaded {self.get_success_count()}/{self.get_total_count()} sources"
        )
        for item, exc in self.failures:
            logger.error(f"  - {item}: {categorize_error(exc)}: {str(exc)[:200]}")
