"""Ingest module building a Session from all configured sources.

Every indicator source and the geographic source are fetched and parsed in
parallel; the run waits for all of them before assembling the Session.
A failing source is recorded in the load report and contributes no index,
without aborting the other loads.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional

from prosperity import retrieval
from prosperity.config import INDICATOR_FORMATS, EngineConfig
from prosperity.continents import ContinentClassifier
from prosperity.error_handler import STATUS_UNAVAILABLE, PartialFailureCollector, categorize_error
from prosperity.exceptions import IngestError
from prosperity.ingest.loaders import IndicatorLoad, load_long_indicator, load_wide_indicator
from prosperity.logging_config import create_logger, log_exception
from prosperity.normalizer import FractionShareHeuristic
from prosperity.session import LoadReport, Session, SourceStatus

logger = create_logger(__name__)

CONTINENT_SOURCE = "continents"


class Ingest:
    """Load every configured source into a fresh Session.

    The fetch callables default to the retrieval layer and can be replaced,
    e.g. by tests handing over in-memory payloads. They must return None
    when a source is unavailable.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        fetch_text: Optional[Callable[..., Optional[str]]] = None,
        fetch_json: Optional[Callable[..., Optional[Any]]] = None,
        classifier: Optional[ContinentClassifier] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.fetch_text = fetch_text or retrieval.fetch_text
        self.fetch_json = fetch_json or retrieval.fetch_json
        self.classifier = classifier or ContinentClassifier()

    def _fetch_text(self, location: Optional[str]) -> Optional[str]:
        return self.fetch_text(
            location, data_dir=self.config.data_dir, timeout=self.config.http_timeout
        )

    def load_indicator(self, name: str) -> IndicatorLoad:
        """Fetch and load one indicator source.

        :raises IngestError: If the source is unavailable, mismatched or empty
        """
        location = self.config.sources.get(name)
        text = self._fetch_text(location)

        if INDICATOR_FORMATS.get(name, "wide") == "long":
            heuristic = FractionShareHeuristic(
                sample_size=self.config.unit_sample_size,
                threshold=self.config.fraction_share_threshold,
            )
            return load_long_indicator(text, name, unit_heuristic=heuristic, source=location)

        return load_wide_indicator(
            text, name, max_scan=self.config.header_scan_lines, source=location
        )

    def _fetch_geography(self) -> Optional[Any]:
        payload = None
        if self.config.geojson_source:
            payload = self.fetch_json(
                self.config.geojson_source,
                data_dir=self.config.data_dir,
                timeout=self.config.http_timeout,
            )
        if payload is None:
            logger.warning("Geographic source unavailable; continent map uses fallback table only")
        return payload

    def run(self) -> Session:
        """Load all sources in parallel and return the assembled Session."""
        start = time.time()
        names = list(self.config.sources)
        logger.info(f"Starting ingest of {len(names)} indicator sources")

        collector = PartialFailureCollector()
        report = LoadReport()
        indices: Dict[str, Any] = {}

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
            futures = {name: pool.submit(self.load_indicator, name) for name in names}
            geography_future = pool.submit(self._fetch_geography)

            for name, future in futures.items():
                location = self.config.sources.get(name)
                try:
                    loaded = future.result()
                except Exception as e:
                    if not isinstance(e, IngestError):
                        log_exception(logger, e, {"source": name, "location": location})
                    collector.add_failure(name, e)
                    report.add(SourceStatus(name, location, categorize_error(e), str(e)))
                    indices[name] = None
                    continue

                collector.add_success(name)
                indices[name] = loaded.index
                report.add(SourceStatus(name, location, metrics=loaded.metrics))

            geography = geography_future.result()

        continents = self.classifier.build(geography)
        if geography is None:
            report.add(
                SourceStatus(
                    CONTINENT_SOURCE,
                    self.config.geojson_source,
                    STATUS_UNAVAILABLE,
                    "geographic source unavailable; using fallback continent table",
                )
            )
        else:
            report.add(SourceStatus(CONTINENT_SOURCE, self.config.geojson_source))

        collector.log_summary()
        logger.info(f"Ingest finished in {time.time() - start:.2f}s")
        return Session(indices=indices, continents=continents, report=report, config=self.config)


def build_session(config: Optional[EngineConfig] = None) -> Session:
    """Run an ingest with the given (or environment) configuration."""
    return Ingest(config or EngineConfig.from_env()).run()


if __name__ == "__main__":
    session = build_session()
    for line in session.report.diagnostics():
        logger.error(line)
