"""Ingest package for indicator table loading.

This package turns raw indicator payloads into time-series indices and
assembles them, together with the continent map, into a Session.
"""

from prosperity.ingest.loaders import IndicatorLoad, load_long_indicator, load_wide_indicator

__all__ = ["IndicatorLoad", "load_long_indicator", "load_wide_indicator"]
