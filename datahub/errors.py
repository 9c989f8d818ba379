"""Error types shared by the data hub and the scanner engine."""

from __future__ import annotations


class ScannerError(RuntimeError):
    """Fatal failure of a scanner invocation; no snapshot is produced."""


class DataSourceError(ScannerError):
    """The upstream market-data source is unreachable or rejected the request."""


class ProviderError(RuntimeError):
    """A single ticker could not be served by a data provider."""
