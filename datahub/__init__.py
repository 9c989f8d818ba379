"""Market data access for the NSE trade scanner."""

from .errors import DataSourceError, ProviderError, ScannerError  # noqa: F401
from .fetcher import (  # noqa: F401
    FetchResult,
    InstrumentUnavailable,
    PriceSeries,
    fetch_price_series,
    fetch_universe,
)
from .indicators import IndicatorSet, IndicatorWindows, compute_indicator_set  # noqa: F401
from .providers import (  # noqa: F401
    CandleProvider,
    Quote,
    YFinanceProvider,
    default_provider,
    normalize_nse_symbol,
)
from .universe import DEFAULT_UNIVERSE, Instrument, load_universe, save_universe  # noqa: F401

__all__ = [
    "CandleProvider",
    "DEFAULT_UNIVERSE",
    "DataSourceError",
    "FetchResult",
    "IndicatorSet",
    "IndicatorWindows",
    "Instrument",
    "InstrumentUnavailable",
    "PriceSeries",
    "ProviderError",
    "Quote",
    "ScannerError",
    "YFinanceProvider",
    "compute_indicator_set",
    "default_provider",
    "fetch_price_series",
    "fetch_universe",
    "load_universe",
    "normalize_nse_symbol",
    "save_universe",
]
