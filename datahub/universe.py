"""
Static instrument universe for the scanner.

The default universe covers NSE large and mid caps. A JSON file written by
``save_universe`` can replace it without code changes.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Instrument:
    """One tradable equity: NSE symbol, display name and F&O membership."""

    symbol: str
    name: str
    options_tradable: bool = True

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "options_tradable": self.options_tradable,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Instrument":
        symbol = str(data.get("symbol") or "").strip().upper()
        if not symbol:
            raise ValueError("instrument entry is missing a symbol")
        name = str(data.get("name") or symbol).strip()
        return cls(
            symbol=symbol,
            name=name,
            options_tradable=bool(data.get("options_tradable", True)),
        )


_NIFTY_50: Tuple[Tuple[str, str], ...] = (
    ("ADANIENT", "Adani Enterprises"),
    ("ADANIPORTS", "Adani Ports & SEZ"),
    ("APOLLOHOSP", "Apollo Hospitals"),
    ("ASIANPAINT", "Asian Paints"),
    ("AXISBANK", "Axis Bank"),
    ("BAJAJ-AUTO", "Bajaj Auto"),
    ("BAJFINANCE", "Bajaj Finance"),
    ("BAJAJFINSV", "Bajaj Finserv"),
    ("BEL", "Bharat Electronics"),
    ("BHARTIARTL", "Bharti Airtel"),
    ("BPCL", "Bharat Petroleum"),
    ("BRITANNIA", "Britannia Industries"),
    ("CIPLA", "Cipla"),
    ("COALINDIA", "Coal India"),
    ("DRREDDY", "Dr. Reddy's Laboratories"),
    ("EICHERMOT", "Eicher Motors"),
    ("GRASIM", "Grasim Industries"),
    ("HCLTECH", "HCL Technologies"),
    ("HDFCBANK", "HDFC Bank"),
    ("HDFCLIFE", "HDFC Life Insurance"),
    ("HEROMOTOCO", "Hero MotoCorp"),
    ("HINDALCO", "Hindalco Industries"),
    ("HINDUNILVR", "Hindustan Unilever"),
    ("ICICIBANK", "ICICI Bank"),
    ("INDUSINDBK", "IndusInd Bank"),
    ("INFY", "Infosys"),
    ("ITC", "ITC"),
    ("JSWSTEEL", "JSW Steel"),
    ("KOTAKBANK", "Kotak Mahindra Bank"),
    ("LT", "Larsen & Toubro"),
    ("M&M", "Mahindra & Mahindra"),
    ("MARUTI", "Maruti Suzuki"),
    ("NESTLEIND", "Nestle India"),
    ("NTPC", "NTPC"),
    ("ONGC", "Oil & Natural Gas Corp"),
    ("POWERGRID", "Power Grid Corp"),
    ("RELIANCE", "Reliance Industries"),
    ("SBILIFE", "SBI Life Insurance"),
    ("SBIN", "State Bank of India"),
    ("SHRIRAMFIN", "Shriram Finance"),
    ("SUNPHARMA", "Sun Pharmaceutical"),
    ("TATACONSUM", "Tata Consumer Products"),
    ("TATAMOTORS", "Tata Motors"),
    ("TATASTEEL", "Tata Steel"),
    ("TCS", "Tata Consultancy Services"),
    ("TECHM", "Tech Mahindra"),
    ("TITAN", "Titan Company"),
    ("TRENT", "Trent"),
    ("ULTRACEMCO", "UltraTech Cement"),
    ("WIPRO", "Wipro"),
)

_MIDCAP_FNO: Tuple[Tuple[str, str], ...] = (
    ("AUROPHARMA", "Aurobindo Pharma"),
    ("BANKBARODA", "Bank of Baroda"),
    ("CANBK", "Canara Bank"),
    ("CHOLAFIN", "Cholamandalam Investment"),
    ("DLF", "DLF"),
    ("GODREJPROP", "Godrej Properties"),
    ("HAVELLS", "Havells India"),
    ("INDHOTEL", "Indian Hotels"),
    ("LUPIN", "Lupin"),
    ("PERSISTENT", "Persistent Systems"),
    ("PIDILITIND", "Pidilite Industries"),
    ("TVSMOTOR", "TVS Motor"),
    ("VOLTAS", "Voltas"),
)

# Listed mid caps outside the F&O segment.
_MIDCAP_CASH_ONLY: Tuple[Tuple[str, str], ...] = (
    ("3MINDIA", "3M India"),
    ("GILLETTE", "Gillette India"),
    ("HONAUT", "Honeywell Automation India"),
    ("PGHH", "Procter & Gamble Hygiene"),
    ("SCHAEFFLER", "Schaeffler India"),
    ("TIMKEN", "Timken India"),
)

DEFAULT_UNIVERSE: Tuple[Instrument, ...] = tuple(
    [Instrument(symbol, name, True) for symbol, name in _NIFTY_50 + _MIDCAP_FNO]
    + [Instrument(symbol, name, False) for symbol, name in _MIDCAP_CASH_ONLY]
)


def dedupe(instruments: Iterable[Instrument]) -> Tuple[Instrument, ...]:
    """Drop repeated symbols, keeping the first occurrence."""
    seen = set()
    unique: List[Instrument] = []
    for instrument in instruments:
        if instrument.symbol in seen:
            logger.debug("Duplicate universe symbol ignored: %s", instrument.symbol)
            continue
        seen.add(instrument.symbol)
        unique.append(instrument)
    return tuple(unique)


def load_universe(path: Optional[Path] = None) -> Tuple[Instrument, ...]:
    """Read a universe JSON file; without a path the default universe is returned."""
    if path is None:
        return DEFAULT_UNIVERSE
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    entries = data.get("instruments") if isinstance(data, dict) else data
    instruments = dedupe(Instrument.from_dict(entry) for entry in entries or [])
    logger.info("Loaded %d instruments from %s", len(instruments), path)
    return instruments


def save_universe(instruments: Iterable[Instrument], path: Path) -> None:
    """Write a universe file readable by :func:`load_universe`."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(
        {"instruments": [item.to_dict() for item in instruments]},
        ensure_ascii=False,
        indent=2,
    )
    target.write_text(payload, encoding="utf-8")
