"""Flat round-trip commission table.

Used when a trade cannot be priced through its contract specification
(degraded metrics path). Rates are per contract, round trip.
"""

from __future__ import annotations

from typing import Dict

from tradejournal.infrastructure.logging.logging import get_logger
from tradejournal.services.market.registry import extract_base_symbol

log = get_logger("commissions")

COMMISSION_RATES: Dict[str, float] = {
    "ES": 4.20,
    "NQ": 4.20,
    "YM": 4.20,
    "RTY": 4.20,
    "CL": 4.20,
    "GC": 4.20,
    "MES": 1.20,
    "MNQ": 1.20,
    "MYM": 1.20,
    "M2K": 1.20,
    "MCL": 1.20,
    "MGC": 1.20,
}

DEFAULT_COMMISSION_RATE = 4.20


def commission_rate_for_symbol(symbol: str) -> float:
    base = extract_base_symbol(symbol)
    rate = COMMISSION_RATES.get(base)
    if rate is None:
        log.warning("commission_rate_default", symbol=symbol, rate=DEFAULT_COMMISSION_RATE)
        return DEFAULT_COMMISSION_RATE
    return rate


def flat_commission(symbol: str, quantity: int) -> float:
    return round(commission_rate_for_symbol(symbol) * quantity, 2)
