"""Trade-by-trade historical replay of counterfactual prices.

Unlike the aggregate scenarios, every trade is repriced from its own
excursion prices, then commission is taken off again:

- perfectEntry: enter at the worst price reached (`max_adverse_price`).
- perfectExit: exit at the best price reached (`max_favorable_price`).
- noStopLoss: every trade runs to its best price.
- tightStopLoss: a stop 1% from entry, hit when the worst price crossed it.

Trades without the needed excursion price keep their recorded net P&L.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional

from tradejournal.infrastructure.utils.numbers import round_to
from tradejournal.models.trade_models import TradeRecord, direction_sign
from tradejournal.services.market.registry import DEFAULT_REGISTRY, MarketRegistry

PERFECT_ENTRY = "perfectEntry"
PERFECT_EXIT = "perfectExit"
NO_STOP_LOSS = "noStopLoss"
TIGHT_STOP_LOSS = "tightStopLoss"
HISTORICAL_SCENARIOS = (PERFECT_ENTRY, PERFECT_EXIT, NO_STOP_LOSS, TIGHT_STOP_LOSS)

TIGHT_STOP_PERCENT = 1.0


@dataclass(frozen=True)
class HistoricalScenarioResult:
    scenario: str
    original_pnl: float
    scenario_pnl: float
    difference: float
    improvement: float      # percent of |original_pnl|


def _repriced(trade: TradeRecord, entry: float, exit_: float, multiplier: float) -> float:
    gross = (exit_ - entry) * direction_sign(trade.direction) * trade.quantity * multiplier
    return gross - (trade.commission or 0.0)


def _perfect_entry(trade: TradeRecord, multiplier: float) -> Optional[float]:
    if trade.max_adverse_price is None:
        return None
    return _repriced(trade, trade.max_adverse_price, trade.exit_price, multiplier)


def _perfect_exit(trade: TradeRecord, multiplier: float) -> Optional[float]:
    if trade.max_favorable_price is None:
        return None
    return _repriced(trade, trade.entry_price, trade.max_favorable_price, multiplier)


def _tight_stop(trade: TradeRecord, multiplier: float) -> Optional[float]:
    sign = direction_sign(trade.direction)
    stop = trade.entry_price * (1 - sign * TIGHT_STOP_PERCENT / 100)
    exit_ = trade.exit_price
    if trade.max_adverse_price is not None and (trade.max_adverse_price - stop) * sign <= 0:
        exit_ = stop
    return _repriced(trade, trade.entry_price, exit_, multiplier)


_REPLAYS: Dict[str, Callable[[TradeRecord, float], Optional[float]]] = {
    PERFECT_ENTRY: _perfect_entry,
    PERFECT_EXIT: _perfect_exit,
    NO_STOP_LOSS: _perfect_exit,
    TIGHT_STOP_LOSS: _tight_stop,
}


def calculate_what_if_scenarios(
    trades: Iterable[TradeRecord],
    scenario: str,
    *,
    registry: MarketRegistry = DEFAULT_REGISTRY,
) -> HistoricalScenarioResult:
    """Replay `scenario` over closed trades that carry a net P&L.

    Unknown scenario names leave every trade unchanged.
    """
    closed = [t for t in trades if not t.is_open and t.net_pnl is not None]
    if not closed:
        return HistoricalScenarioResult(scenario, 0.0, 0.0, 0.0, 0.0)

    original = sum(t.net_pnl for t in closed)
    replay = _REPLAYS.get(scenario)

    scenario_pnl = 0.0
    for trade in closed:
        repriced = None
        if replay is not None:
            spec = registry.get(trade.market_key)
            repriced = replay(trade, spec.multiplier if spec is not None else 1.0)
        scenario_pnl += trade.net_pnl if repriced is None else repriced

    difference = scenario_pnl - original
    improvement = difference / abs(original) * 100 if original != 0 else 0.0
    return HistoricalScenarioResult(
        scenario=scenario,
        original_pnl=round_to(original, 2),
        scenario_pnl=round_to(scenario_pnl, 2),
        difference=round_to(difference, 2),
        improvement=round_to(improvement, 2),
    )
