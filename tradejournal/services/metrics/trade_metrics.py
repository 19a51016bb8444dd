"""Per-trade derived metrics.

Closed trades are priced through their contract specification. When that is
not possible (unknown market, calculator failure) the trade is priced with a
flat per-unit model instead and the result is flagged `degraded`.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from tradejournal.infrastructure.logging.logging import get_logger
from tradejournal.infrastructure.utils.numbers import clamp, round_to
from tradejournal.models.errors import AnalyticsError
from tradejournal.models.trade_models import BREAKEVEN, LOSS, WIN, TradeMetrics, TradeRecord, direction_sign
from tradejournal.services.market.calculator import calculate_efficiency, calculate_pnl, calculate_r_multiple
from tradejournal.services.market.commissions import flat_commission
from tradejournal.services.market.registry import DEFAULT_REGISTRY, MarketRegistry

log = get_logger("trade_metrics")

OPEN_TRADE_METRICS = TradeMetrics(pnl=0.0, pnl_percentage=0.0, net_pnl=0.0, commission=0.0)


def classify_result(net_pnl: float) -> str:
    # Exact comparison: a trade netting 0.001 counts as a win.
    if net_pnl > 0:
        return WIN
    if net_pnl < 0:
        return LOSS
    return BREAKEVEN


def _has_excursions(trade: TradeRecord) -> bool:
    return trade.max_favorable_price is not None and trade.max_adverse_price is not None


def _market_metrics(trade: TradeRecord, registry: MarketRegistry) -> TradeMetrics:
    calc = calculate_pnl(
        trade.entry_price,
        trade.exit_price,
        trade.quantity,
        trade.market_key,
        trade.direction,
        include_fees=True,
        registry=registry,
    ).unwrap()

    pnl_percentage = calc.gross_pnl / calc.contract_value * 100 if calc.contract_value else 0.0

    r_multiple: Optional[float] = None
    if trade.stop_loss is not None:
        r_multiple = calculate_r_multiple(trade.entry_price, trade.exit_price, trade.stop_loss, trade.direction)

    efficiency: Optional[float] = None
    if _has_excursions(trade):
        raw = calculate_efficiency(trade.entry_price, trade.exit_price, trade.max_favorable_price, trade.direction)
        efficiency = clamp(raw)

    return TradeMetrics(
        pnl=calc.gross_pnl,
        pnl_percentage=round_to(pnl_percentage, 4),
        net_pnl=calc.net_pnl,
        commission=calc.commission,
        efficiency=efficiency,
        r_multiple=r_multiple,
        result=classify_result(calc.net_pnl),
    )


def _flat_metrics(trade: TradeRecord) -> TradeMetrics:
    sign = direction_sign(trade.direction)
    pnl = (trade.exit_price - trade.entry_price) * trade.quantity * sign
    if trade.commission is not None:
        commission = trade.commission
    else:
        commission = flat_commission(trade.market_key, trade.quantity)
    net = pnl - commission

    notional = trade.entry_price * trade.quantity
    pnl_percentage = pnl / notional * 100 if notional else 0.0

    r_multiple: Optional[float] = None
    if trade.stop_loss is not None:
        r_multiple = calculate_r_multiple(trade.entry_price, trade.exit_price, trade.stop_loss, trade.direction)

    efficiency: Optional[float] = None
    if _has_excursions(trade):
        max_possible = (trade.max_favorable_price - trade.entry_price) * trade.quantity * sign
        efficiency = clamp(max(0.0, pnl) / max_possible * 100) if max_possible > 0 else 0.0
        efficiency = round_to(efficiency, 2)

    return TradeMetrics(
        pnl=round_to(pnl, 2),
        pnl_percentage=round_to(pnl_percentage, 4),
        net_pnl=round_to(net, 2),
        commission=round_to(commission, 2),
        efficiency=efficiency,
        r_multiple=r_multiple,
        result=classify_result(net),
        degraded=True,
    )


def calculate_trade_metrics(trade: TradeRecord, *, registry: MarketRegistry = DEFAULT_REGISTRY) -> TradeMetrics:
    if trade.is_open:
        return OPEN_TRADE_METRICS

    try:
        return _market_metrics(trade, registry)
    except (AnalyticsError, ArithmeticError, ValueError) as e:
        log.warning(
            "trade_metrics_degraded",
            trade_id=trade.id,
            market=trade.market_key,
            error=str(e),
        )
        return _flat_metrics(trade)


def with_metrics(trades: Iterable[TradeRecord], *, registry: MarketRegistry = DEFAULT_REGISTRY) -> List[TradeRecord]:
    """Copies of `trades` with the derived snapshot fields filled in."""
    out: List[TradeRecord] = []
    for trade in trades:
        if trade.is_open:
            out.append(trade)
            continue
        m = calculate_trade_metrics(trade, registry=registry)
        out.append(
            trade.model_copy(
                update={
                    "pnl": m.pnl,
                    "pnl_percentage": m.pnl_percentage,
                    "net_pnl": m.net_pnl,
                    "commission": m.commission,
                    "r_multiple": m.r_multiple,
                    "efficiency": m.efficiency,
                }
            )
        )
    return out
