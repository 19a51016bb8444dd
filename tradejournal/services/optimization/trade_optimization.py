"""Stop, target, risk/reward and timing suggestions mined from excursion data.

`mae` / `mfe` here are monetary excursions per trade (dollars), not prices.
Each section needs at least `min_trades` qualifying trades and is None
otherwise; the top-level result reports how far the journal is from that.
"""

from __future__ import annotations

import math
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from tradejournal.infrastructure.logging.logging import get_logger
from tradejournal.infrastructure.utils.numbers import round_to
from tradejournal.models.trade_models import TradeRecord
from tradejournal.services.market.registry import DEFAULT_REGISTRY, MarketRegistry

log = get_logger("trade_optimization")

MIN_TRADES = 20
DEFAULT_POINT_VALUE = 50.0
STOP_BUFFER = 1.15
TARGET_CAPTURE = 0.72
MIN_TRADES_PER_HOUR = 3
DEFAULT_TIME_STOP_MINUTES = 30


@dataclass(frozen=True)
class StopLossOptimization:
    avg_mae_winners: float
    avg_mae_losers: float
    avg_mae_winners_points: float
    avg_mae_losers_points: float
    recommended_stop: float
    recommended_stop_points: float
    stops_avoided: int
    stops_avoided_percent: float
    percentile75_mae: float
    insight: str
    symbol_point_value: float


@dataclass(frozen=True)
class TakeProfitOptimization:
    avg_mfe_achieved: float
    avg_mfe_points: float
    avg_exit_pnl: float
    potential_left_on_table: float
    recommended_target: float
    recommended_target_points: float
    capture_rate: float
    partial_exit_suggestion: str
    insight: str
    symbol_point_value: float


@dataclass(frozen=True)
class RiskRewardSetup:
    current_avg_rr: float
    current_win_rate: float
    current_expectancy: float
    suggested_stop: float
    suggested_stop_points: float
    suggested_target: float
    suggested_target_points: float
    suggested_rr: float
    break_even_win_rate: float
    expected_pnl_per_trade: float
    comparison: str
    symbol_point_value: float


@dataclass(frozen=True)
class HourPerformance:
    hour: int
    avg_pnl: float
    win_rate: float
    trades: int


@dataclass(frozen=True)
class BreakEvenStats:
    reached_be: int
    reached_be_percent: float
    continued_profit: int
    continued_profit_percent: float


@dataclass(frozen=True)
class TimingEfficiency:
    best_entry_hours: List[HourPerformance]
    avg_duration_winners: float
    avg_duration_losers: float
    suggested_time_stop: int
    break_even_stats: BreakEvenStats
    insight: str


@dataclass(frozen=True)
class DataQuality:
    has_mae: int
    has_mfe: int
    has_be: int
    has_advanced: int


@dataclass(frozen=True)
class OptimizationInsights:
    stop_loss: Optional[StopLossOptimization]
    take_profit: Optional[TakeProfitOptimization]
    risk_reward: Optional[RiskRewardSetup]
    timing: Optional[TimingEfficiency]
    min_trades_required: int
    current_trades: int
    has_enough_data: bool
    data_quality: DataQuality = field(default_factory=lambda: DataQuality(0, 0, 0, 0))


def percentile(values: Sequence[float], pct: float) -> float:
    """Nearest-rank percentile."""
    if not values:
        return 0.0
    ordered = sorted(values)
    index = math.ceil(pct / 100 * len(ordered)) - 1
    return ordered[max(0, index)]


def primary_point_value(trades: Sequence[TradeRecord], registry: MarketRegistry) -> float:
    """Point value of the most traded symbol."""
    if not trades:
        return DEFAULT_POINT_VALUE
    symbol = Counter(t.market_key for t in trades).most_common(1)[0][0]
    spec = registry.get(symbol) or registry.get(re.sub(r"[0-9]", "", symbol))
    return spec.point_value if spec is not None else DEFAULT_POINT_VALUE


def _pnl(t: TradeRecord) -> float:
    return t.pnl or 0.0


def calculate_stop_loss_optimization(
    trades: Sequence[TradeRecord], point_value: float, min_trades: int = MIN_TRADES
) -> Optional[StopLossOptimization]:
    with_mae = [t for t in trades if t.mae is not None]
    if len(with_mae) < min_trades:
        return None
    winners = [t for t in with_mae if _pnl(t) > 0]
    losers = [t for t in with_mae if _pnl(t) < 0]
    if not winners:
        return None

    winners_mae = [abs(t.mae) for t in winners]
    avg_winners = sum(winners_mae) / len(winners_mae)
    avg_losers = sum(abs(t.mae) for t in losers) / len(losers) if losers else avg_winners * 2

    p75 = percentile(winners_mae, 75)
    stop = p75 * STOP_BUFFER
    kept = sum(1 for m in winners_mae if m <= stop)
    avoided = len(winners) - kept
    avoided_percent = avoided / len(winners) * 100

    if avoided_percent > 20:
        insight = f"{avoided_percent:.0f}% of your winning trades had MAE within ${stop:.2f}"
    elif avg_winners < avg_losers * 0.5:
        insight = "Your winners typically have smaller adverse excursions. Current stops may be too wide."
    else:
        insight = f"Recommended stop would have kept {kept} of {len(winners)} winners alive."

    return StopLossOptimization(
        avg_mae_winners=round_to(avg_winners, 2),
        avg_mae_losers=round_to(avg_losers, 2),
        avg_mae_winners_points=round_to(avg_winners / point_value, 2),
        avg_mae_losers_points=round_to(avg_losers / point_value, 2),
        recommended_stop=round_to(stop, 2),
        recommended_stop_points=round_to(stop / point_value, 2),
        stops_avoided=avoided,
        stops_avoided_percent=round_to(avoided_percent, 2),
        percentile75_mae=round_to(p75, 2),
        insight=insight,
        symbol_point_value=point_value,
    )


def calculate_take_profit_optimization(
    trades: Sequence[TradeRecord], point_value: float, min_trades: int = MIN_TRADES
) -> Optional[TakeProfitOptimization]:
    with_mfe = [t for t in trades if t.mfe is not None and not t.is_open]
    if len(with_mfe) < min_trades:
        return None

    avg_mfe = sum(abs(t.mfe) for t in with_mfe) / len(with_mfe)
    avg_exit = sum(abs(_pnl(t)) for t in with_mfe) / len(with_mfe)
    target = avg_mfe * TARGET_CAPTURE
    capture = avg_exit / avg_mfe * 100 if avg_exit > 0 and avg_mfe > 0 else 0.0

    if capture < 50:
        partial = f"Consider taking 50% at {avg_mfe * 0.5 / point_value:.1f} pts, trail the rest"
    elif capture < 70:
        partial = (
            f"Consider taking 50% at {avg_mfe * 0.6 / point_value:.1f} pts, "
            f"50% at {avg_mfe * 0.9 / point_value:.1f} pts"
        )
    else:
        partial = "Your capture rate is good. Consider trailing stops to maximize."

    if capture < 60:
        insight = f"You're only capturing {capture:.0f}% of potential profit. Consider earlier partial exits."
    else:
        insight = f"Good profit capture at {capture:.0f}%. Focus on consistency."

    return TakeProfitOptimization(
        avg_mfe_achieved=round_to(avg_mfe, 2),
        avg_mfe_points=round_to(avg_mfe / point_value, 2),
        avg_exit_pnl=round_to(avg_exit, 2),
        potential_left_on_table=round_to(avg_mfe - avg_exit, 2),
        recommended_target=round_to(target, 2),
        recommended_target_points=round_to(target / point_value, 2),
        capture_rate=round_to(capture, 2),
        partial_exit_suggestion=partial,
        insight=insight,
        symbol_point_value=point_value,
    )


def calculate_risk_reward_setup(
    trades: Sequence[TradeRecord],
    stop_loss: Optional[StopLossOptimization],
    take_profit: Optional[TakeProfitOptimization],
    point_value: float,
    min_trades: int = MIN_TRADES,
) -> Optional[RiskRewardSetup]:
    closed = [t for t in trades if not t.is_open and t.net_pnl is not None]
    if len(closed) < min_trades:
        return None

    winners = [t for t in closed if _pnl(t) > 0]
    losers = [t for t in closed if _pnl(t) < 0]
    avg_win = sum(t.net_pnl for t in winners) / len(winners) if winners else 0.0
    avg_loss = abs(sum(t.net_pnl for t in losers) / len(losers)) if losers else 0.0

    win_rate = len(winners) / len(closed) * 100
    current_rr = avg_win / avg_loss if avg_loss > 0 else 0.0
    expectancy = win_rate / 100 * avg_win - (100 - win_rate) / 100 * avg_loss

    stop = stop_loss.recommended_stop if stop_loss and stop_loss.recommended_stop else avg_loss
    target = take_profit.recommended_target if take_profit and take_profit.recommended_target else avg_win
    suggested_rr = target / stop if stop > 0 else 0.0
    be_win_rate = 1 / (1 + suggested_rr) * 100
    expected = win_rate / 100 * target - (100 - win_rate) / 100 * stop

    if expected > expectancy and expectancy != 0:
        improvement = (expected - expectancy) / abs(expectancy) * 100
        comparison = f"{improvement:.0f}% improvement over current setup"
    elif expected > expectancy:
        comparison = "Positive edge over a break-even current setup"
    elif win_rate > be_win_rate + 5:
        comparison = f"Your {win_rate:.0f}% win rate exceeds required {be_win_rate:.0f}%"
    else:
        comparison = f"Need {be_win_rate:.0f}% win rate to break even"

    return RiskRewardSetup(
        current_avg_rr=round_to(current_rr, 2),
        current_win_rate=round_to(win_rate, 2),
        current_expectancy=round_to(expectancy, 2),
        suggested_stop=round_to(stop, 2),
        suggested_stop_points=round_to(stop / point_value, 2),
        suggested_target=round_to(target, 2),
        suggested_target_points=round_to(target / point_value, 2),
        suggested_rr=round_to(suggested_rr, 2),
        break_even_win_rate=round_to(be_win_rate, 2),
        expected_pnl_per_trade=round_to(expected, 2),
        comparison=comparison,
        symbol_point_value=point_value,
    )


def calculate_timing_efficiency(
    trades: Sequence[TradeRecord], min_trades: int = MIN_TRADES
) -> Optional[TimingEfficiency]:
    closed = [t for t in trades if not t.is_open and t.exit_date is not None]
    if len(closed) < min_trades:
        return None

    hours: Dict[int, List[TradeRecord]] = {}
    for t in closed:
        if t.entry_date is None:
            continue
        hours.setdefault(t.entry_date.hour, []).append(t)

    stats = [
        HourPerformance(
            hour=hour,
            avg_pnl=round_to(sum(t.net_pnl or 0.0 for t in group) / len(group), 2),
            win_rate=round_to(sum(1 for t in group if _pnl(t) > 0) / len(group) * 100, 2),
            trades=len(group),
        )
        for hour, group in hours.items()
    ]
    best = sorted((h for h in stats if h.trades >= MIN_TRADES_PER_HOUR), key=lambda h: h.avg_pnl, reverse=True)[:3]

    timed = [t for t in closed if t.duration_minutes is not None]
    winners = [t.duration_minutes for t in timed if _pnl(t) > 0]
    losers = [t.duration_minutes for t in timed if _pnl(t) < 0]
    avg_winners = sum(winners) / len(winners) if winners else 0.0
    avg_losers = sum(losers) / len(losers) if losers else 0.0
    time_stop = math.ceil(avg_winners * 0.5) if avg_winners > 0 else DEFAULT_TIME_STOP_MINUTES

    flagged = [t for t in trades if t.break_even_worked is not None]
    reached = sum(1 for t in flagged if t.break_even_worked)
    continued = sum(1 for t in flagged if t.break_even_worked and _pnl(t) > 0)

    if best:
        top = best[0]
        insight = f"Best performance at {top.hour}:00-{top.hour + 1}:00 with {top.win_rate:.0f}% win rate"
    else:
        insight = "Need more data to identify optimal trading hours"

    return TimingEfficiency(
        best_entry_hours=best,
        avg_duration_winners=round_to(avg_winners, 2),
        avg_duration_losers=round_to(avg_losers, 2),
        suggested_time_stop=time_stop,
        break_even_stats=BreakEvenStats(
            reached_be=reached,
            reached_be_percent=round_to(reached / len(flagged) * 100, 2) if flagged else 0.0,
            continued_profit=continued,
            continued_profit_percent=round_to(continued / reached * 100, 2) if reached else 0.0,
        ),
        insight=insight,
    )


def get_optimization_insights(
    trades: Sequence[TradeRecord],
    *,
    registry: MarketRegistry = DEFAULT_REGISTRY,
    min_trades: int = MIN_TRADES,
) -> OptimizationInsights:
    log.info("optimization_insights_start", trades=len(trades))

    quality = DataQuality(
        has_mae=sum(1 for t in trades if t.mae is not None),
        has_mfe=sum(1 for t in trades if t.mfe is not None),
        has_be=sum(1 for t in trades if t.break_even_worked is not None),
        has_advanced=sum(1 for t in trades if t.max_favorable_price is not None and t.max_adverse_price is not None),
    )
    point_value = primary_point_value(trades, registry)

    stop_loss = calculate_stop_loss_optimization(trades, point_value, min_trades)
    take_profit = calculate_take_profit_optimization(trades, point_value, min_trades)

    return OptimizationInsights(
        stop_loss=stop_loss,
        take_profit=take_profit,
        risk_reward=calculate_risk_reward_setup(trades, stop_loss, take_profit, point_value, min_trades),
        timing=calculate_timing_efficiency(trades, min_trades),
        min_trades_required=min_trades,
        current_trades=len(trades),
        has_enough_data=len(trades) >= min_trades,
        data_quality=quality,
    )
