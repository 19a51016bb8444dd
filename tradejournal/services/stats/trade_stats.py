"""Aggregate trade statistics.

Every function takes trade records whose derived fields (`pnl`, `net_pnl`,
`pnl_percentage`, `r_multiple`, `efficiency`) are already filled in, see
`services.metrics.trade_metrics.with_metrics`. Missing derived values count
as 0 in sums; averages of optional fields skip missing values entirely.
"""

from __future__ import annotations

import math
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from tradejournal.infrastructure.utils.numbers import mean, population_std, round_to
from tradejournal.infrastructure.utils.timeutils import to_epoch, week_start
from tradejournal.models.trade_models import TradeRecord, direction_sign
from tradejournal.services.market.registry import DEFAULT_REGISTRY, MarketRegistry


@dataclass(frozen=True)
class StreakStats:
    current_win_streak: int = 0
    current_loss_streak: int = 0
    max_win_streak: int = 0
    max_loss_streak: int = 0


@dataclass(frozen=True)
class TradeStats:
    total_trades: int
    win_trades: int
    loss_trades: int
    breakeven_trades: int
    win_rate: float
    total_pnl: float
    avg_win: float
    avg_loss: float
    profit_factor: float
    max_win: float
    max_loss: float
    avg_r_multiple: float
    avg_efficiency: float
    total_commission: float
    net_pnl: float
    current_win_streak: int
    current_loss_streak: int
    max_win_streak: int
    max_loss_streak: int
    max_drawdown: float
    sharpe_ratio: float


@dataclass(frozen=True)
class ChartPoint:
    date: str
    pnl: float
    cumulative: float
    trades: int


@dataclass(frozen=True)
class EfficiencyBucket:
    range: str
    count: int


@dataclass(frozen=True)
class EfficiencyAnalysis:
    average_efficiency: float
    best_efficiency: float
    worst_efficiency: float
    efficiency_distribution: List[EfficiencyBucket] = field(default_factory=list)
    total_missed_profit: float = 0.0
    trades_analyzed: int = 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def completed_trades(trades: Iterable[TradeRecord]) -> List[TradeRecord]:
    return [t for t in trades if not t.is_open]


def chronological(trades: Iterable[TradeRecord]) -> List[TradeRecord]:
    """Stable sort by exit date, falling back to entry date."""
    return sorted(trades, key=lambda t: to_epoch(t.closed_at))


def gross_pnl(trade: TradeRecord) -> float:
    if trade.pnl is not None:
        return trade.pnl
    return trade.net_pnl or 0.0


def net_pnl(trade: TradeRecord) -> float:
    if trade.net_pnl is not None:
        return trade.net_pnl
    return trade.pnl or 0.0


def _finite(values: Iterable[Optional[float]]) -> List[float]:
    return [v for v in values if v is not None and math.isfinite(v)]


def _finite_or_zero(value: Optional[float]) -> float:
    return value if value is not None and math.isfinite(value) else 0.0


def calculate_profit_factor(gross_wins: float, gross_losses: float) -> float:
    """`gross_losses` is the absolute sum of losing trades."""
    if gross_losses > 0:
        return gross_wins / gross_losses
    if gross_wins > 0:
        return math.inf
    return 0.0


def calculate_streaks(trades: Iterable[TradeRecord]) -> StreakStats:
    current_win = current_loss = max_win = max_loss = 0
    for trade in chronological(completed_trades(trades)):
        pnl = gross_pnl(trade)
        if pnl > 0:
            current_win += 1
            current_loss = 0
            max_win = max(max_win, current_win)
        elif pnl < 0:
            current_loss += 1
            current_win = 0
            max_loss = max(max_loss, current_loss)
        else:
            current_win = 0
            current_loss = 0
    return StreakStats(current_win, current_loss, max_win, max_loss)


def calculate_max_drawdown(trades: Iterable[TradeRecord]) -> float:
    equity = 0.0
    peak = 0.0
    max_dd = 0.0
    for trade in chronological(completed_trades(trades)):
        equity += net_pnl(trade)
        peak = max(peak, equity)
        max_dd = max(max_dd, peak - equity)
    return round_to(max_dd, 2)


def calculate_sharpe_ratio(trades: Iterable[TradeRecord]) -> float:
    """Mean over population standard deviation of per-trade returns."""
    returns = [_finite_or_zero(t.pnl_percentage) / 100 for t in completed_trades(trades)]
    if not returns:
        return 0.0
    std = population_std(returns)
    if std == 0:
        return 0.0
    return round_to(mean(returns) / std, 2)


# ---------------------------------------------------------------------------
# Trade stats
# ---------------------------------------------------------------------------

def calculate_trade_stats(trades: Sequence[TradeRecord]) -> TradeStats:
    completed = completed_trades(trades)
    pnls = [gross_pnl(t) for t in completed]

    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p < 0]
    breakevens = [p for p in pnls if p == 0]

    total_wins = sum(wins)
    total_losses = abs(sum(losses))
    total_pnl = sum(pnls)
    total_commission = sum(t.commission or 0.0 for t in completed)

    r_values = _finite(t.r_multiple for t in completed)
    efficiencies = _finite(t.efficiency for t in completed)
    streaks = calculate_streaks(completed)

    return TradeStats(
        total_trades=len(trades),
        win_trades=len(wins),
        loss_trades=len(losses),
        breakeven_trades=len(breakevens),
        win_rate=round_to(len(wins) / len(completed) * 100, 2) if completed else 0.0,
        total_pnl=round_to(total_pnl, 2),
        avg_win=round_to(total_wins / len(wins), 2) if wins else 0.0,
        avg_loss=round_to(total_losses / len(losses), 2) if losses else 0.0,
        profit_factor=round_to(calculate_profit_factor(total_wins, total_losses), 2),
        max_win=round_to(max(wins), 2) if wins else 0.0,
        max_loss=round_to(abs(min(losses)), 2) if losses else 0.0,
        avg_r_multiple=round_to(mean(r_values), 2),
        avg_efficiency=round_to(mean(efficiencies), 2),
        total_commission=round_to(total_commission, 2),
        net_pnl=round_to(total_pnl - total_commission, 2),
        current_win_streak=streaks.current_win_streak,
        current_loss_streak=streaks.current_loss_streak,
        max_win_streak=streaks.max_win_streak,
        max_loss_streak=streaks.max_loss_streak,
        max_drawdown=calculate_max_drawdown(completed),
        sharpe_ratio=calculate_sharpe_ratio(completed),
    )


# ---------------------------------------------------------------------------
# Profit / loss chart
# ---------------------------------------------------------------------------

def period_key(dt, period: str) -> str:
    """Zero-padded bucket key; lexical order equals chronological order."""
    if period == "week":
        return week_start(dt).date().isoformat()
    if period == "month":
        return f"{dt.year:04d}-{dt.month:02d}"
    if period == "year":
        return f"{dt.year:04d}"
    return dt.date().isoformat()


def calculate_profit_loss_chart(trades: Iterable[TradeRecord], period: str = "day") -> List[ChartPoint]:
    buckets: Dict[str, List[float]] = {}
    for trade in completed_trades(trades):
        if trade.exit_date is None or trade.net_pnl is None:
            continue
        buckets.setdefault(period_key(trade.exit_date, period), []).append(trade.net_pnl)

    points: List[ChartPoint] = []
    cumulative = 0.0
    for key in sorted(buckets):
        pnl = sum(buckets[key])
        cumulative += pnl
        points.append(ChartPoint(date=key, pnl=round_to(pnl, 2), cumulative=round_to(cumulative, 2), trades=len(buckets[key])))
    return points


# ---------------------------------------------------------------------------
# Efficiency analysis
# ---------------------------------------------------------------------------

EFFICIENCY_BUCKETS = (
    ("0-20%", 0, 20),
    ("21-40%", 20, 40),
    ("41-60%", 40, 60),
    ("61-80%", 60, 80),
    ("81-100%", 80, 100),
)


def _bucket_label(efficiency: float) -> Optional[str]:
    for label, low, high in EFFICIENCY_BUCKETS:
        if (low == 0 and efficiency <= high) or low < efficiency <= high:
            return label
    return None


def calculate_efficiency_analysis(
    trades: Iterable[TradeRecord], *, registry: MarketRegistry = DEFAULT_REGISTRY
) -> EfficiencyAnalysis:
    scored = [
        t
        for t in completed_trades(trades)
        if t.efficiency is not None
        and math.isfinite(t.efficiency)
        and t.max_favorable_price is not None
        and t.max_adverse_price is not None
    ]
    if not scored:
        return EfficiencyAnalysis(
            average_efficiency=0.0,
            best_efficiency=0.0,
            worst_efficiency=0.0,
            efficiency_distribution=[EfficiencyBucket(label, 0) for label, _, _ in EFFICIENCY_BUCKETS],
        )

    values = [t.efficiency for t in scored]
    counts: "OrderedDict[str, int]" = OrderedDict((label, 0) for label, _, _ in EFFICIENCY_BUCKETS)
    for v in values:
        label = _bucket_label(v)
        if label is not None:
            counts[label] += 1

    missed = 0.0
    for t in scored:
        spec = registry.get(t.market_key)
        multiplier = spec.multiplier if spec is not None else 1.0
        points = (t.max_favorable_price - t.entry_price) * direction_sign(t.direction)
        max_possible = points * multiplier * t.quantity
        missed += max(0.0, max_possible - net_pnl(t))

    return EfficiencyAnalysis(
        average_efficiency=round_to(mean(values), 2),
        best_efficiency=round_to(max(values), 2),
        worst_efficiency=round_to(min(values), 2),
        efficiency_distribution=[EfficiencyBucket(label, n) for label, n in counts.items()],
        total_missed_profit=round_to(missed, 2),
        trades_analyzed=len(scored),
    )
