"""Portfolio breakdowns: symbol / strategy / time groupings, risk metrics,
correlation matrices and the day-of-week x hour heat map."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from tradejournal.infrastructure.utils.numbers import mean, population_std, round_to
from tradejournal.infrastructure.utils.timeutils import as_utc, js_weekday, to_epoch, utc_now
from tradejournal.models.trade_models import TradeRecord
from tradejournal.services.stats.trade_stats import (
    calculate_max_drawdown,
    calculate_profit_factor,
    calculate_sharpe_ratio,
    gross_pnl,
    net_pnl,
)

PERIOD_DAYS: Dict[str, int] = {"1m": 30, "3m": 90, "6m": 180, "1y": 365}
DAY_LABELS = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
HOUR_LABELS = [f"{h}:00" for h in range(24)]
UNKNOWN_STRATEGY = "Unknown"


@dataclass(frozen=True)
class GroupPerformance:
    key: str
    total_trades: int
    total_pnl: float
    win_rate: float
    avg_trade: float


@dataclass(frozen=True)
class TimeAnalysis:
    by_hour: List[GroupPerformance]
    by_day: List[GroupPerformance]
    by_month: List[GroupPerformance]


@dataclass(frozen=True)
class RiskMetrics:
    avg_risk_per_trade: float
    max_risk: float
    min_risk: float
    risk_std_dev: float
    return_std_dev: float
    risk_adjusted_return: float


@dataclass(frozen=True)
class CorrelationMatrix:
    labels: List[str]
    correlations: List[List[float]]


@dataclass(frozen=True)
class HeatMap:
    data: List[List[float]]
    counts: List[List[int]]
    day_labels: List[str] = field(default_factory=lambda: list(DAY_LABELS))
    hour_labels: List[str] = field(default_factory=lambda: list(HOUR_LABELS))


@dataclass(frozen=True)
class PortfolioOverview:
    total_trades: int
    total_pnl: float
    win_rate: float
    profit_factor: float
    sharpe_ratio: float
    max_drawdown: float


@dataclass(frozen=True)
class PortfolioAnalysis:
    overview: PortfolioOverview
    symbol_analysis: List[GroupPerformance]
    strategy_analysis: List[GroupPerformance]
    time_analysis: TimeAnalysis
    risk_metrics: RiskMetrics
    symbol_correlations: CorrelationMatrix
    strategy_correlations: CorrelationMatrix
    heat_map: HeatMap


def filter_trades_by_period(
    trades: Iterable[TradeRecord],
    period: str = "all",
    include_open_trades: bool = False,
    now: Optional[datetime] = None,
) -> List[TradeRecord]:
    """Trades entered within `period` (1m, 3m, 6m, 1y; anything else = all)."""
    days = PERIOD_DAYS.get(period)
    cutoff = None
    if days is not None:
        cutoff = as_utc(now or utc_now()) - timedelta(days=days)

    out: List[TradeRecord] = []
    for t in trades:
        if not include_open_trades and t.exit_date is None:
            continue
        if cutoff is not None and (t.entry_date is None or as_utc(t.entry_date) < cutoff):
            continue
        out.append(t)
    return out


def _win_rate(trades: Sequence[TradeRecord]) -> float:
    if not trades:
        return 0.0
    return sum(1 for t in trades if gross_pnl(t) > 0) / len(trades) * 100


def _summarize(key: str, trades: Sequence[TradeRecord]) -> GroupPerformance:
    total = sum(net_pnl(t) for t in trades)
    return GroupPerformance(
        key=key,
        total_trades=len(trades),
        total_pnl=round_to(total, 2),
        win_rate=round_to(_win_rate(trades), 2),
        avg_trade=round_to(total / len(trades), 2) if trades else 0.0,
    )


def _group(trades: Iterable[TradeRecord], key_fn: Callable[[TradeRecord], Optional[str]]) -> Dict[str, List[TradeRecord]]:
    groups: Dict[str, List[TradeRecord]] = {}
    for t in trades:
        key = key_fn(t)
        if key is None:
            continue
        groups.setdefault(key, []).append(t)
    return groups


def analyze_by_symbol(trades: Iterable[TradeRecord]) -> List[GroupPerformance]:
    return [_summarize(k, v) for k, v in _group(trades, lambda t: t.symbol).items()]


def analyze_by_strategy(trades: Iterable[TradeRecord]) -> List[GroupPerformance]:
    return [_summarize(k, v) for k, v in _group(trades, lambda t: t.strategy or UNKNOWN_STRATEGY).items()]


def analyze_by_time(trades: Iterable[TradeRecord]) -> TimeAnalysis:
    dated = [t for t in trades if t.entry_date is not None]

    by_hour = _group(dated, lambda t: f"{t.entry_date.hour:02d}")
    by_day = _group(dated, lambda t: str(js_weekday(t.entry_date)))
    by_month = _group(dated, lambda t: f"{t.entry_date.month:02d}")

    return TimeAnalysis(
        by_hour=[_summarize(k, by_hour[k]) for k in sorted(by_hour)],
        by_day=[_summarize(k, by_day[k]) for k in sorted(by_day)],
        by_month=[_summarize(k, by_month[k]) for k in sorted(by_month)],
    )


def calculate_risk_metrics(trades: Sequence[TradeRecord]) -> RiskMetrics:
    risks = [t.risk_amount for t in trades if t.risk_amount is not None and t.risk_amount > 0]
    returns = [net_pnl(t) for t in trades]
    total_risk = sum(abs(t.risk_amount or 0.0) for t in trades)
    total_return = sum(returns)

    return RiskMetrics(
        avg_risk_per_trade=round_to(mean(risks), 2),
        max_risk=round_to(max(risks), 2) if risks else 0.0,
        min_risk=round_to(min(risks), 2) if risks else 0.0,
        risk_std_dev=round_to(population_std(risks), 2),
        return_std_dev=round_to(population_std(returns), 2),
        risk_adjusted_return=round_to(total_return / total_risk, 2) if total_risk > 0 else 0.0,
    )


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """0 for empty or unequal-length series and for zero variance."""
    if len(x) != len(y) or not x:
        return 0.0
    n = len(x)
    sum_x = sum(x)
    sum_y = sum(y)
    sum_xy = sum(a * b for a, b in zip(x, y))
    sum_x2 = sum(a * a for a in x)
    sum_y2 = sum(b * b for b in y)

    numerator = n * sum_xy - sum_x * sum_y
    radicand = (n * sum_x2 - sum_x * sum_x) * (n * sum_y2 - sum_y * sum_y)
    if radicand <= 0:
        return 0.0
    return numerator / math.sqrt(radicand)


def calculate_correlations(trades: Iterable[TradeRecord], by: str = "symbol") -> CorrelationMatrix:
    """Pairwise correlation of per-trade P&L percentage series per group."""
    if by == "strategy":
        key_fn: Callable[[TradeRecord], Optional[str]] = lambda t: t.strategy or UNKNOWN_STRATEGY
    else:
        key_fn = lambda t: t.symbol

    ordered = sorted(trades, key=lambda t: to_epoch(t.entry_date))
    groups = _group(ordered, key_fn)
    labels = list(groups)
    series = {k: [t.pnl_percentage or 0.0 for t in v] for k, v in groups.items()}

    matrix: List[List[float]] = []
    for i, a in enumerate(labels):
        row: List[float] = []
        for j, b in enumerate(labels):
            if i == j:
                row.append(1.0)
            else:
                row.append(round_to(pearson_correlation(series[a], series[b]), 4))
        matrix.append(row)
    return CorrelationMatrix(labels=labels, correlations=matrix)


def generate_heat_map(trades: Iterable[TradeRecord]) -> HeatMap:
    totals = [[0.0] * 24 for _ in range(7)]
    counts = [[0] * 24 for _ in range(7)]

    for t in trades:
        if t.entry_date is None:
            continue
        day = js_weekday(t.entry_date)
        hour = t.entry_date.hour
        totals[day][hour] += net_pnl(t)
        counts[day][hour] += 1

    data = [
        [round_to(totals[d][h] / counts[d][h], 2) if counts[d][h] else 0.0 for h in range(24)]
        for d in range(7)
    ]
    return HeatMap(data=data, counts=counts)


def analyze_portfolio(trades: Sequence[TradeRecord]) -> PortfolioAnalysis:
    overview = PortfolioOverview(
        total_trades=len(trades),
        total_pnl=round_to(sum(net_pnl(t) for t in trades), 2),
        win_rate=round_to(_win_rate(trades), 2),
        profit_factor=round_to(
            calculate_profit_factor(
                sum(gross_pnl(t) for t in trades if gross_pnl(t) > 0),
                abs(sum(gross_pnl(t) for t in trades if gross_pnl(t) < 0)),
            ),
            2,
        ),
        sharpe_ratio=calculate_sharpe_ratio(trades),
        max_drawdown=calculate_max_drawdown(trades),
    )
    return PortfolioAnalysis(
        overview=overview,
        symbol_analysis=analyze_by_symbol(trades),
        strategy_analysis=analyze_by_strategy(trades),
        time_analysis=analyze_by_time(trades),
        risk_metrics=calculate_risk_metrics(trades),
        symbol_correlations=calculate_correlations(trades, by="symbol"),
        strategy_correlations=calculate_correlations(trades, by="strategy"),
        heat_map=generate_heat_map(trades),
    )
