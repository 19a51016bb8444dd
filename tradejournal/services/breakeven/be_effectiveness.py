"""Break-even effectiveness across a journal: usage and success per
strategy / symbol / timeframe, monthly trends, dollar impact on the
portfolio and prioritised recommendations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from tradejournal.infrastructure.utils.numbers import round_to
from tradejournal.infrastructure.utils.timeutils import as_utc, to_epoch
from tradejournal.models.trade_models import TradeRecord, direction_sign
from tradejournal.services.market.registry import DEFAULT_REGISTRY, MarketRegistry


@dataclass(frozen=True)
class BEGroupMetrics:
    key: str
    total_trades: int
    be_usage_rate: float
    be_success_rate: float
    net_impact: float
    recommendation: str
    avg_volatility: Optional[float] = None


@dataclass(frozen=True)
class BEMonthlyUsage:
    month: str
    usage: float
    success: float


@dataclass(frozen=True)
class BEEffectivenessMetrics:
    total_trades: int
    trades_with_be: int
    be_usage_rate: float
    be_success_rate: float
    avg_protected_amount: float
    avg_missed_profit: float
    net_be_impact: float
    best_performing_strategy: Optional[str]
    worst_performing_strategy: Optional[str]
    by_strategy: List[BEGroupMetrics] = field(default_factory=list)
    by_symbol: List[BEGroupMetrics] = field(default_factory=list)
    by_timeframe: List[BEGroupMetrics] = field(default_factory=list)
    monthly_usage: List[BEMonthlyUsage] = field(default_factory=list)


@dataclass(frozen=True)
class BEPortfolioImpact:
    total_portfolio_value: float
    be_contribution: float
    be_contribution_percent: float
    alternative_scenario: float
    total_opportunity_value: float
    efficiency: float


@dataclass(frozen=True)
class BEActionItem:
    action: str
    impact: str
    difficulty: str


@dataclass(frozen=True)
class BEOptimizationRecommendations:
    priority: str
    recommendations: List[str]
    action_items: List[BEActionItem]


def calculate_missed_profit(trade: TradeRecord, *, registry: MarketRegistry = DEFAULT_REGISTRY) -> float:
    """Dollars left on the table between the actual exit and the best price."""
    if trade.max_potential_profit is None or trade.exit_price is None:
        return 0.0
    spec = registry.get(trade.market_key)
    multiplier = spec.multiplier if spec is not None else 1.0
    sign = direction_sign(trade.direction)
    actual = (trade.exit_price - trade.entry_price) * sign
    best = (trade.max_potential_profit - trade.entry_price) * sign
    return max(0.0, best - actual) * trade.quantity * multiplier


def _usage(trades: Sequence[TradeRecord]) -> tuple:
    flagged = [t for t in trades if t.break_even_worked is not None]
    usage = len(flagged) / len(trades) * 100 if trades else 0.0
    worked = sum(1 for t in flagged if t.break_even_worked)
    success = worked / len(flagged) * 100 if flagged else 0.0
    return flagged, usage, success


def _net_impact(flagged: Sequence[TradeRecord], registry: MarketRegistry) -> float:
    impact = 0.0
    for t in flagged:
        if t.break_even_worked and (t.pnl or 0.0) > 0:
            impact += t.pnl
        elif not t.break_even_worked:
            impact -= calculate_missed_profit(t, registry=registry)
    return impact


def _strategy_recommendation(net_impact: float, usage: float, success: float) -> str:
    if net_impact < -100:
        return "decrease"
    if net_impact > 200 and usage < 50:
        return "increase"
    if success < 50:
        return "optimize"
    return "maintain"


def _symbol_recommendation(volatility: float, success: float) -> str:
    if volatility > 5 and success < 40:
        return "High volatility - consider wider BE triggers"
    if volatility < 2 and success > 70:
        return "Low volatility - can use tighter BE levels"
    return "Standard BE approach suitable"


def _timeframe_recommendation(timeframe: str) -> str:
    if "1m" in timeframe or "5m" in timeframe:
        return "Short timeframes - consider quicker BE triggers"
    if "1h" in timeframe or "4h" in timeframe:
        return "Longer timeframes - can allow more profit development"
    return "Current BE approach is adequate"


def _avg_volatility(trades: Sequence[TradeRecord]) -> float:
    values = []
    for t in trades:
        if t.max_favorable_price is None or t.max_adverse_price is None:
            continue
        price_range = abs(t.max_favorable_price - t.max_adverse_price)
        mid = (t.max_favorable_price + t.max_adverse_price) / 2
        values.append(price_range / mid * 100)
    return sum(values) / len(values) if values else 0.0


def _groups(trades: Sequence[TradeRecord], key_fn) -> Dict[str, List[TradeRecord]]:
    groups: Dict[str, List[TradeRecord]] = {}
    for t in trades:
        groups.setdefault(key_fn(t), []).append(t)
    return groups


def _by_strategy(trades: Sequence[TradeRecord], registry: MarketRegistry) -> List[BEGroupMetrics]:
    out = []
    for key, group in _groups(trades, lambda t: t.strategy or "No Strategy").items():
        flagged, usage, success = _usage(group)
        impact = _net_impact(flagged, registry)
        out.append(
            BEGroupMetrics(key, len(group), round_to(usage, 2), round_to(success, 2), round_to(impact, 2),
                           _strategy_recommendation(impact, usage, success))
        )
    return out


def _by_symbol(trades: Sequence[TradeRecord], registry: MarketRegistry) -> List[BEGroupMetrics]:
    out = []
    for key, group in _groups(trades, lambda t: t.symbol).items():
        flagged, usage, success = _usage(group)
        impact = _net_impact(flagged, registry)
        volatility = _avg_volatility(group)
        out.append(
            BEGroupMetrics(key, len(group), round_to(usage, 2), round_to(success, 2), round_to(impact, 2),
                           _symbol_recommendation(volatility, success), avg_volatility=round_to(volatility, 2))
        )
    return out


def _by_timeframe(trades: Sequence[TradeRecord], registry: MarketRegistry) -> List[BEGroupMetrics]:
    out = []
    for key, group in _groups(trades, lambda t: t.timeframe or "Unknown").items():
        flagged, usage, success = _usage(group)
        impact = _net_impact(flagged, registry)
        out.append(
            BEGroupMetrics(key, len(group), round_to(usage, 2), round_to(success, 2), round_to(impact, 2),
                           _timeframe_recommendation(key))
        )
    return out


def _monthly_usage(trades: Sequence[TradeRecord]) -> List[BEMonthlyUsage]:
    dated = sorted((t for t in trades if t.entry_date is not None), key=lambda t: to_epoch(t.entry_date))
    months = _groups(dated, lambda t: as_utc(t.entry_date).strftime("%Y-%m"))
    out = []
    for month, group in months.items():
        _, usage, success = _usage(group)
        out.append(BEMonthlyUsage(month, round_to(usage, 2), round_to(success, 2)))
    return out


def get_be_effectiveness_metrics(
    trades: Sequence[TradeRecord], *, registry: MarketRegistry = DEFAULT_REGISTRY
) -> BEEffectivenessMetrics:
    flagged, usage, success = _usage(trades)

    protected = [t.pnl for t in flagged if t.break_even_worked and (t.pnl or 0.0) > 0]
    missed = [m for m in (calculate_missed_profit(t, registry=registry) for t in flagged if not t.break_even_worked) if m > 0]
    net = sum(protected) - sum(missed)

    by_strategy = _by_strategy(trades, registry)
    best = max(by_strategy, key=lambda s: s.net_impact, default=None)
    worst = min(by_strategy, key=lambda s: s.net_impact, default=None)

    return BEEffectivenessMetrics(
        total_trades=len(trades),
        trades_with_be=len(flagged),
        be_usage_rate=round_to(usage, 2),
        be_success_rate=round_to(success, 2),
        avg_protected_amount=round_to(sum(protected) / len(protected), 2) if protected else 0.0,
        avg_missed_profit=round_to(sum(missed) / len(missed), 2) if missed else 0.0,
        net_be_impact=round_to(net, 2),
        best_performing_strategy=best.key if best else None,
        worst_performing_strategy=worst.key if worst else None,
        by_strategy=by_strategy,
        by_symbol=_by_symbol(trades, registry),
        by_timeframe=_by_timeframe(trades, registry),
        monthly_usage=_monthly_usage(trades),
    )


def calculate_be_portfolio_impact(
    trades: Sequence[TradeRecord],
    account_size: float = 100000,
    *,
    registry: MarketRegistry = DEFAULT_REGISTRY,
) -> BEPortfolioImpact:
    total_net = 0.0
    contribution = 0.0
    opportunity = 0.0
    for t in trades:
        if t.is_open or t.net_pnl is None:
            continue
        total_net += t.net_pnl
        if t.break_even_worked is True and t.net_pnl > 0:
            contribution += t.net_pnl
        elif t.break_even_worked is False:
            opportunity += calculate_missed_profit(t, registry=registry)

    portfolio_value = account_size + total_net
    contribution_percent = contribution / total_net * 100 if total_net > 0 else 0.0
    efficiency = contribution / (contribution + opportunity) * 100 if opportunity > 0 else 100.0

    return BEPortfolioImpact(
        total_portfolio_value=round_to(portfolio_value, 2),
        be_contribution=round_to(contribution, 2),
        be_contribution_percent=round_to(contribution_percent, 2),
        alternative_scenario=round_to(total_net + opportunity - contribution, 2),
        total_opportunity_value=round_to(opportunity, 2),
        efficiency=round_to(efficiency, 2),
    )


def generate_be_optimization_recommendations(
    trades: Sequence[TradeRecord],
    account_size: float = 100000,
    *,
    registry: MarketRegistry = DEFAULT_REGISTRY,
) -> BEOptimizationRecommendations:
    metrics = get_be_effectiveness_metrics(trades, registry=registry)
    impact = calculate_be_portfolio_impact(trades, account_size, registry=registry)

    recommendations: List[str] = []
    actions: List[BEActionItem] = []
    priority = "medium"

    if metrics.net_be_impact < -500:
        priority = "high"
        recommendations.append(
            f"Your BE strategy is currently costing you ${abs(metrics.net_be_impact):.2f} - consider reducing BE usage"
        )
        actions.append(BEActionItem(
            "Reduce break-even usage by 50% for the next 20 trades",
            "High - could recover significant lost profits",
            "Low",
        ))

    if metrics.be_success_rate < 30 and metrics.be_usage_rate > 50:
        priority = "high"
        recommendations.append(
            f"Low BE success rate ({metrics.be_success_rate:.1f}%) with high usage - optimize timing"
        )
        actions.append(BEActionItem(
            "Move BE triggers from current level to 60% of target profit",
            "High - should improve success rate",
            "Medium",
        ))

    if impact.efficiency < 60:
        recommendations.append(f"BE efficiency is {impact.efficiency:.1f}% - room for improvement in timing")
        actions.append(BEActionItem(
            "Analyze BE timing patterns and adjust trigger levels",
            "Medium - gradual improvement",
            "Medium",
        ))

    underperforming = sorted((s for s in metrics.by_strategy if s.net_impact < -100), key=lambda s: s.net_impact)[:3]
    for s in underperforming:
        recommendations.append(f'Strategy "{s.key}" shows BE underperformance (-${abs(s.net_impact):.2f})')
        actions.append(BEActionItem(f"Review BE usage for {s.key} strategy", "Medium", "Low"))

    if metrics.be_usage_rate < 20 and metrics.net_be_impact > 100:
        if priority != "high":
            priority = "low"
        recommendations.append(
            f"Low BE usage ({metrics.be_usage_rate:.1f}%) but positive impact - consider increasing usage"
        )

    if not recommendations:
        recommendations.append("Your BE strategy appears to be performing well - maintain current approach")
        priority = "low"

    return BEOptimizationRecommendations(priority=priority, recommendations=recommendations, action_items=actions)
