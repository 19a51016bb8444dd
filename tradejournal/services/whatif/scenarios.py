"""What-if scenario simulator (aggregate projections).

Each catalog scenario projects an improvement as a fixed fraction of the
absolute net P&L of the trade set. The fractions are heuristic constants
with no fitted basis; they live on the scenario definitions so they can be
tuned or overridden with custom scenarios, never inferred.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from tradejournal.infrastructure.utils.numbers import round_to
from tradejournal.models.trade_models import TradeRecord
from tradejournal.services.stats.trade_stats import TradeStats, calculate_trade_stats, gross_pnl, net_pnl

# Which trades a scenario touches
AFFECTS_ALL = "all"
AFFECTS_NON_WINNERS = "non_winners"

DEFAULT_IMPROVEMENT_FACTOR = 0.10
PROFIT_FACTOR_SCALE = 1000.0
R_MULTIPLE_SCALE = 10.0
HIGH_IMPACT_PERCENT = 10.0


@dataclass(frozen=True)
class ScenarioDefinition:
    id: str
    name: str
    description: str
    category: str                      # entry | exit | risk | selection | management
    color: str = "#6B7280"
    pnl_improvement_factor: float = DEFAULT_IMPROVEMENT_FACTOR
    win_rate_improvement: float = 0.0
    affects: str = AFFECTS_ALL


SCENARIO_CATALOG: List[ScenarioDefinition] = [
    ScenarioDefinition(
        "better_entry", "Better Entry Timing",
        "What if you had 5% better entry prices on all trades?", "entry", "#10B981",
        pnl_improvement_factor=0.15,
    ),
    ScenarioDefinition(
        "better_exit", "Better Exit Timing",
        "What if you had 5% better exit prices on all trades?", "exit", "#3B82F6",
        pnl_improvement_factor=0.15,
    ),
    ScenarioDefinition(
        "proper_position_sizing", "Proper Position Sizing",
        "What if you risked exactly 2% on every trade?", "risk", "#8B5CF6",
        pnl_improvement_factor=0.25, win_rate_improvement=2.0,
    ),
    ScenarioDefinition(
        "winning_setups_only", "Winning Setups Only",
        "What if you only traded your winning setups?", "selection", "#F59E0B",
        pnl_improvement_factor=0.40, win_rate_improvement=15.0, affects=AFFECTS_NON_WINNERS,
    ),
    ScenarioDefinition(
        "tighter_stops", "Tighter Stop Losses",
        "What if you had 20% tighter stop losses?", "risk", "#EF4444",
    ),
    ScenarioDefinition(
        "scaling_out", "Position Scaling",
        "What if you scaled out 50% at first target?", "management", "#06B6D4",
    ),
    ScenarioDefinition(
        "optimal_stop_loss", "Optimal Stop Loss",
        "What if you used data-driven optimal stop loss levels?", "risk", "#DC2626",
    ),
    ScenarioDefinition(
        "remove_worst_trades", "Remove Worst 10%",
        "What if you avoided your worst 10% of trades?", "selection", "#EA580C",
    ),
    ScenarioDefinition(
        "best_day_only", "Best Trading Days",
        "What if you only traded on your most profitable days?", "selection", "#CA8A04",
    ),
    ScenarioDefinition(
        "trailing_stops", "Trailing Stop Loss",
        "What if you used trailing stops to maximize profits?", "management", "#0891B2",
    ),
    ScenarioDefinition(
        "risk_reward_filter", "1:2 Risk-Reward Filter",
        "What if you only took trades with 1:2+ risk-reward?", "selection", "#7C2D12",
    ),
    ScenarioDefinition(
        "market_condition_filter", "Market Condition Filter",
        "What if you avoided trading in unfavorable conditions?", "selection", "#4338CA",
    ),
]

CATEGORY_INSIGHTS: Dict[str, str] = {
    "entry": "Focus on improving entry timing through better market analysis and patience.",
    "exit": "Develop clear exit criteria and stick to your trading plan.",
    "risk": "Consistent risk management provides better risk-adjusted returns.",
    "selection": "Analyze trade patterns to identify and avoid poor setups.",
    "management": "Better trade management can help optimize profit capture.",
}


@dataclass(frozen=True)
class ScenarioImprovement:
    total_pnl_improvement: float = 0.0
    total_pnl_improvement_percent: float = 0.0
    win_rate_improvement: float = 0.0
    profit_factor_improvement: float = 0.0
    avg_r_multiple_improvement: float = 0.0
    trades_affected: int = 0
    account_return_percent: float = 0.0


@dataclass(frozen=True)
class ScenarioResult:
    scenario: ScenarioDefinition
    original_stats: TradeStats
    improved_stats: TradeStats
    improvement: ScenarioImprovement
    insights: List[str]


@dataclass(frozen=True)
class WhatIfSummary:
    best_scenario: Optional[ScenarioResult]
    total_potential_improvement: float
    key_insights: List[str]


@dataclass(frozen=True)
class WhatIfAnalysisResult:
    original_stats: TradeStats
    scenarios: List[ScenarioResult]
    top_improvements: List[ScenarioResult]
    summary: WhatIfSummary


@dataclass(frozen=True)
class ImprovementSuggestion:
    id: str
    title: str
    description: str
    priority: str                      # high | medium | low
    category: str
    potential_improvement: float
    time_to_implement: str = "medium"
    difficulty: str = "medium"
    action_steps: List[str] = field(default_factory=list)
    related_scenarios: List[str] = field(default_factory=list)


def get_available_scenarios() -> List[ScenarioDefinition]:
    return list(SCENARIO_CATALOG)


def _as_definition(raw: Union[ScenarioDefinition, Dict[str, Any]]) -> ScenarioDefinition:
    if isinstance(raw, ScenarioDefinition):
        return raw
    known = {f.name for f in dataclasses.fields(ScenarioDefinition)}
    return ScenarioDefinition(**{k: v for k, v in raw.items() if k in known})


def calculate_scenario_improvement(
    trades: Sequence[TradeRecord], scenario: ScenarioDefinition, account_size: float = 100000
) -> ScenarioImprovement:
    total_pnl = sum(net_pnl(t) for t in trades)
    total_trades = len(trades)
    winners = sum(1 for t in trades if gross_pnl(t) > 0)

    improvement = abs(total_pnl) * scenario.pnl_improvement_factor
    affected = total_trades - winners if scenario.affects == AFFECTS_NON_WINNERS else total_trades
    percent = improvement / abs(total_pnl) * 100 if total_pnl != 0 else 0.0

    return ScenarioImprovement(
        total_pnl_improvement=round_to(improvement, 2),
        total_pnl_improvement_percent=round_to(percent, 2),
        win_rate_improvement=scenario.win_rate_improvement,
        profit_factor_improvement=round_to(improvement / PROFIT_FACTOR_SCALE, 2),
        avg_r_multiple_improvement=round_to(scenario.win_rate_improvement / R_MULTIPLE_SCALE, 2),
        trades_affected=affected,
        account_return_percent=round_to(improvement / account_size * 100, 2) if account_size > 0 else 0.0,
    )


def generate_scenario_insights(
    scenario: ScenarioDefinition, improvement: ScenarioImprovement, total_trades: int
) -> List[str]:
    insights: List[str] = []
    if improvement.total_pnl_improvement > 0:
        insights.append(f"This scenario could improve your total P&L by ${improvement.total_pnl_improvement:.2f}.")
    insights.append(f"{improvement.trades_affected} out of {total_trades} trades would be affected.")
    category_line = CATEGORY_INSIGHTS.get(scenario.category)
    if category_line:
        insights.append(category_line)
    return insights


def generate_key_insights(top_improvements: Sequence[ScenarioResult], original_stats: TradeStats) -> List[str]:
    insights: List[str] = []
    if top_improvements:
        best = top_improvements[0]
        insights.append(
            f"{best.scenario.name} offers the highest improvement potential: "
            f"${best.improvement.total_pnl_improvement:.2f}."
        )
        high_impact = [r for r in top_improvements if r.improvement.total_pnl_improvement_percent > HIGH_IMPACT_PERCENT]
        if high_impact:
            insights.append(f"{len(high_impact)} scenarios could improve your returns by more than 10%.")
    if original_stats.win_rate < 50:
        insights.append("Focus on trade quality to improve your win rate.")
    return insights


def empty_what_if_result() -> WhatIfAnalysisResult:
    stats = calculate_trade_stats([])
    return WhatIfAnalysisResult(
        original_stats=stats,
        scenarios=[],
        top_improvements=[],
        summary=WhatIfSummary(
            best_scenario=None,
            total_potential_improvement=0.0,
            key_insights=["No trades available for analysis."],
        ),
    )


def run_what_if_calculations(
    trades: Sequence[TradeRecord],
    scenario_ids: Optional[Iterable[str]] = None,
    account_size: float = 100000,
    custom_scenarios: Optional[Iterable[Union[ScenarioDefinition, Dict[str, Any]]]] = None,
) -> WhatIfAnalysisResult:
    """Project every selected scenario over `trades`.

    `scenario_ids` filters the catalog (catalog order is kept); custom
    scenarios always run, after the catalog selection.
    """
    if not trades:
        return empty_what_if_result()

    original = calculate_trade_stats(trades)

    selected = SCENARIO_CATALOG
    if scenario_ids is not None:
        wanted = set(scenario_ids)
        selected = [s for s in SCENARIO_CATALOG if s.id in wanted]
    to_run = list(selected) + [_as_definition(c) for c in (custom_scenarios or [])]

    results: List[ScenarioResult] = []
    for scenario in to_run:
        improvement = calculate_scenario_improvement(trades, scenario, account_size)
        improved = dataclasses.replace(
            original,
            net_pnl=round_to(original.net_pnl + improvement.total_pnl_improvement, 2),
            win_rate=round_to(original.win_rate + improvement.win_rate_improvement, 2),
            profit_factor=round_to(original.profit_factor + improvement.profit_factor_improvement, 2),
        )
        results.append(
            ScenarioResult(
                scenario=scenario,
                original_stats=original,
                improved_stats=improved,
                improvement=improvement,
                insights=generate_scenario_insights(scenario, improvement, len(trades)),
            )
        )

    # sorted() is stable: equal improvements keep catalog order
    top = sorted(results, key=lambda r: r.improvement.total_pnl_improvement, reverse=True)[:3]

    return WhatIfAnalysisResult(
        original_stats=original,
        scenarios=results,
        top_improvements=top,
        summary=WhatIfSummary(
            best_scenario=top[0] if top else None,
            total_potential_improvement=round_to(sum(max(0.0, r.improvement.total_pnl_improvement) for r in top), 2),
            key_insights=generate_key_insights(top, original),
        ),
    )


def suggestion_priority(improvement_percent: float) -> str:
    if improvement_percent > 20:
        return "high"
    if improvement_percent > 10:
        return "medium"
    return "low"


def generate_smart_suggestions(
    analysis: WhatIfAnalysisResult,
    priority: Optional[str] = None,
    category: Optional[str] = None,
) -> List[ImprovementSuggestion]:
    suggestions: List[ImprovementSuggestion] = []
    for result in analysis.top_improvements[:3]:
        suggestion = ImprovementSuggestion(
            id=f"suggestion-{result.scenario.id}",
            title=f"Implement {result.scenario.name}",
            description=result.scenario.description,
            priority=suggestion_priority(result.improvement.total_pnl_improvement_percent),
            category=result.scenario.category,
            potential_improvement=result.improvement.total_pnl_improvement,
            action_steps=list(result.insights),
            related_scenarios=[result.scenario.name],
        )
        if priority and suggestion.priority != priority:
            continue
        if category and suggestion.category != category:
            continue
        suggestions.append(suggestion)
    return suggestions


def get_comparison_chart_data(analysis: WhatIfAnalysisResult) -> List[Dict[str, Any]]:
    """Original vs improved net P&L per scenario, for bar charts."""
    return [
        {
            "scenario": r.scenario.name,
            "original": r.original_stats.net_pnl,
            "improved": r.improved_stats.net_pnl,
            "improvement": r.improvement.total_pnl_improvement,
            "color": r.scenario.color,
        }
        for r in analysis.scenarios
    ]
