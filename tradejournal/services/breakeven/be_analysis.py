"""Break-even (BE) stop analysis.

All amounts here are per-unit price distances, not dollars: the analysis
compares how far price travelled against where a BE stop would have sat,
independent of contract size.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from tradejournal.infrastructure.utils.numbers import clamp, round_to
from tradejournal.infrastructure.utils.timeutils import to_epoch
from tradejournal.models.trade_models import InsufficientData, TradeRecord, direction_sign

DEFAULT_BE_LEVEL = 0.4
OPTIMAL_BE_FRACTION = 0.4
TRAILING_LOCK_FRACTION = 0.7
SIMULATION_NUDGE = 15
SIMULATION_THRESHOLD = 20.0

AGGRESSIVE_BE = "aggressive-be"
MODERATE_BE = "moderate-be"
CONSERVATIVE_BE = "conservative-be"
NO_BE = "no-be"
INSUFFICIENT_DATA = "insufficient-data"


@dataclass(frozen=True)
class BEAnalysisInput:
    entry_price: float
    exit_price: float
    direction: str
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    max_potential_profit: Optional[float] = None   # best price reached
    max_drawdown: Optional[float] = None           # worst price reached
    break_even_worked: Optional[bool] = None

    @classmethod
    def from_trade(cls, trade: TradeRecord) -> "BEAnalysisInput":
        return cls(
            entry_price=trade.entry_price,
            exit_price=trade.exit_price,
            direction=trade.direction,
            stop_loss=trade.stop_loss,
            take_profit=trade.take_profit,
            max_potential_profit=trade.max_potential_profit,
            max_drawdown=trade.max_drawdown,
            break_even_worked=trade.break_even_worked,
        )


@dataclass(frozen=True)
class BEAnalysisResult:
    profit_capture_rate: float
    be_efficiency: float
    drawdown_tolerance: float
    optimal_be_distance: float
    risk_reward_with_be: float
    potential_improvement: float
    missed_profit_amount: float
    protected_amount: float


@dataclass(frozen=True)
class PortfolioBEMetrics:
    total_trades: int
    trades_with_be: int
    be_success_rate: float
    avg_profit_capture_rate: float
    total_protected_profit: float
    total_missed_profit: float
    net_be_impact: float
    optimal_be_level: float
    recommended_strategy: str


@dataclass(frozen=True)
class BEOptimizationScenario:
    scenario_name: str
    description: str
    be_level: float          # % of target distance where the stop is placed
    be_trigger: float        # % of target distance that activates the move
    use_trailing_be: bool
    expected_success_rate: float
    expected_profit_capture: float
    expected_risk_reduction: float
    recommendation_score: float
    simulated_profit: float = 0.0
    simulated_loss: float = 0.0
    trades_analyzed: int = 0


@dataclass(frozen=True)
class BERecommendations:
    should_use_be: bool
    recommended_strategy: str
    optimal_be_level: float
    confidence: float
    key_insights: List[str]
    top_scenario: Optional[BEOptimizationScenario]
    portfolio_metrics: PortfolioBEMetrics
    all_scenarios: List[BEOptimizationScenario] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Single trade
# ---------------------------------------------------------------------------

def calculate_be_metrics(trade: BEAnalysisInput) -> BEAnalysisResult:
    sign = direction_sign(trade.direction)
    actual = (trade.exit_price - trade.entry_price) * sign

    if trade.max_potential_profit is not None:
        max_possible = (trade.max_potential_profit - trade.entry_price) * sign
    else:
        max_possible = actual

    risk = abs(trade.entry_price - trade.stop_loss) if trade.stop_loss is not None else 0.0
    drawdown = 0.0
    if trade.max_drawdown is not None:
        drawdown = max(0.0, (trade.entry_price - trade.max_drawdown) * sign)

    capture = max(0.0, actual / max_possible * 100) if max_possible > 0 else 0.0

    efficiency = 0.0
    if trade.break_even_worked is True:
        efficiency = min(100.0, 60 + capture * 0.4)
    elif trade.break_even_worked is False:
        missed_percent = max(0.0, 100 - capture)
        efficiency = max(0.0, 100 - missed_percent * 1.2)

    tolerance = drawdown / risk * 100 if risk > 0 else 0.0

    if trade.take_profit is not None:
        optimal = abs(trade.take_profit - trade.entry_price) * OPTIMAL_BE_FRACTION
    else:
        optimal = abs(actual) * OPTIMAL_BE_FRACTION

    missed = max(0.0, max_possible - actual)
    improvement = 0.0
    if trade.break_even_worked is False and missed > 0:
        improvement = missed / max(1.0, abs(actual)) * 100

    protected = actual if trade.break_even_worked is True and actual > 0 else 0.0

    return BEAnalysisResult(
        profit_capture_rate=round_to(capture, 2),
        be_efficiency=round_to(efficiency, 2),
        drawdown_tolerance=round_to(tolerance, 2),
        optimal_be_distance=round_to(optimal, 4),
        risk_reward_with_be=round_to(actual / risk, 2) if risk > 0 else 0.0,
        potential_improvement=round_to(improvement, 2),
        missed_profit_amount=round_to(missed, 4),
        protected_amount=round_to(protected, 4),
    )


# ---------------------------------------------------------------------------
# Portfolio
# ---------------------------------------------------------------------------

def recommend_strategy(success_rate: float, avg_capture: float, net_impact: float) -> str:
    if success_rate > 70 and avg_capture > 75:
        return AGGRESSIVE_BE
    if net_impact < -200:
        return NO_BE
    if success_rate < 40 or net_impact < -100:
        return CONSERVATIVE_BE
    return MODERATE_BE


def calculate_portfolio_be_metrics(trades: Sequence[TradeRecord]) -> PortfolioBEMetrics:
    flagged = [t for t in trades if t.break_even_worked is not None]
    if not flagged:
        return PortfolioBEMetrics(
            total_trades=len(trades),
            trades_with_be=0,
            be_success_rate=0.0,
            avg_profit_capture_rate=0.0,
            total_protected_profit=0.0,
            total_missed_profit=0.0,
            net_be_impact=0.0,
            optimal_be_level=DEFAULT_BE_LEVEL,
            recommended_strategy=INSUFFICIENT_DATA,
        )

    worked = sum(1 for t in flagged if t.break_even_worked)
    metrics = [calculate_be_metrics(BEAnalysisInput.from_trade(t)) for t in flagged if not t.is_open]

    n = len(metrics)
    avg_capture = sum(m.profit_capture_rate for m in metrics) / n if n else 0.0
    avg_optimal = sum(m.optimal_be_distance for m in metrics) / n if n else 0.0
    protected = sum(m.protected_amount for m in metrics)
    missed = sum(m.missed_profit_amount for m in metrics)
    net_impact = protected - missed
    success = worked / len(flagged) * 100

    return PortfolioBEMetrics(
        total_trades=len(trades),
        trades_with_be=len(flagged),
        be_success_rate=round_to(success, 2),
        avg_profit_capture_rate=round_to(avg_capture, 2),
        total_protected_profit=round_to(protected, 2),
        total_missed_profit=round_to(missed, 2),
        net_be_impact=round_to(net_impact, 2),
        optimal_be_level=round_to(avg_optimal, 4) if avg_optimal > 0 else DEFAULT_BE_LEVEL,
        recommended_strategy=recommend_strategy(success, avg_capture, net_impact),
    )


# ---------------------------------------------------------------------------
# Scenario simulation
# ---------------------------------------------------------------------------

def build_be_scenarios(metrics: PortfolioBEMetrics) -> List[BEOptimizationScenario]:
    success = metrics.be_success_rate
    capture = metrics.avg_profit_capture_rate
    return [
        BEOptimizationScenario(
            "No Break-Even",
            "Never use break-even stops - let all trades run to original targets",
            0, 0, False, 0, 100, 0,
            85 if metrics.net_be_impact < -50 else 25,
        ),
        BEOptimizationScenario(
            "Aggressive BE (20%)",
            "Move to break-even very quickly at 20% of target profit",
            20, 25, False, min(90, success * 1.3), max(35, capture * 0.7), 80,
            80 if success > 65 else 40,
        ),
        BEOptimizationScenario(
            "Standard BE (40%)",
            "Move to break-even at 40% of target profit (industry standard)",
            40, 50, False, success, capture, 60,
            70,
        ),
        BEOptimizationScenario(
            "Conservative BE (60%)",
            "Move to break-even later at 60% of target profit",
            60, 70, False, max(20, success * 0.8), min(95, capture * 1.2), 35,
            85 if capture < 60 else 55,
        ),
        BEOptimizationScenario(
            "Trailing BE",
            "Use dynamic trailing break-even that follows price movement",
            30, 40, True, min(85, success * 1.15), min(90, capture * 1.25), 70,
            90,
        ),
        BEOptimizationScenario(
            "Volatility-Adjusted BE",
            "Adjust BE placement based on market volatility and drawdown patterns",
            35, 45, False, min(80, success * 1.1), min(85, capture * 1.15), 65,
            75,
        ),
    ]


def simulate_trailing_be(trade: TradeRecord) -> float:
    """Exit price under a trailing stop that locks 70% of the best move."""
    if trade.max_favorable_price is None:
        return trade.exit_price
    sign = direction_sign(trade.direction)
    best_move = (trade.max_favorable_price - trade.entry_price) * sign
    trailing_price = trade.entry_price + sign * best_move * TRAILING_LOCK_FRACTION
    if trade.max_drawdown is not None and (trade.max_drawdown - trailing_price) * sign <= 0:
        return trailing_price
    return trade.exit_price


def simulate_scenario(trade: TradeRecord, scenario: BEOptimizationScenario) -> float:
    """Per-unit P&L of `trade` had `scenario` managed its stop."""
    sign = direction_sign(trade.direction)
    if trade.max_favorable_price is None or trade.take_profit is None:
        return (trade.exit_price - trade.entry_price) * sign

    target_distance = abs(trade.take_profit - trade.entry_price)
    be_price = trade.entry_price + sign * target_distance * scenario.be_level / 100
    trigger_price = trade.entry_price + sign * target_distance * scenario.be_trigger / 100

    exit_price = trade.exit_price
    if scenario.be_level != 0:
        reached_trigger = (trade.max_favorable_price - trigger_price) * sign >= 0
        if reached_trigger:
            if scenario.use_trailing_be:
                exit_price = simulate_trailing_be(trade)
            elif trade.max_drawdown is not None and (trade.max_drawdown - be_price) * sign <= 0:
                exit_price = be_price

    return (exit_price - trade.entry_price) * sign


def _scenario_sample(trades: Sequence[TradeRecord], sample_size: int, lookback: int) -> List[TradeRecord]:
    qualifying = [t for t in trades if not t.is_open and t.take_profit is not None]
    newest_first = sorted(qualifying, key=lambda t: to_epoch(t.entry_date), reverse=True)
    return newest_first[:lookback][:sample_size]


def generate_be_optimization_scenarios(
    trades: Sequence[TradeRecord],
    portfolio_metrics: Optional[PortfolioBEMetrics] = None,
    *,
    sample_size: int = 50,
    lookback: int = 100,
) -> List[BEOptimizationScenario]:
    """The six BE strategies, simulated and ranked by recommendation score."""
    metrics = portfolio_metrics or calculate_portfolio_be_metrics(trades)
    sample = _scenario_sample(trades, sample_size, lookback)

    ranked: List[BEOptimizationScenario] = []
    for scenario in build_be_scenarios(metrics):
        results = [simulate_scenario(t, scenario) for t in sample]
        n = len(results)
        avg_profit = sum(max(0.0, r) for r in results) / n if n else 0.0
        avg_loss = sum(min(0.0, r) for r in results) / n if n else 0.0

        score = scenario.recommendation_score
        net = avg_profit + avg_loss
        if net > SIMULATION_THRESHOLD:
            score = min(100, score + SIMULATION_NUDGE)
        elif net < -SIMULATION_THRESHOLD:
            score = max(0, score - SIMULATION_NUDGE)

        ranked.append(
            dataclasses.replace(
                scenario,
                simulated_profit=round_to(avg_profit, 4),
                simulated_loss=round_to(avg_loss, 4),
                trades_analyzed=n,
                recommendation_score=score,
            )
        )

    return sorted(ranked, key=lambda s: s.recommendation_score, reverse=True)


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

def calculate_confidence(metrics: PortfolioBEMetrics) -> float:
    confidence = 50
    if metrics.trades_with_be >= 20:
        confidence += 20
    elif metrics.trades_with_be >= 10:
        confidence += 10
    elif metrics.trades_with_be < 5:
        confidence -= 20

    if metrics.be_success_rate > 70 or metrics.be_success_rate < 30:
        confidence += 15
    if abs(metrics.net_be_impact) > 100:
        confidence += 10
    if metrics.be_success_rate > 90 or metrics.be_success_rate < 10:
        confidence -= 10

    return clamp(confidence)


def generate_be_insights(metrics: PortfolioBEMetrics) -> List[str]:
    insights: List[str] = []
    success = metrics.be_success_rate
    capture = metrics.avg_profit_capture_rate
    impact = metrics.net_be_impact

    if success > 65:
        insights.append(f"High BE success rate ({success:.1f}%) suggests BE strategy is working well")
    elif success < 35:
        insights.append(f"Low BE success rate ({success:.1f}%) indicates BE may be hurting performance")

    if capture > 80:
        insights.append(f"Excellent profit capture ({capture:.1f}%) shows good trade management")
    elif capture < 50:
        insights.append(f"Low profit capture ({capture:.1f}%) suggests room for improvement in exit timing")

    if impact > 100:
        insights.append(f"BE strategy has added ${impact:.2f} to your bottom line")
    elif impact < -100:
        insights.append(f"BE strategy has cost you ${abs(impact):.2f} in missed profits")

    if metrics.trades_with_be < 10:
        insights.append("Limited BE data available - recommendations will improve with more trades")

    return insights


def get_be_recommendations(
    trades: Sequence[TradeRecord],
    *,
    min_trades: int = 1,
    sample_size: int = 50,
    lookback: int = 100,
) -> Union[BERecommendations, InsufficientData]:
    metrics = calculate_portfolio_be_metrics(trades)
    if metrics.trades_with_be < min_trades:
        return InsufficientData(
            current=metrics.trades_with_be,
            required=min_trades,
            message="Record whether break-even worked on more trades to get BE recommendations.",
        )

    scenarios = generate_be_optimization_scenarios(trades, metrics, sample_size=sample_size, lookback=lookback)
    return BERecommendations(
        should_use_be=metrics.net_be_impact > -50,
        recommended_strategy=metrics.recommended_strategy,
        optimal_be_level=metrics.optimal_be_level,
        confidence=calculate_confidence(metrics),
        key_insights=generate_be_insights(metrics),
        top_scenario=scenarios[0] if scenarios else None,
        portfolio_metrics=metrics,
        all_scenarios=scenarios[:5],
    )
