import pytest

from conftest import make_trade
from tradejournal.services.breakeven.be_effectiveness import (
    calculate_be_portfolio_impact,
    calculate_missed_profit,
    generate_be_optimization_recommendations,
    get_be_effectiveness_metrics,
)


@pytest.fixture
def journal():
    return [
        make_trade(id="a", strategy="s1", break_even_worked=True, pnl=500, net_pnl=495),
        make_trade(id="b", strategy="s1", break_even_worked=False, exit_price=5005,
                   max_potential_profit=5010, pnl=250, net_pnl=245),
        make_trade(id="c", pnl=100, net_pnl=95),
    ]


class TestMissedProfit:
    def test_dollars_via_contract_multiplier(self):
        trade = make_trade(exit_price=5005, max_potential_profit=5010)
        assert calculate_missed_profit(trade) == 250.0

    def test_short(self):
        trade = make_trade(direction="SHORT", entry_price=5010, exit_price=5005, max_potential_profit=5000, quantity=2)
        assert calculate_missed_profit(trade) == 500.0

    def test_nothing_missed(self):
        assert calculate_missed_profit(make_trade()) == 0.0
        assert calculate_missed_profit(make_trade(max_potential_profit=5005)) == 0.0


class TestEffectiveness:
    def test_overall(self, journal):
        metrics = get_be_effectiveness_metrics(journal)
        assert metrics.total_trades == 3
        assert metrics.trades_with_be == 2
        assert metrics.be_usage_rate == pytest.approx(66.67)
        assert metrics.be_success_rate == 50.0
        assert metrics.avg_protected_amount == 500.0
        assert metrics.avg_missed_profit == 250.0
        assert metrics.net_be_impact == 250.0

    def test_by_strategy(self, journal):
        metrics = get_be_effectiveness_metrics(journal)
        by_key = {s.key: s for s in metrics.by_strategy}
        assert by_key["s1"].net_impact == 250.0
        assert by_key["s1"].recommendation == "maintain"
        assert by_key["No Strategy"].recommendation == "optimize"
        assert metrics.best_performing_strategy == "s1"
        assert metrics.worst_performing_strategy == "No Strategy"

    def test_by_timeframe_and_month(self, journal):
        metrics = get_be_effectiveness_metrics(journal)
        assert [t.key for t in metrics.by_timeframe] == ["Unknown"]
        assert metrics.by_timeframe[0].recommendation == "Current BE approach is adequate"
        assert [m.month for m in metrics.monthly_usage] == ["2024-01"]

    def test_short_timeframe_advice(self):
        metrics = get_be_effectiveness_metrics([make_trade(timeframe="5m", break_even_worked=True)])
        assert metrics.by_timeframe[0].recommendation == "Short timeframes - consider quicker BE triggers"

    def test_empty(self):
        metrics = get_be_effectiveness_metrics([])
        assert metrics.be_usage_rate == 0.0
        assert metrics.best_performing_strategy is None


class TestPortfolioImpact:
    def test_impact(self, journal):
        impact = calculate_be_portfolio_impact(journal, account_size=100000)
        assert impact.total_portfolio_value == 100835.0
        assert impact.be_contribution == 495.0
        assert impact.be_contribution_percent == pytest.approx(59.28)
        assert impact.total_opportunity_value == 250.0
        assert impact.alternative_scenario == 590.0
        assert impact.efficiency == pytest.approx(66.44)

    def test_no_missed_opportunity_is_fully_efficient(self):
        impact = calculate_be_portfolio_impact([make_trade(break_even_worked=True, net_pnl=100)])
        assert impact.efficiency == 100.0


class TestRecommendations:
    def test_healthy_journal(self, journal):
        recs = generate_be_optimization_recommendations(journal)
        assert recs.priority == "low"
        assert recs.recommendations == ["Your BE strategy appears to be performing well - maintain current approach"]
        assert recs.action_items == []

    def test_costly_be_usage(self):
        trade = make_trade(strategy="s1", break_even_worked=False, exit_price=5005,
                           max_potential_profit=5030, pnl=250, net_pnl=245)
        recs = generate_be_optimization_recommendations([trade])
        assert recs.priority == "high"
        assert recs.recommendations[0] == "Your BE strategy is currently costing you $1250.00 - consider reducing BE usage"
        assert 'Strategy "s1" shows BE underperformance (-$1250.00)' in recs.recommendations
        assert len(recs.action_items) >= 3
