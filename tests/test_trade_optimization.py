from datetime import datetime, timedelta

import pytest

from conftest import make_trade
from tradejournal.services.market.registry import DEFAULT_REGISTRY
from tradejournal.services.optimization.trade_optimization import (
    DEFAULT_POINT_VALUE,
    get_optimization_insights,
    percentile,
    primary_point_value,
)


def _journal(winners=16, losers=4):
    trades = []
    for i in range(winners + losers):
        win = i < winners
        when = datetime(2024, 1, 2, 10) + timedelta(days=i)
        trades.append(
            make_trade(
                id=str(i),
                pnl=200.0 if win else -150.0,
                net_pnl=196.0 if win else -154.0,
                mae=-100.0 if win else -300.0,
                mfe=300.0 if win else 50.0,
                entry_date=when,
                exit_date=when + timedelta(minutes=20),
            )
        )
    return trades


class TestHelpers:
    def test_percentile_nearest_rank(self):
        assert percentile(list(range(1, 11)), 75) == 8
        assert percentile([5.0], 75) == 5.0
        assert percentile([], 50) == 0.0

    def test_point_value_from_primary_symbol(self, custom_registry):
        trades = [make_trade(symbol="NQ"), make_trade(symbol="ES"), make_trade(symbol="NQ")]
        assert primary_point_value(trades, custom_registry) == DEFAULT_POINT_VALUE
        assert primary_point_value(trades, DEFAULT_REGISTRY) == 20


class TestInsufficientData:
    def test_small_journal(self):
        insights = get_optimization_insights(_journal(winners=5, losers=2))
        assert not insights.has_enough_data
        assert insights.current_trades == 7
        assert insights.min_trades_required == 20
        assert insights.stop_loss is None
        assert insights.take_profit is None
        assert insights.risk_reward is None
        assert insights.timing is None

    def test_data_quality_counts(self):
        trades = _journal(winners=2, losers=1) + [make_trade(break_even_worked=True)]
        quality = get_optimization_insights(trades).data_quality
        assert quality.has_mae == 3
        assert quality.has_mfe == 3
        assert quality.has_be == 1
        assert quality.has_advanced == 0


class TestFullJournal:
    @pytest.fixture
    def insights(self):
        return get_optimization_insights(_journal())

    def test_stop_loss(self, insights):
        stop = insights.stop_loss
        assert stop.avg_mae_winners == 100.0
        assert stop.avg_mae_losers == 300.0
        assert stop.percentile75_mae == 100.0
        assert stop.recommended_stop == 115.0
        assert stop.recommended_stop_points == 2.3
        assert stop.stops_avoided == 0
        assert stop.insight == "Your winners typically have smaller adverse excursions. Current stops may be too wide."

    def test_take_profit(self, insights):
        target = insights.take_profit
        assert target.avg_mfe_achieved == 250.0
        assert target.avg_exit_pnl == 190.0
        assert target.potential_left_on_table == 60.0
        assert target.recommended_target == 180.0
        assert target.capture_rate == 76.0
        assert target.partial_exit_suggestion == "Your capture rate is good. Consider trailing stops to maximize."
        assert target.insight == "Good profit capture at 76%. Focus on consistency."

    def test_risk_reward(self, insights):
        rr = insights.risk_reward
        assert rr.current_win_rate == 80.0
        assert rr.current_expectancy == 126.0
        assert rr.suggested_stop == 115.0
        assert rr.suggested_target == 180.0
        assert rr.expected_pnl_per_trade == 121.0
        assert rr.break_even_win_rate == pytest.approx(38.98)
        assert rr.comparison == "Your 80% win rate exceeds required 39%"

    def test_timing(self, insights):
        timing = insights.timing
        assert [h.hour for h in timing.best_entry_hours] == [10]
        assert timing.best_entry_hours[0].trades == 20
        assert timing.suggested_time_stop == 30
        assert timing.insight == "Best performance at 10:00-11:00 with 80% win rate"

    def test_time_stop_from_winner_durations(self):
        trades = [t.model_copy(update={"duration_minutes": 45}) for t in _journal()]
        assert get_optimization_insights(trades).timing.suggested_time_stop == 23

    def test_configurable_threshold(self):
        insights = get_optimization_insights(_journal(winners=3, losers=1), min_trades=4)
        assert insights.has_enough_data
        assert insights.stop_loss is not None
