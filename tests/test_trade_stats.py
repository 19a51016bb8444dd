import math
from datetime import datetime

import pytest

from conftest import make_series, make_trade
from tradejournal.services.stats.trade_stats import (
    calculate_efficiency_analysis,
    calculate_max_drawdown,
    calculate_profit_factor,
    calculate_profit_loss_chart,
    calculate_sharpe_ratio,
    calculate_streaks,
    calculate_trade_stats,
    chronological,
)


class TestTradeStats:
    def test_empty(self):
        stats = calculate_trade_stats([])
        assert stats.total_trades == 0
        assert stats.win_rate == 0.0
        assert stats.profit_factor == 0.0

    def test_only_open_trades(self):
        stats = calculate_trade_stats([make_trade(exit_price=None), make_trade(id="t2", exit_price=None)])
        assert stats.total_trades == 2
        assert stats.win_rate == 0.0
        assert stats.total_pnl == 0.0

    def test_basic_aggregates(self):
        trades = make_series([100, -50, 0, 200], commission=2.0)
        stats = calculate_trade_stats(trades)
        assert stats.win_trades == 2
        assert stats.loss_trades == 1
        assert stats.breakeven_trades == 1
        assert stats.win_rate == 50.0
        assert stats.total_pnl == 250.0
        assert stats.total_commission == 8.0
        assert stats.net_pnl == 242.0
        assert stats.avg_win == 150.0
        assert stats.avg_loss == 50.0
        assert stats.profit_factor == 6.0
        assert stats.max_win == 200.0
        assert stats.max_loss == 50.0

    def test_averages_skip_missing_values(self):
        trades = [
            make_trade(pnl=10, net_pnl=10, r_multiple=2.0, efficiency=80.0),
            make_trade(id="t2", pnl=-5, net_pnl=-5),
        ]
        stats = calculate_trade_stats(trades)
        assert stats.avg_r_multiple == 2.0
        assert stats.avg_efficiency == 80.0

    def test_no_losses_gives_infinite_profit_factor(self):
        assert math.isinf(calculate_trade_stats(make_series([10, 20])).profit_factor)


class TestProfitFactor:
    def test_cases(self):
        assert calculate_profit_factor(300, 100) == 3.0
        assert math.isinf(calculate_profit_factor(100, 0))
        assert calculate_profit_factor(0, 0) == 0.0


class TestStreaks:
    def test_win_loss_sequence(self):
        streaks = calculate_streaks(make_series([10, 10, -5, 10, 10, 10]))
        assert streaks.max_win_streak == 3
        assert streaks.current_win_streak == 3
        assert streaks.max_loss_streak == 1
        assert streaks.current_loss_streak == 0

    def test_breakeven_resets_both(self):
        streaks = calculate_streaks(make_series([-5, -5, 0]))
        assert streaks.max_loss_streak == 2
        assert streaks.current_loss_streak == 0

    def test_order_is_by_close_time_not_input_order(self):
        trades = make_series([10, 10, -5])
        streaks = calculate_streaks(list(reversed(trades)))
        assert streaks.current_loss_streak == 1


class TestDrawdownAndSharpe:
    def test_max_drawdown(self):
        assert calculate_max_drawdown(make_series([100, -50, -70, 200])) == 120.0

    def test_drawdown_from_start(self):
        assert calculate_max_drawdown(make_series([-30, -20])) == 50.0

    def test_sharpe_zero_without_variance(self):
        assert calculate_sharpe_ratio(make_series([10, 10], pnl_percentage=1.0)) == 0.0

    def test_sharpe(self):
        trades = make_series([10, -5], pnl_percentage=None)
        trades = [t.model_copy(update={"pnl_percentage": p}) for t, p in zip(trades, [3.0, 1.0])]
        # mean 0.02, population std 0.01
        assert calculate_sharpe_ratio(trades) == 2.0

    def test_sharpe_counts_missing_percentage_as_zero(self):
        trades = make_series([10, -5], pnl_percentage=None)
        trades = [trades[0].model_copy(update={"pnl_percentage": 2.0}), trades[1]]
        # returns 0.02 and 0.0: mean 0.01, population std 0.01
        assert calculate_sharpe_ratio(trades) == 1.0

    def test_chronological_puts_undated_first(self):
        undated = make_trade(id="u", entry_date=None, exit_date=None)
        dated = make_trade(id="d")
        assert [t.id for t in chronological([dated, undated])] == ["u", "d"]


class TestProfitLossChart:
    def test_daily_buckets_with_cumulative(self):
        points = calculate_profit_loss_chart(make_series([100, -40, 60]))
        assert [p.pnl for p in points] == [100.0, -40.0, 60.0]
        assert [p.cumulative for p in points] == [100.0, 60.0, 120.0]

    def test_weekly_buckets_start_on_sunday(self):
        trades = [
            make_trade(id="a", net_pnl=50, exit_date=datetime(2024, 1, 3, 15)),
            make_trade(id="b", net_pnl=25, exit_date=datetime(2024, 1, 5, 15)),
            make_trade(id="c", net_pnl=-10, exit_date=datetime(2024, 1, 8, 15)),
        ]
        points = calculate_profit_loss_chart(trades, period="week")
        assert [p.date for p in points] == ["2023-12-31", "2024-01-07"]
        assert points[0].trades == 2
        assert points[0].pnl == 75.0

    def test_monthly_keys_sort_chronologically(self):
        trades = [
            make_trade(id="a", net_pnl=1, exit_date=datetime(2024, 10, 1)),
            make_trade(id="b", net_pnl=1, exit_date=datetime(2024, 9, 1)),
        ]
        assert [p.date for p in calculate_profit_loss_chart(trades, period="month")] == ["2024-09", "2024-10"]


class TestEfficiencyAnalysis:
    def test_empty(self):
        analysis = calculate_efficiency_analysis([])
        assert analysis.trades_analyzed == 0
        assert [b.count for b in analysis.efficiency_distribution] == [0, 0, 0, 0, 0]

    def test_buckets_and_missed_profit(self):
        trades = [
            make_trade(id="a", efficiency=20.0, net_pnl=100, max_favorable_price=5020, max_adverse_price=4990),
            make_trade(id="b", efficiency=20.5, net_pnl=100, max_favorable_price=5020, max_adverse_price=4990),
            make_trade(id="c", efficiency=100.0, net_pnl=1000, max_favorable_price=5020, max_adverse_price=4990),
            make_trade(id="d", efficiency=90.0),   # no excursions, ignored
        ]
        analysis = calculate_efficiency_analysis(trades)
        counts = {b.range: b.count for b in analysis.efficiency_distribution}
        assert counts == {"0-20%": 1, "21-40%": 1, "41-60%": 0, "61-80%": 0, "81-100%": 1}
        assert analysis.trades_analyzed == 3
        assert analysis.best_efficiency == 100.0
        assert analysis.worst_efficiency == 20.0
        # 20 points * $50 = 1000 possible per trade
        assert analysis.total_missed_profit == pytest.approx(900 + 900 + 0)
