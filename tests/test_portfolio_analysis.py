from datetime import datetime

import pytest

from conftest import make_trade
from tradejournal.services.stats.portfolio_analysis import (
    analyze_by_strategy,
    analyze_by_symbol,
    analyze_by_time,
    analyze_portfolio,
    calculate_correlations,
    calculate_risk_metrics,
    filter_trades_by_period,
    generate_heat_map,
    pearson_correlation,
)


def _trade(id, symbol="ES", strategy=None, pnl=10.0, when=datetime(2024, 1, 1, 10), **kw):
    return make_trade(id=id, symbol=symbol, strategy=strategy, pnl=pnl, net_pnl=pnl, entry_date=when, exit_date=when, **kw)


class TestPearson:
    def test_perfect_positive_and_negative(self):
        assert pearson_correlation([1, 2, 3], [2, 4, 6]) == pytest.approx(1.0)
        assert pearson_correlation([1, 2, 3], [3, 2, 1]) == pytest.approx(-1.0)

    def test_degenerate_inputs(self):
        assert pearson_correlation([1, 2], [1, 2, 3]) == 0.0
        assert pearson_correlation([], []) == 0.0
        assert pearson_correlation([1, 1, 1], [1, 2, 3]) == 0.0


class TestGroupings:
    def test_by_symbol(self):
        groups = analyze_by_symbol([_trade("a", pnl=100), _trade("b", pnl=-50), _trade("c", symbol="NQ", pnl=30)])
        es = next(g for g in groups if g.key == "ES")
        assert es.total_trades == 2
        assert es.total_pnl == 50.0
        assert es.win_rate == 50.0
        assert es.avg_trade == 25.0

    def test_missing_strategy_is_unknown(self):
        keys = [g.key for g in analyze_by_strategy([_trade("a"), _trade("b", strategy="breakout")])]
        assert keys == ["Unknown", "breakout"]

    def test_time_keys_are_sorted_and_padded(self):
        trades = [
            _trade("a", when=datetime(2024, 3, 5, 14)),
            _trade("b", when=datetime(2024, 1, 1, 9)),
        ]
        time_analysis = analyze_by_time(trades)
        assert [g.key for g in time_analysis.by_hour] == ["09", "14"]
        assert [g.key for g in time_analysis.by_month] == ["01", "03"]
        # Monday = 1, Tuesday = 2
        assert [g.key for g in time_analysis.by_day] == ["1", "2"]


class TestRisk:
    def test_risk_metrics(self):
        trades = [_trade("a", pnl=100, risk_amount=50), _trade("b", pnl=-50, risk_amount=150)]
        risk = calculate_risk_metrics(trades)
        assert risk.avg_risk_per_trade == 100.0
        assert risk.max_risk == 150.0
        assert risk.min_risk == 50.0
        assert risk.risk_std_dev == 50.0
        assert risk.risk_adjusted_return == 0.25

    def test_no_risk_data(self):
        risk = calculate_risk_metrics([_trade("a")])
        assert risk.avg_risk_per_trade == 0.0
        assert risk.risk_adjusted_return == 0.0


class TestCorrelations:
    def test_matrix_shape_and_diagonal(self):
        trades = [
            _trade("a", symbol="ES", pnl_percentage=1.0, when=datetime(2024, 1, 1)),
            _trade("b", symbol="NQ", pnl_percentage=2.0, when=datetime(2024, 1, 2)),
            _trade("c", symbol="ES", pnl_percentage=3.0, when=datetime(2024, 1, 3)),
            _trade("d", symbol="NQ", pnl_percentage=6.0, when=datetime(2024, 1, 4)),
        ]
        matrix = calculate_correlations(trades)
        assert matrix.labels == ["ES", "NQ"]
        assert matrix.correlations[0][0] == 1.0
        assert matrix.correlations[1][1] == 1.0
        assert matrix.correlations[0][1] == pytest.approx(1.0)
        assert matrix.correlations[0][1] == matrix.correlations[1][0]

    def test_unequal_series_correlate_to_zero(self):
        trades = [_trade("a", symbol="ES", pnl_percentage=1.0), _trade("b", symbol="NQ", pnl_percentage=2.0),
                  _trade("c", symbol="NQ", pnl_percentage=3.0)]
        assert calculate_correlations(trades).correlations[0][1] == 0.0


class TestHeatMap:
    def test_average_by_weekday_and_hour(self):
        monday_10 = datetime(2024, 1, 1, 10, 30)
        heat = generate_heat_map([_trade("a", pnl=100, when=monday_10), _trade("b", pnl=50, when=monday_10)])
        assert heat.counts[1][10] == 2
        assert heat.data[1][10] == 75.0
        assert heat.data[0][10] == 0.0
        assert len(heat.data) == 7 and all(len(row) == 24 for row in heat.data)


class TestPeriodFilter:
    def test_filters_by_window_and_open_trades(self):
        now = datetime(2024, 6, 30)
        recent = _trade("recent", when=datetime(2024, 6, 15))
        old = _trade("old", when=datetime(2024, 1, 15))
        open_trade = make_trade(id="open", exit_price=None, exit_date=None, entry_date=datetime(2024, 6, 20))

        assert [t.id for t in filter_trades_by_period([recent, old, open_trade], "1m", now=now)] == ["recent"]
        ids = [t.id for t in filter_trades_by_period([recent, old, open_trade], "1m", True, now=now)]
        assert ids == ["recent", "open"]
        assert len(filter_trades_by_period([recent, old], "all", now=now)) == 2


class TestPortfolio:
    def test_overview(self):
        trades = [_trade("a", pnl=100, when=datetime(2024, 1, 1)), _trade("b", pnl=-40, when=datetime(2024, 1, 2))]
        portfolio = analyze_portfolio(trades)
        assert portfolio.overview.total_trades == 2
        assert portfolio.overview.total_pnl == 60.0
        assert portfolio.overview.win_rate == 50.0
        assert portfolio.overview.profit_factor == 2.5
        assert portfolio.overview.max_drawdown == 40.0
