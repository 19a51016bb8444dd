"""Shared fixtures: a trade factory and a small custom market registry."""

from datetime import datetime, timedelta

import pytest

import tradejournal.infrastructure.utils.config as config_module
from tradejournal.models.market_models import ContractSpecification
from tradejournal.models.trade_models import TradeRecord
from tradejournal.services.market.registry import MarketRegistry

BASE_TIME = datetime(2024, 1, 2, 10, 0)


@pytest.fixture(autouse=True)
def reset_config():
    """Reset the module-level config before and after each test."""
    config_module._config = None
    yield
    config_module._config = None


def make_trade(**overrides) -> TradeRecord:
    """Closed 1-lot ES long by default; any field can be overridden."""
    data = {
        "id": "t1",
        "symbol": "ES",
        "direction": "LONG",
        "entry_price": 5000.0,
        "exit_price": 5010.0,
        "quantity": 1,
        "entry_date": BASE_TIME,
        "exit_date": BASE_TIME + timedelta(minutes=30),
    }
    data.update(overrides)
    return TradeRecord(**data)


def make_series(pnls, start=BASE_TIME, **overrides):
    """One closed trade per P&L value, a day apart, with pnl == net_pnl."""
    trades = []
    for i, pnl in enumerate(pnls):
        when = start + timedelta(days=i)
        fields = {
            "id": f"t{i}",
            "pnl": pnl,
            "net_pnl": pnl,
            "entry_date": when,
            "exit_date": when + timedelta(minutes=15),
        }
        fields.update(overrides)
        trades.append(make_trade(**fields))
    return trades


def custom_spec(**overrides) -> ContractSpecification:
    data = {
        "id": "test_futures",
        "symbol": "TST",
        "name": "Test Future",
        "category": "futures",
        "tick_size": 0.25,
        "tick_value": 12.5,
        "point_value": 50,
        "precision": 2,
        "initial_margin": 10000,
        "maintenance_margin": 9000,
        "default_commission": {"type": "per_contract", "amount": 2.0},
        "risk_defaults": {
            "default_stop_loss_percent": 1.0,
            "default_take_profit_percent": 2.0,
            "max_position_size": 5,
            "risk_per_trade_percent": 1.0,
            "max_daily_risk": 3.0,
        },
    }
    data.update(overrides)
    return ContractSpecification(**data)


@pytest.fixture
def custom_registry():
    return MarketRegistry([custom_spec()])


@pytest.fixture
def trade_factory():
    return make_trade


class FakeClock:
    """Monotonic clock stand-in; tests move `now` by hand."""

    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now
