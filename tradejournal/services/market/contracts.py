"""Built-in contract specifications."""

from __future__ import annotations

from typing import Any, Dict, List

from tradejournal.models.market_models import ContractSpecification

_CME_FEES: Dict[str, Any] = {"exchange": 1.02, "clearing": 0.02, "nfa": 0.02}
_MICRO_FEES: Dict[str, Any] = {"exchange": 0.30, "clearing": 0.02, "nfa": 0.02}


def _futures(
    *,
    id: str,
    symbol: str,
    name: str,
    description: str,
    exchange: str,
    tick_size: float,
    tick_value: float,
    point_value: float,
    precision: int,
    margins: tuple,
    commission: float,
    fees: Dict[str, Any],
    risk: Dict[str, Any],
) -> ContractSpecification:
    initial, maintenance, day = margins
    return ContractSpecification(
        id=id,
        symbol=symbol,
        name=name,
        description=description,
        category="futures",
        exchange=exchange,
        contract_size=1,
        tick_size=tick_size,
        tick_value=tick_value,
        point_value=point_value,
        minimum_move=tick_size,
        currency="USD",
        precision=precision,
        initial_margin=initial,
        maintenance_margin=maintenance,
        day_trading_margin=day,
        default_commission={"type": "per_contract", "amount": commission, **fees},
        risk_defaults={"account_size_for_calculation": 100000, "default_position_sizing": "risk_based", **risk},
        is_active=True,
    )


ES_FUTURES = _futures(
    id="es_futures",
    symbol="ES",
    name="E-mini S&P 500",
    description="E-mini S&P 500 futures contract",
    exchange="CME",
    tick_size=0.25,
    tick_value=12.5,
    point_value=50,
    precision=2,
    margins=(13200, 12000, 6600),
    commission=4.00,
    fees=_CME_FEES,
    risk={
        "default_stop_loss_percent": 1.0,
        "default_take_profit_percent": 2.0,
        "max_position_size": 10,
        "risk_per_trade_percent": 1.0,
        "max_daily_risk": 3.0,
    },
)

NQ_FUTURES = _futures(
    id="nq_futures",
    symbol="NQ",
    name="E-mini NASDAQ-100",
    description="E-mini NASDAQ-100 futures contract",
    exchange="CME",
    tick_size=0.25,
    tick_value=5.0,
    point_value=20,
    precision=2,
    margins=(19800, 18000, 9900),
    commission=4.00,
    fees=_CME_FEES,
    risk={
        "default_stop_loss_percent": 1.2,
        "default_take_profit_percent": 2.4,
        "max_position_size": 8,
        "risk_per_trade_percent": 1.5,
        "max_daily_risk": 4.0,
    },
)

MES_FUTURES = _futures(
    id="mes_futures",
    symbol="MES",
    name="Micro E-mini S&P 500",
    description="Micro E-mini S&P 500 futures contract",
    exchange="CME",
    tick_size=0.25,
    tick_value=1.25,
    point_value=5,
    precision=2,
    margins=(1320, 1200, 660),
    commission=0.85,
    fees=_MICRO_FEES,
    risk={
        "default_stop_loss_percent": 1.0,
        "default_take_profit_percent": 2.0,
        "max_position_size": 50,
        "risk_per_trade_percent": 1.0,
        "max_daily_risk": 3.0,
    },
)

MNQ_FUTURES = _futures(
    id="mnq_futures",
    symbol="MNQ",
    name="Micro E-mini NASDAQ-100",
    description="Micro E-mini NASDAQ-100 futures contract",
    exchange="CME",
    tick_size=0.25,
    tick_value=0.5,
    point_value=2,
    precision=2,
    margins=(1980, 1800, 990),
    commission=0.85,
    fees=_MICRO_FEES,
    risk={
        "default_stop_loss_percent": 1.2,
        "default_take_profit_percent": 2.4,
        "max_position_size": 40,
        "risk_per_trade_percent": 1.5,
        "max_daily_risk": 4.0,
    },
)

YM_FUTURES = _futures(
    id="ym_futures",
    symbol="YM",
    name="E-mini Dow",
    description="E-mini Dow Jones Industrial Average futures contract",
    exchange="CBOT",
    tick_size=1.0,
    tick_value=5.0,
    point_value=5,
    precision=0,
    margins=(9900, 9000, 4950),
    commission=4.00,
    fees=_CME_FEES,
    risk={
        "default_stop_loss_percent": 1.0,
        "default_take_profit_percent": 2.0,
        "max_position_size": 10,
        "risk_per_trade_percent": 1.0,
        "max_daily_risk": 3.0,
    },
)

RTY_FUTURES = _futures(
    id="rty_futures",
    symbol="RTY",
    name="E-mini Russell 2000",
    description="E-mini Russell 2000 futures contract",
    exchange="CME",
    tick_size=0.1,
    tick_value=5.0,
    point_value=50,
    precision=1,
    margins=(7150, 6500, 3575),
    commission=4.00,
    fees=_CME_FEES,
    risk={
        "default_stop_loss_percent": 1.5,
        "default_take_profit_percent": 3.0,
        "max_position_size": 10,
        "risk_per_trade_percent": 1.0,
        "max_daily_risk": 3.0,
    },
)

CL_FUTURES = _futures(
    id="cl_futures",
    symbol="CL",
    name="Crude Oil",
    description="Light sweet crude oil futures contract",
    exchange="NYMEX",
    tick_size=0.01,
    tick_value=10.0,
    point_value=1000,
    precision=2,
    margins=(6600, 6000, 3300),
    commission=4.00,
    fees={"exchange": 1.50, "clearing": 0.02, "nfa": 0.02},
    risk={
        "default_stop_loss_percent": 2.0,
        "default_take_profit_percent": 4.0,
        "max_position_size": 5,
        "risk_per_trade_percent": 1.0,
        "max_daily_risk": 3.0,
    },
)

GC_FUTURES = _futures(
    id="gc_futures",
    symbol="GC",
    name="Gold",
    description="Gold futures contract",
    exchange="COMEX",
    tick_size=0.1,
    tick_value=10.0,
    point_value=100,
    precision=1,
    margins=(11000, 10000, 5500),
    commission=4.00,
    fees={"exchange": 1.55, "clearing": 0.02, "nfa": 0.02},
    risk={
        "default_stop_loss_percent": 1.0,
        "default_take_profit_percent": 2.0,
        "max_position_size": 5,
        "risk_per_trade_percent": 1.0,
        "max_daily_risk": 3.0,
    },
)

EURUSD_SPOT = ContractSpecification(
    id="eurusd_spot",
    symbol="EURUSD",
    name="Euro / US Dollar",
    description="Standard lot EUR/USD",
    category="forex",
    exchange="OTC",
    contract_size=100000,
    tick_size=0.00001,
    tick_value=1.0,
    point_value=100000,
    minimum_move=0.00001,
    currency="USD",
    precision=5,
    initial_margin=3333,
    maintenance_margin=3333,
    default_commission={"type": "per_contract", "amount": 7.0},
    risk_defaults={
        "default_stop_loss_percent": 0.5,
        "default_take_profit_percent": 1.0,
        "max_position_size": 20,
        "risk_per_trade_percent": 1.0,
        "max_daily_risk": 3.0,
        "default_position_sizing": "risk_based",
        "account_size_for_calculation": 100000,
    },
    is_active=True,
)

DEFAULT_CONTRACTS: List[ContractSpecification] = [
    ES_FUTURES,
    NQ_FUTURES,
    MES_FUTURES,
    MNQ_FUTURES,
    YM_FUTURES,
    RTY_FUTURES,
    CL_FUTURES,
    GC_FUTURES,
    EURUSD_SPOT,
]
