"""Market calculator: contract-aware trade arithmetic.

Plain functions over `ContractSpecification`s. Anything that has to resolve
a market identifier takes the registry by keyword and returns a `Result`
(or a structured validation result) instead of raising.
"""

from __future__ import annotations

import math
from typing import List, Optional

from tradejournal.infrastructure.utils.numbers import js_round, round_to
from tradejournal.models.market_models import (
    RISK_BASED,
    ContractSpecification,
    MarketCalculationResult,
    MarketDefaults,
    TradeValidationResult,
)
from tradejournal.models.result import Ok, Result, market_not_found
from tradejournal.models.trade_models import LONG, direction_sign
from tradejournal.services.market.registry import DEFAULT_REGISTRY, MarketRegistry

LARGE_CONTRACT_VALUE = 1_000_000
HIGH_MARGIN_REQUIREMENT = 100_000
DEFAULT_MARKET_SYMBOL = "ES"


def _num(value: float) -> str:
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def get_market(identifier: object, *, registry: MarketRegistry = DEFAULT_REGISTRY) -> Optional[ContractSpecification]:
    return registry.get(identifier)


def get_default_market(*, registry: MarketRegistry = DEFAULT_REGISTRY) -> Optional[ContractSpecification]:
    spec = registry.get(DEFAULT_MARKET_SYMBOL)
    if spec is not None:
        return spec
    active = registry.active()
    return active[0] if active else None


# ---------------------------------------------------------------------------
# Tick arithmetic
# ---------------------------------------------------------------------------

def _tick_units(spec: ContractSpecification) -> tuple:
    scale = 10 ** spec.precision
    return scale, js_round(spec.tick_size * scale)


def is_price_valid_for_tick(price: float, spec: ContractSpecification) -> bool:
    scale, tick = _tick_units(spec)
    return js_round(price * scale) % tick == 0


def round_to_valid_tick(price: float, spec: ContractSpecification) -> float:
    scale, tick = _tick_units(spec)
    units = js_round(js_round(price * scale) / tick) * tick
    return round_to(units / scale, spec.precision)


def calculate_exit_price_from_points(
    entry_price: float, points: float, direction: str, spec: ContractSpecification
) -> float:
    return round_to(entry_price + points * direction_sign(direction), spec.precision)


def calculate_points_from_prices(entry_price: float, exit_price: float, direction: str) -> float:
    return (exit_price - entry_price) * direction_sign(direction)


def format_price(price: float, symbol: str, *, registry: MarketRegistry = DEFAULT_REGISTRY) -> str:
    spec = registry.get(symbol)
    precision = spec.precision if spec is not None else 2
    return f"{price:.{precision}f}"


# ---------------------------------------------------------------------------
# Money
# ---------------------------------------------------------------------------

def calculate_commission(contracts: int, spec: ContractSpecification, is_round_turn: bool = True) -> float:
    commission = spec.default_commission
    total = commission.amount * contracts + commission.fees_per_contract * contracts

    if commission.minimum and total < commission.minimum:
        total = commission.minimum
    if commission.maximum and total > commission.maximum:
        total = commission.maximum

    if not is_round_turn:
        total /= 2

    return round_to(total, 2)


def calculate_pnl(
    entry_price: float,
    exit_price: float,
    quantity: int,
    market_symbol: str,
    direction: str,
    include_fees: bool = True,
    *,
    registry: MarketRegistry = DEFAULT_REGISTRY,
) -> Result:
    spec = registry.get(market_symbol)
    if spec is None:
        return market_not_found(market_symbol)

    points = calculate_points_from_prices(entry_price, exit_price, direction)
    gross = points * spec.multiplier * quantity
    commission = calculate_commission(quantity, spec, True) if include_fees else 0.0
    contract_value = entry_price * spec.multiplier * quantity

    return Ok(
        MarketCalculationResult(
            gross_pnl=round_to(gross, 2),
            commission=commission,
            net_pnl=round_to(gross - commission, 2),
            contract_value=round_to(contract_value, 2),
        )
    )


def calculate_r_multiple(entry_price: float, exit_price: float, stop_loss: float, direction: str) -> float:
    risk = abs(entry_price - stop_loss)
    if risk == 0:
        return 0.0
    reward = calculate_points_from_prices(entry_price, exit_price, direction)
    return round_to(reward / risk, 2)


def calculate_efficiency(entry_price: float, exit_price: float, max_favorable_price: float, direction: str) -> float:
    """Captured share of the best move, in percent. Not clamped."""
    max_move = calculate_points_from_prices(entry_price, max_favorable_price, direction)
    if max_move == 0:
        return 0.0
    actual = calculate_points_from_prices(entry_price, exit_price, direction)
    return round_to(actual / max_move * 100, 2)


def calculate_position_size(
    risk_amount: float,
    entry_price: float,
    stop_loss: float,
    spec: ContractSpecification,
    method: str = RISK_BASED,
) -> int:
    """Contracts to trade for a given dollar risk.

    Only the risk-based method is modelled; the fixed, percentage and
    volatility methods return one contract.
    """
    if risk_amount <= 0 or entry_price <= 0 or stop_loss <= 0:
        return 0
    distance = abs(entry_price - stop_loss)
    if distance == 0:
        return 0

    if method == RISK_BASED:
        raw = risk_amount / (distance * spec.multiplier)
    else:
        raw = 1

    return min(math.floor(raw), spec.risk_defaults.max_position_size)


def calculate_margin_requirement(
    contracts: int,
    market_symbol: str,
    is_day_trade: bool = False,
    *,
    registry: MarketRegistry = DEFAULT_REGISTRY,
) -> Result:
    spec = registry.get(market_symbol)
    if spec is None:
        return market_not_found(market_symbol)
    per_contract = spec.initial_margin
    if is_day_trade and spec.day_trading_margin is not None:
        per_contract = spec.day_trading_margin
    return Ok(per_contract * contracts)


# ---------------------------------------------------------------------------
# Validation and defaults
# ---------------------------------------------------------------------------

def _check_level(label: str, price: Optional[float], spec: ContractSpecification, errors: List[str]) -> None:
    if price is None:
        return
    if price <= 0:
        errors.append(f"{label} must be positive")
    elif not is_price_valid_for_tick(price, spec):
        errors.append(f"{label} {_num(price)} is not aligned to tick size {_num(spec.tick_size)}")


def validate_trade(
    entry_price: float,
    quantity: float,
    market_symbol: str,
    stop_loss: Optional[float] = None,
    take_profit: Optional[float] = None,
    *,
    registry: MarketRegistry = DEFAULT_REGISTRY,
) -> TradeValidationResult:
    spec = registry.get(market_symbol)
    if spec is None:
        return TradeValidationResult(is_valid=False, errors=[f"Market not found: {market_symbol}"], warnings=[])

    errors: List[str] = []
    warnings: List[str] = []

    if entry_price <= 0:
        errors.append("Entry price must be positive")
    elif not is_price_valid_for_tick(entry_price, spec):
        errors.append(f"Entry price {_num(entry_price)} is not aligned to tick size {_num(spec.tick_size)}")

    max_size = spec.risk_defaults.max_position_size
    if quantity <= 0:
        errors.append("Quantity must be positive")
    if not float(quantity).is_integer():
        errors.append("Quantity must be a whole number")
    if quantity > max_size:
        errors.append(f"Quantity {_num(quantity)} exceeds maximum position size {max_size}")

    _check_level("Stop loss", stop_loss, spec, errors)
    _check_level("Take profit", take_profit, spec, errors)

    if quantity > 0 and entry_price > 0:
        contract_value = entry_price * spec.multiplier * quantity
        if contract_value > LARGE_CONTRACT_VALUE:
            warnings.append(f"Large contract value: ${contract_value:,.2f}")
        margin = spec.initial_margin * quantity
        if margin > HIGH_MARGIN_REQUIREMENT:
            warnings.append(f"High margin requirement: ${margin:,.2f}")

    return TradeValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


def calculate_trade_defaults(
    market_symbol: str,
    account_balance: Optional[float] = None,
    entry_price: Optional[float] = None,
    direction: str = LONG,
    *,
    registry: MarketRegistry = DEFAULT_REGISTRY,
) -> Result:
    """Suggested stop, target and size from a market's risk defaults."""
    spec = registry.get(market_symbol)
    if spec is None:
        return market_not_found(market_symbol)

    risk = spec.risk_defaults
    if account_balance is None:
        account_balance = risk.account_size_for_calculation or 100000
    risk_amount = account_balance * risk.risk_per_trade_percent / 100

    stop: Optional[float] = None
    target: Optional[float] = None
    quantity = 1
    if entry_price is not None and entry_price > 0:
        sign = direction_sign(direction)
        stop = round_to_valid_tick(entry_price * (1 - sign * risk.default_stop_loss_percent / 100), spec)
        target = round_to_valid_tick(entry_price * (1 + sign * risk.default_take_profit_percent / 100), spec)
        quantity = calculate_position_size(risk_amount, entry_price, stop, spec, risk.default_position_sizing)

    return Ok(
        MarketDefaults(
            market=spec.to_market_info(),
            suggested_quantity=quantity,
            suggested_stop_loss=stop,
            suggested_take_profit=target,
            risk_amount=round_to(risk_amount, 2),
            commission_per_contract=calculate_commission(1, spec, True),
            margin_requirement=spec.initial_margin,
        )
    )
