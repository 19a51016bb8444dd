"""Market domain models: contract specifications and calculator results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

# Market categories
FUTURES = "futures"
FOREX = "forex"
STOCKS = "stocks"
CRYPTO = "crypto"
INDICES = "indices"
COMMODITIES = "commodities"
MARKET_CATEGORIES = (FUTURES, FOREX, STOCKS, CRYPTO, INDICES, COMMODITIES)

# Position sizing methods
FIXED = "fixed"
RISK_BASED = "risk_based"
PERCENTAGE = "percentage"
VOLATILITY = "volatility"
SIZING_METHODS = (FIXED, RISK_BASED, PERCENTAGE, VOLATILITY)

# Commission types
PER_CONTRACT = "per_contract"
PER_SHARE = "per_share"
PERCENTAGE_COMMISSION = "percentage"
FLAT_RATE = "flat_rate"
COMMISSION_TYPES = (PER_CONTRACT, PER_SHARE, PERCENTAGE_COMMISSION, FLAT_RATE)


class _SpecModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True, extra="ignore")


class CommissionStructure(_SpecModel):
    type: str = Field(default=PER_CONTRACT)
    amount: float = Field(ge=0)
    minimum: Optional[float] = Field(default=None, ge=0)
    maximum: Optional[float] = Field(default=None, ge=0)
    exchange: Optional[float] = Field(default=None, ge=0)
    clearing: Optional[float] = Field(default=None, ge=0)
    nfa: Optional[float] = Field(default=None, ge=0)
    regulation: Optional[float] = Field(default=None, ge=0)

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        if str(v).lower() not in COMMISSION_TYPES:
            raise ValueError(f"commission type must be one of {COMMISSION_TYPES}")
        return str(v).lower()

    @model_validator(mode="after")
    def validate_bounds(self) -> "CommissionStructure":
        if self.minimum and self.maximum and self.minimum > self.maximum:
            raise ValueError("commission minimum must not exceed maximum")
        return self

    @property
    def fees_per_contract(self) -> float:
        return sum(f for f in (self.exchange, self.clearing, self.nfa, self.regulation) if f is not None)


class RiskDefaults(_SpecModel):
    default_stop_loss_percent: float = Field(gt=0, le=100)
    default_take_profit_percent: float = Field(gt=0)
    max_position_size: int = Field(ge=1)
    risk_per_trade_percent: float = Field(gt=0, le=100)
    max_daily_risk: float = Field(gt=0, le=100)
    default_position_sizing: str = Field(default=RISK_BASED)
    account_size_for_calculation: Optional[float] = Field(default=None, gt=0)

    @field_validator("default_position_sizing")
    @classmethod
    def validate_sizing(cls, v: str) -> str:
        if str(v).lower() not in SIZING_METHODS:
            raise ValueError(f"position sizing must be one of {SIZING_METHODS}")
        return str(v).lower()


class ContractSpecification(_SpecModel):
    """Static definition of a tradable contract.

    `tick_size` must be representable with `precision` decimals: price
    validation works on integer tick units at that scale.
    """

    id: str
    symbol: str
    name: str
    description: str = ""
    category: str = Field(default=FUTURES)
    exchange: str = ""
    contract_size: float = Field(default=1.0, gt=0)
    tick_size: float = Field(gt=0)
    tick_value: float = Field(gt=0)
    point_value: float = Field(gt=0)
    minimum_move: Optional[float] = Field(default=None, gt=0)
    currency: str = Field(default="USD")
    precision: int = Field(default=2, ge=0, le=10)
    initial_margin: float = Field(default=0.0, ge=0)
    maintenance_margin: float = Field(default=0.0, ge=0)
    day_trading_margin: Optional[float] = Field(default=None, ge=0)
    default_commission: CommissionStructure
    risk_defaults: RiskDefaults
    is_active: bool = True

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        if str(v).lower() not in MARKET_CATEGORIES:
            raise ValueError(f"category must be one of {MARKET_CATEGORIES}")
        return str(v).lower()

    @field_validator("id", "symbol")
    @classmethod
    def validate_identifier(cls, v: str) -> str:
        v = str(v).strip()
        if not v:
            raise ValueError("identifier must not be empty")
        return v

    @model_validator(mode="after")
    def validate_tick_precision(self) -> "ContractSpecification":
        units = self.tick_size * (10 ** self.precision)
        if round(units) < 1 or abs(units - round(units)) > 1e-6:
            raise ValueError(
                f"tick_size {self.tick_size} is not representable with precision {self.precision}"
            )
        return self

    @property
    def multiplier(self) -> float:
        """Dollars per one unit of price movement per contract."""
        if self.category == FUTURES:
            return self.point_value
        return self.contract_size

    def to_market_info(self) -> "MarketInfo":
        return MarketInfo(
            id=self.id,
            symbol=self.symbol,
            name=self.name,
            category=self.category,
            tick_value=self.tick_value,
            point_value=self.point_value,
            is_active=self.is_active,
        )


@dataclass(frozen=True)
class MarketInfo:
    id: str
    symbol: str
    name: str
    category: str
    tick_value: float
    point_value: float
    is_active: bool


@dataclass(frozen=True)
class MarketCalculationResult:
    gross_pnl: float
    commission: float
    net_pnl: float
    contract_value: float


@dataclass(frozen=True)
class TradeValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class MarketDefaults:
    market: MarketInfo
    suggested_quantity: int
    suggested_stop_loss: Optional[float]
    suggested_take_profit: Optional[float]
    risk_amount: float
    commission_per_contract: float
    margin_requirement: float
