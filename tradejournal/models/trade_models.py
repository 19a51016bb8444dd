"""Trade domain models.

`TradeRecord` is the validated boundary type: journal rows (camelCase or
snake_case keys) are parsed here once, so calculators never meet a missing
direction or a negative quantity.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

LONG = "LONG"
SHORT = "SHORT"

WIN = "WIN"
LOSS = "LOSS"
BREAKEVEN = "BREAKEVEN"

Direction = Literal["LONG", "SHORT"]


def direction_sign(direction: str) -> int:
    return 1 if direction == LONG else -1


class TradeRecord(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    symbol: str = ""
    market: Optional[str] = None
    direction: Direction
    entry_price: float = Field(gt=0)
    exit_price: Optional[float] = Field(default=None, gt=0)
    quantity: int = Field(gt=0)

    stop_loss: Optional[float] = Field(default=None, gt=0)
    take_profit: Optional[float] = Field(default=None, gt=0)

    # Directional excursion prices: favorable = best price reached for this
    # direction, adverse = worst price reached.
    max_favorable_price: Optional[float] = Field(default=None, gt=0)
    max_adverse_price: Optional[float] = Field(default=None, gt=0)

    # Break-even analysis inputs (prices)
    max_potential_profit: Optional[float] = Field(default=None, gt=0)
    max_drawdown: Optional[float] = Field(default=None, gt=0)
    break_even_worked: Optional[bool] = None

    # Monetary excursions
    mae: Optional[float] = None
    mfe: Optional[float] = None

    commission: Optional[float] = Field(default=None, ge=0)
    entry_date: Optional[datetime] = None
    exit_date: Optional[datetime] = None
    strategy: Optional[str] = None
    timeframe: Optional[str] = None
    risk_amount: Optional[float] = None
    duration_minutes: Optional[float] = Field(default=None, ge=0)

    # Derived snapshot, filled by the trade metrics calculator
    pnl: Optional[float] = None
    pnl_percentage: Optional[float] = None
    net_pnl: Optional[float] = None
    r_multiple: Optional[float] = None
    efficiency: Optional[float] = None

    @field_validator("direction", mode="before")
    @classmethod
    def normalize_direction(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("quantity", mode="before")
    @classmethod
    def validate_whole_quantity(cls, v: Any) -> Any:
        if isinstance(v, float) and not v.is_integer():
            raise ValueError("quantity must be a whole number")
        return v

    @property
    def is_open(self) -> bool:
        return self.exit_price is None

    @property
    def market_key(self) -> str:
        return self.market or self.symbol

    @property
    def closed_at(self) -> Optional[datetime]:
        return self.exit_date or self.entry_date


@dataclass(frozen=True)
class TradeMetrics:
    pnl: float
    pnl_percentage: float
    net_pnl: float
    commission: float
    efficiency: Optional[float] = None
    r_multiple: Optional[float] = None
    result: Optional[str] = None   # WIN | LOSS | BREAKEVEN, None while open
    degraded: bool = False


@dataclass(frozen=True)
class InsufficientData:
    current: int
    required: int
    message: str

    @property
    def is_sufficient(self) -> bool:
        return False
