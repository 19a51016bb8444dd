"""Discriminated result type for calculator entry points.

Entry points that depend on resolving a market return `Ok(value)` or
`Err(kind, detail)` instead of raising, so callers choose whether a miss is
fatal (`unwrap()`) or has a fallback (`unwrap_or()`).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from tradejournal.models.errors import AnalyticsError, InvalidInputError, MarketNotFoundError

T = TypeVar("T")

NOT_FOUND = "not_found"
INVALID_INPUT = "invalid_input"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    kind: str         # NOT_FOUND | INVALID_INPUT
    detail: str
    subject: object = None

    @property
    def is_ok(self) -> bool:
        return False

    def to_exception(self) -> AnalyticsError:
        if self.kind == NOT_FOUND:
            return MarketNotFoundError(self.subject if self.subject is not None else self.detail)
        return InvalidInputError(self.detail)

    def unwrap(self):
        raise self.to_exception()

    def unwrap_or(self, default):
        return default


Result = Union[Ok[T], Err]


def market_not_found(market: object) -> Err:
    return Err(kind=NOT_FOUND, detail=f"Market not found: {market}", subject=market)
