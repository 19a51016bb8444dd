"""Market specification registry.

An immutable, explicitly constructed lookup table of contract
specifications. Calculators receive a registry by reference; nothing reads
a process-wide mutable table.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml
from pydantic import ValidationError

from tradejournal.models.market_models import ContractSpecification, MarketInfo
from tradejournal.services.market.contracts import DEFAULT_CONTRACTS


def extract_base_symbol(symbol: str) -> str:
    """`"ES 12-24"` -> `"ES"`."""
    parts = str(symbol).strip().split()
    return parts[0].upper() if parts else ""


class MarketRegistry:
    def __init__(self, specs: Iterable[ContractSpecification]) -> None:
        ordered: List[ContractSpecification] = []
        by_id: Dict[str, ContractSpecification] = {}
        by_symbol: Dict[str, ContractSpecification] = {}
        for spec in specs:
            key = spec.id.casefold()
            if key in by_id:
                raise ValueError(f"Duplicate market id: {spec.id}")
            by_id[key] = spec
            by_symbol.setdefault(spec.symbol.casefold(), spec)
            ordered.append(spec)
        self._specs = tuple(ordered)
        self._by_id = by_id
        self._by_symbol = by_symbol

    @classmethod
    def default(cls) -> "MarketRegistry":
        return cls(DEFAULT_CONTRACTS)

    @classmethod
    def from_yaml(cls, path: Path, *, include_defaults: bool = True) -> "MarketRegistry":
        """Load specs from a YAML list (or a mapping with a `contracts` list)."""
        if not path.exists():
            raise FileNotFoundError(f"Contracts file not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data: Any = yaml.safe_load(f) or []
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in contracts file: {e}")

        if isinstance(data, dict):
            data = data.get("contracts", [])
        if not isinstance(data, list):
            raise ValueError("Contracts file must contain a list of contract specifications")

        try:
            loaded = [ContractSpecification.model_validate(item) for item in data]
        except ValidationError as e:
            raise ValueError(f"Contract specification error: {e}")

        if include_defaults:
            return cls.default().merged_with(loaded)
        return cls(loaded)

    def merged_with(self, specs: Iterable[ContractSpecification]) -> "MarketRegistry":
        """New registry where `specs` replace existing entries with the same id."""
        replacements = {s.id.casefold(): s for s in specs}
        merged = [replacements.pop(s.id.casefold(), s) for s in self._specs]
        merged.extend(replacements.values())
        return MarketRegistry(merged)

    def get(self, identifier: object) -> Optional[ContractSpecification]:
        """Resolve by id, then symbol, then base symbol. Case-insensitive, trimmed."""
        if not isinstance(identifier, str):
            return None
        key = identifier.strip().casefold()
        if not key:
            return None
        spec = self._by_id.get(key) or self._by_symbol.get(key)
        if spec is not None:
            return spec
        base = extract_base_symbol(identifier).casefold()
        if base and base != key:
            return self._by_id.get(base) or self._by_symbol.get(base)
        return None

    def exists(self, identifier: object) -> bool:
        return self.get(identifier) is not None

    def all(self) -> List[ContractSpecification]:
        return list(self._specs)

    def active(self) -> List[ContractSpecification]:
        return [s for s in self._specs if s.is_active]

    def quick_list(self) -> List[MarketInfo]:
        return [s.to_market_info() for s in self.active()]

    def __len__(self) -> int:
        return len(self._specs)

    def __contains__(self, identifier: object) -> bool:
        return self.exists(identifier)


DEFAULT_REGISTRY = MarketRegistry.default()


def build_registry(contracts_file: Optional[str] = None) -> MarketRegistry:
    """Registry for a configured deployment (defaults plus optional YAML extras)."""
    if not contracts_file:
        return DEFAULT_REGISTRY
    return MarketRegistry.from_yaml(Path(contracts_file))
