"""Owner-scoped entry points over the calculators, with cached results.

Calculators stay pure; this layer decides what gets cached and for how
long. Keys combine the owner and the request options, so two owners never
share an entry and changing any option is a miss.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Callable, Iterable, List, Optional, Sequence, Union

from tradejournal.infrastructure.cache.result_cache import InMemoryResultCache, NullResultCache, ResultCache
from tradejournal.infrastructure.logging.logging import get_logger
from tradejournal.infrastructure.utils.config import AnalyticsConfig, get_config
from tradejournal.models.trade_models import InsufficientData, TradeRecord
from tradejournal.services.breakeven.be_analysis import BERecommendations, get_be_recommendations
from tradejournal.services.market.registry import DEFAULT_REGISTRY, MarketRegistry
from tradejournal.services.optimization.trade_optimization import OptimizationInsights, get_optimization_insights
from tradejournal.services.stats.portfolio_analysis import (
    PortfolioAnalysis,
    analyze_portfolio,
    filter_trades_by_period,
)
from tradejournal.services.whatif.scenarios import (
    ImprovementSuggestion,
    WhatIfAnalysisResult,
    empty_what_if_result,
    generate_smart_suggestions,
    run_what_if_calculations,
)

log = get_logger("analysis_service")


def cache_key(kind: str, owner: str, **options: Any) -> str:
    return f"{kind}-{owner}-{json.dumps(options, sort_keys=True, default=str)}"


class AnalysisService:
    def __init__(
        self,
        *,
        registry: MarketRegistry = DEFAULT_REGISTRY,
        cache: Optional[ResultCache] = None,
        config: Optional[AnalyticsConfig] = None,
    ) -> None:
        self.registry = registry
        self.config = config or get_config()
        if cache is None:
            cache = InMemoryResultCache() if self.config.cache.enabled else NullResultCache()
        self.cache = cache

    def _cached(self, key: str, ttl_seconds: int, use_cache: bool, compute: Callable[[], Any]) -> Any:
        if use_cache:
            hit = self.cache.get(key)
            if hit is not None:
                log.debug("analysis_cache_hit", key=key)
                return hit
        value = compute()
        if use_cache:
            self.cache.set(key, value, ttl_seconds)
        return value

    # ------------------------------------------------------------------
    # What-if

    def generate_what_if_analysis(
        self,
        trades: Sequence[TradeRecord],
        scenario_ids: Optional[Iterable[str]] = None,
        account_size: Optional[float] = None,
    ) -> Union[WhatIfAnalysisResult, InsufficientData]:
        """Uncached what-if run; an empty journal reports insufficient data."""
        if not trades:
            return InsufficientData(current=0, required=1, message="No trades available for analysis.")
        return run_what_if_calculations(
            trades,
            scenario_ids=scenario_ids,
            account_size=account_size or self.config.analysis.default_account_size,
        )

    def get_what_if_analysis(
        self,
        owner: str,
        trades: Sequence[TradeRecord],
        scenario_ids: Optional[Iterable[str]] = None,
        include_cache: bool = True,
        account_size: Optional[float] = None,
    ) -> WhatIfAnalysisResult:
        ids = sorted(scenario_ids) if scenario_ids is not None else None
        size = account_size or self.config.analysis.default_account_size
        key = cache_key("whatif", owner, scenario_ids=ids, account_size=size)

        def compute() -> WhatIfAnalysisResult:
            log.info("what_if_analysis_start", owner=owner, trades=len(trades))
            result = self.generate_what_if_analysis(trades, ids, size)
            if isinstance(result, InsufficientData):
                return empty_what_if_result()
            return result

        return self._cached(key, self.config.cache.what_if_ttl_seconds, include_cache, compute)

    def get_improvement_suggestions(
        self,
        owner: str,
        trades: Sequence[TradeRecord],
        priority: Optional[str] = None,
        category: Optional[str] = None,
    ) -> List[ImprovementSuggestion]:
        key = cache_key("suggestions", owner, priority=priority, category=category)

        def compute() -> List[ImprovementSuggestion]:
            analysis = self.get_what_if_analysis(owner, trades)
            return generate_smart_suggestions(analysis, priority=priority, category=category)

        return self._cached(key, self.config.cache.suggestions_ttl_seconds, True, compute)

    # ------------------------------------------------------------------
    # Portfolio

    def get_portfolio_analysis(
        self,
        owner: str,
        trades: Sequence[TradeRecord],
        period: str = "all",
        include_open_trades: bool = False,
        now: Optional[datetime] = None,
    ) -> PortfolioAnalysis:
        key = cache_key("portfolio", owner, period=period, include_open_trades=include_open_trades)

        def compute() -> PortfolioAnalysis:
            selected = filter_trades_by_period(trades, period, include_open_trades, now)
            log.info("portfolio_analysis_start", owner=owner, period=period, trades=len(selected))
            return analyze_portfolio(selected)

        return self._cached(key, self.config.cache.portfolio_ttl_seconds, True, compute)

    # ------------------------------------------------------------------
    # Uncached analyzers

    def get_optimization_insights(self, trades: Sequence[TradeRecord]) -> OptimizationInsights:
        return get_optimization_insights(
            trades,
            registry=self.registry,
            min_trades=self.config.analysis.min_trades_optimization,
        )

    def get_be_recommendations(self, trades: Sequence[TradeRecord]) -> Union[BERecommendations, InsufficientData]:
        analysis = self.config.analysis
        result = get_be_recommendations(
            trades,
            min_trades=analysis.min_trades_be_recommendation,
            sample_size=analysis.be_scenario_sample_size,
            lookback=analysis.be_scenario_lookback,
        )
        if isinstance(result, InsufficientData):
            log.info("be_recommendations_insufficient", current=result.current, required=result.required)
        return result

    def invalidate(self, owner: str) -> int:
        """Drop cached results for `owner` when the cache supports it."""
        removed = 0
        if isinstance(self.cache, InMemoryResultCache):
            for kind in ("whatif", "suggestions", "portfolio"):
                removed += self.cache.invalidate(f"{kind}-{owner}-")
        log.info("analysis_cache_invalidated", owner=owner, removed=removed)
        return removed
