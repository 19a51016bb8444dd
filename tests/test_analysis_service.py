import pytest

from conftest import FakeClock, make_series
from tradejournal.infrastructure.cache.result_cache import InMemoryResultCache, NullResultCache
from tradejournal.infrastructure.utils.config import AnalyticsConfig, CacheConfig
from tradejournal.models.trade_models import InsufficientData
from tradejournal.services.analysis.analysis_service import AnalysisService, cache_key
from tradejournal.services.breakeven.be_analysis import BERecommendations


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def service(clock):
    return AnalysisService(cache=InMemoryResultCache(clock=clock), config=AnalyticsConfig())


@pytest.fixture
def journal():
    return make_series([600, 500, -200, 300, -200])


class TestCacheKey:
    def test_options_are_order_independent(self):
        assert cache_key("whatif", "alice", a=1, b=2) == cache_key("whatif", "alice", b=2, a=1)
        assert cache_key("whatif", "alice", a=1) != cache_key("whatif", "bob", a=1)


class TestWhatIf:
    def test_generate_requires_trades(self, service):
        result = service.generate_what_if_analysis([])
        assert isinstance(result, InsufficientData)
        assert result.message == "No trades available for analysis."

    def test_cached_until_ttl(self, service, journal, clock):
        first = service.get_what_if_analysis("alice", journal)
        assert service.get_what_if_analysis("alice", journal) is first

        clock.now = 901
        assert service.get_what_if_analysis("alice", journal) is not first

    def test_bypass_cache(self, service, journal):
        first = service.get_what_if_analysis("alice", journal)
        assert service.get_what_if_analysis("alice", journal, include_cache=False) is not first

    def test_owners_and_options_are_separate(self, service, journal):
        first = service.get_what_if_analysis("alice", journal)
        assert service.get_what_if_analysis("bob", journal) is not first
        filtered = service.get_what_if_analysis("alice", journal, scenario_ids=["better_exit"])
        assert [r.scenario.id for r in filtered.scenarios] == ["better_exit"]

    def test_empty_journal_gives_empty_result(self, service):
        result = service.get_what_if_analysis("alice", [])
        assert result.scenarios == []
        assert result.summary.key_insights == ["No trades available for analysis."]

    def test_invalidate(self, service, journal):
        first = service.get_what_if_analysis("alice", journal)
        assert service.invalidate("alice") == 1
        assert service.get_what_if_analysis("alice", journal) is not first


class TestOtherAnalyses:
    def test_suggestions(self, service, journal):
        suggestions = service.get_improvement_suggestions("alice", journal, priority="high")
        assert {s.priority for s in suggestions} == {"high"}
        assert service.get_improvement_suggestions("alice", journal, priority="high") is suggestions

    def test_portfolio(self, service, journal):
        portfolio = service.get_portfolio_analysis("alice", journal)
        assert portfolio.overview.total_pnl == 1000.0
        assert service.get_portfolio_analysis("alice", journal) is portfolio
        assert service.get_portfolio_analysis("alice", journal, period="1m") is not portfolio

    def test_optimization_uses_configured_threshold(self, journal):
        config = AnalyticsConfig(analysis={"min_trades_optimization": 5})
        insights = AnalysisService(config=config).get_optimization_insights(journal)
        assert insights.has_enough_data
        assert insights.min_trades_required == 5

    def test_be_recommendations(self, service, journal):
        assert isinstance(service.get_be_recommendations(journal), InsufficientData)
        flagged = [t.model_copy(update={"break_even_worked": True}) for t in journal]
        assert isinstance(service.get_be_recommendations(flagged), BERecommendations)


class TestCacheSelection:
    def test_disabled_cache(self, journal):
        service = AnalysisService(config=AnalyticsConfig(cache=CacheConfig(enabled=False)))
        assert isinstance(service.cache, NullResultCache)
        first = service.get_what_if_analysis("alice", journal)
        assert service.get_what_if_analysis("alice", journal) is not first
