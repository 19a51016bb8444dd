import pytest

from conftest import make_series
from tradejournal.services.whatif.scenarios import (
    SCENARIO_CATALOG,
    ScenarioDefinition,
    generate_smart_suggestions,
    get_available_scenarios,
    get_comparison_chart_data,
    run_what_if_calculations,
    suggestion_priority,
)


@pytest.fixture
def journal():
    # net P&L 1000 over 5 trades, 3 winners
    return make_series([600, 500, -200, 300, -200])


class TestCatalog:
    def test_twelve_scenarios(self):
        scenarios = get_available_scenarios()
        assert len(scenarios) == 12
        assert scenarios[0].id == "better_entry"

    def test_catalog_is_copied(self):
        get_available_scenarios().clear()
        assert len(SCENARIO_CATALOG) == 12


class TestRunWhatIf:
    def test_empty_journal(self):
        result = run_what_if_calculations([])
        assert result.scenarios == []
        assert result.summary.best_scenario is None
        assert result.summary.key_insights == ["No trades available for analysis."]

    def test_deterministic(self, journal):
        assert run_what_if_calculations(journal) == run_what_if_calculations(journal)

    def test_projected_improvements(self, journal):
        result = run_what_if_calculations(journal)
        by_id = {r.scenario.id: r.improvement for r in result.scenarios}
        assert by_id["better_entry"].total_pnl_improvement == 150.0
        assert by_id["better_entry"].total_pnl_improvement_percent == 15.0
        assert by_id["proper_position_sizing"].total_pnl_improvement == 250.0
        assert by_id["proper_position_sizing"].win_rate_improvement == 2.0
        assert by_id["tighter_stops"].total_pnl_improvement == 100.0
        assert by_id["better_entry"].account_return_percent == 0.15

    def test_winning_setups_only_affects_non_winners(self, journal):
        result = run_what_if_calculations(journal)
        winning = next(r for r in result.scenarios if r.scenario.id == "winning_setups_only")
        assert winning.improvement.trades_affected == 2
        assert winning.improvement.win_rate_improvement == 15.0
        assert winning.improved_stats.win_rate == pytest.approx(75.0)

    def test_top_three_is_stable(self, journal):
        result = run_what_if_calculations(journal)
        assert [r.scenario.id for r in result.top_improvements] == [
            "winning_setups_only",
            "proper_position_sizing",
            "better_entry",
        ]
        assert result.summary.best_scenario.scenario.id == "winning_setups_only"
        assert result.summary.total_potential_improvement == 800.0

    def test_losing_journal_still_projects_positive_improvement(self):
        result = run_what_if_calculations(make_series([-300, -200]))
        better_exit = next(r for r in result.scenarios if r.scenario.id == "better_exit")
        assert better_exit.improvement.total_pnl_improvement == 75.0
        assert better_exit.improved_stats.net_pnl == -425.0

    def test_scenario_filter_keeps_catalog_order(self, journal):
        result = run_what_if_calculations(journal, scenario_ids=["better_exit", "better_entry"])
        assert [r.scenario.id for r in result.scenarios] == ["better_entry", "better_exit"]

    def test_custom_scenarios_run_after_catalog(self, journal):
        custom = {"id": "journal_review", "name": "Journal Review", "description": "d",
                  "category": "management", "pnl_improvement_factor": 0.5, "unknown_key": 1}
        result = run_what_if_calculations(journal, scenario_ids=[], custom_scenarios=[custom])
        assert [r.scenario.id for r in result.scenarios] == ["journal_review"]
        assert result.scenarios[0].improvement.total_pnl_improvement == 500.0

    def test_custom_definition_objects(self, journal):
        scenario = ScenarioDefinition("x", "X", "d", "entry", pnl_improvement_factor=0.0)
        result = run_what_if_calculations(journal, scenario_ids=[], custom_scenarios=[scenario])
        assert result.summary.total_potential_improvement == 0.0

    def test_key_insights(self, journal):
        insights = run_what_if_calculations(journal).summary.key_insights
        assert insights[0] == "Winning Setups Only offers the highest improvement potential: $400.00."
        assert insights[1] == "3 scenarios could improve your returns by more than 10%."


class TestSuggestions:
    def test_priorities(self):
        assert suggestion_priority(25) == "high"
        assert suggestion_priority(15) == "medium"
        assert suggestion_priority(10) == "low"

    def test_suggestions_from_top_improvements(self, journal):
        analysis = run_what_if_calculations(journal)
        suggestions = generate_smart_suggestions(analysis)
        assert [s.id for s in suggestions] == [
            "suggestion-winning_setups_only",
            "suggestion-proper_position_sizing",
            "suggestion-better_entry",
        ]
        assert suggestions[0].title == "Implement Winning Setups Only"

    def test_filters(self, journal):
        analysis = run_what_if_calculations(journal)
        assert [s.priority for s in generate_smart_suggestions(analysis, priority="medium")] == ["medium"]
        assert [s.category for s in generate_smart_suggestions(analysis, category="risk")] == ["risk"]

    def test_chart_data(self, journal):
        rows = get_comparison_chart_data(run_what_if_calculations(journal))
        assert len(rows) == 12
        assert rows[0]["original"] == 1000.0
        assert rows[0]["improved"] == 1150.0
