"""Entrypoint.

Usage:
  python -m tradejournal.app.main stats --trades trades.json
  python -m tradejournal.app.main whatif --trades trades.json --scenarios better_exit proper_position_sizing
  python -m tradejournal.app.main portfolio --trades trades.json --period 3m
  python -m tradejournal.app.main breakeven --trades trades.json
  python -m tradejournal.app.main optimize --trades trades.json
  python -m tradejournal.app.main validate --trades trades.json
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ValidationError

from tradejournal.infrastructure.logging.logging import configure_logging, get_logger
from tradejournal.infrastructure.utils.config import AnalyticsConfig, load_config
from tradejournal.models.trade_models import InsufficientData, TradeRecord
from tradejournal.services.analysis.analysis_service import AnalysisService
from tradejournal.services.breakeven.be_effectiveness import generate_be_optimization_recommendations
from tradejournal.services.market.calculator import validate_trade
from tradejournal.services.market.registry import MarketRegistry, build_registry
from tradejournal.services.metrics.trade_metrics import with_metrics
from tradejournal.services.stats.trade_stats import calculate_efficiency_analysis, calculate_trade_stats
from tradejournal.services.whatif.historical import HISTORICAL_SCENARIOS, calculate_what_if_scenarios

log = get_logger("main")

COMMANDS = ["stats", "whatif", "portfolio", "breakeven", "optimize", "validate"]
LOCAL_OWNER = "local"


def _read_rows(path: Path) -> List[Dict[str, Any]]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("trades", [])
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON array of trades")
    return data


def load_trades(path: Path, registry: MarketRegistry) -> List[TradeRecord]:
    rows = _read_rows(path)
    trades = [TradeRecord.model_validate(row) for row in rows]
    log.info("trades_loaded", path=str(path), trades=len(trades))
    return with_metrics(trades, registry=registry)


def _jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    return value


def _row_value(row: Dict[str, Any], camel: str, snake: str) -> Any:
    return row.get(camel, row.get(snake))


def validate_rows(
    rows: List[Dict[str, Any]], registry: MarketRegistry, default_market: str = ""
) -> List[Dict[str, Any]]:
    report = []
    for i, row in enumerate(rows):
        market = row.get("market") or row.get("symbol") or default_market
        result = validate_trade(
            float(_row_value(row, "entryPrice", "entry_price") or 0),
            float(row.get("quantity") or 0),
            market,
            stop_loss=_row_value(row, "stopLoss", "stop_loss"),
            take_profit=_row_value(row, "takeProfit", "take_profit"),
            registry=registry,
        )
        report.append({"row": i, "id": row.get("id"), "market": market, **dataclasses.asdict(result)})
    return report


# ---------------------------------------------------------------------------
# Text reports


def _banner(title: str) -> None:
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


def _print_stats(report) -> None:
    stats, efficiency = report["stats"], report["efficiency"]
    _banner("TRADE STATISTICS")
    print(f"  Total trades:      {stats.total_trades}")
    print(f"  Wins / Losses / BE:{stats.win_trades} / {stats.loss_trades} / {stats.breakeven_trades}")
    print(f"  Win rate:          {stats.win_rate:.2f}%")
    print(f"  Gross P&L:         {stats.total_pnl:.2f}")
    print(f"  Commission:        {stats.total_commission:.2f}")
    print(f"  Net P&L:           {stats.net_pnl:.2f}")
    print(f"  Profit factor:     {stats.profit_factor:.2f}")
    print(f"  Avg win / loss:    {stats.avg_win:.2f} / {stats.avg_loss:.2f}")
    print(f"  Avg R multiple:    {stats.avg_r_multiple:.2f}")
    print(f"  Avg efficiency:    {stats.avg_efficiency:.2f}%")
    print(f"  Max drawdown:      {stats.max_drawdown:.2f}")
    print(f"  Sharpe ratio:      {stats.sharpe_ratio:.2f}")
    print(f"  Streaks (max W/L): {stats.max_win_streak} / {stats.max_loss_streak}")
    print("=" * 60)
    if efficiency.trades_analyzed:
        print(f"\nEfficiency ({efficiency.trades_analyzed} trades, missed ${efficiency.total_missed_profit:.2f}):")
        for bucket in efficiency.efficiency_distribution:
            print(f"  {bucket.range:<8} {bucket.count}")
    print()


def _print_what_if(report) -> None:
    analysis = report["analysis"]
    _banner("WHAT-IF SCENARIOS")
    for r in analysis.scenarios:
        imp = r.improvement
        print(f"  {r.scenario.name:<28} {imp.total_pnl_improvement:+10.2f} ({imp.total_pnl_improvement_percent:+.1f}%)")
    print("=" * 60)
    print("\nHistorical replay:")
    for replay in report["replays"]:
        print(f"  {replay.scenario:<14} {replay.original_pnl:+.2f} -> {replay.scenario_pnl:+.2f} ({replay.improvement:+.1f}%)")
    print("\nKey insights:")
    for insight in analysis.summary.key_insights:
        print(f"  - {insight}")
    print()


def _print_portfolio(portfolio) -> None:
    o = portfolio.overview
    _banner("PORTFOLIO")
    print(f"  Trades:        {o.total_trades}")
    print(f"  Net P&L:       {o.total_pnl:.2f}")
    print(f"  Win rate:      {o.win_rate:.2f}%")
    print(f"  Profit factor: {o.profit_factor:.2f}")
    print(f"  Max drawdown:  {o.max_drawdown:.2f}")
    print("=" * 60)
    print("\nBy symbol:")
    for g in portfolio.symbol_analysis:
        print(f"  {g.key:<10} trades={g.total_trades:<4} pnl={g.total_pnl:+.2f} win={g.win_rate:.1f}%")
    print("\nBy strategy:")
    for g in portfolio.strategy_analysis:
        print(f"  {g.key:<16} trades={g.total_trades:<4} pnl={g.total_pnl:+.2f} win={g.win_rate:.1f}%")
    print()


def _print_breakeven(report) -> None:
    recs, effectiveness = report["recommendations"], report["effectiveness"]
    _banner("BREAK-EVEN RECOMMENDATIONS")
    if isinstance(recs, InsufficientData):
        print(f"  {recs.message} ({recs.current}/{recs.required})")
        print()
        return
    m = recs.portfolio_metrics
    print(f"  Use BE:            {'yes' if recs.should_use_be else 'no'}")
    print(f"  Strategy:          {recs.recommended_strategy}")
    print(f"  Optimal BE level:  {recs.optimal_be_level:g}")
    print(f"  Confidence:        {recs.confidence:.0f}%")
    print(f"  Success rate:      {m.be_success_rate:.2f}% of {m.trades_with_be} trades")
    print(f"  Net BE impact:     {m.net_be_impact:+.2f}")
    print("=" * 60)
    for s in recs.all_scenarios:
        print(f"  {s.scenario_name:<24} score={s.recommendation_score:.1f}")
    print("\nInsights:")
    for insight in recs.key_insights:
        print(f"  - {insight}")
    print(f"\nEffectiveness (priority: {effectiveness.priority}):")
    for line in effectiveness.recommendations:
        print(f"  - {line}")
    print()


def _print_optimize(insights) -> None:
    _banner("OPTIMIZATION INSIGHTS")
    print(f"  Trades: {insights.current_trades} (need {insights.min_trades_required})")
    for label, section in (
        ("Stop loss", insights.stop_loss),
        ("Take profit", insights.take_profit),
        ("Timing", insights.timing),
    ):
        print(f"  {label + ':':<13}{section.insight if section else 'not enough data'}")
    if insights.risk_reward:
        print(f"  {'Risk/reward:':<13}{insights.risk_reward.comparison}")
    print()


def _print_validation(report: List[Dict[str, Any]]) -> None:
    _banner("TRADE VALIDATION")
    invalid = [r for r in report if not r["is_valid"]]
    print(f"  Rows: {len(report)}  invalid: {len(invalid)}")
    print("=" * 60)
    for r in report:
        for e in r["errors"]:
            print(f"  row {r['row']} {r['market']}: ERROR {e}")
        for w in r["warnings"]:
            print(f"  row {r['row']} {r['market']}: WARN  {w}")
    print()


# ---------------------------------------------------------------------------


def run(args: argparse.Namespace, config: AnalyticsConfig) -> int:
    registry = build_registry(config.markets.contracts_file)

    if args.command == "validate":
        report = validate_rows(_read_rows(args.trades), registry, config.markets.default_market)
        if args.json:
            print(json.dumps(report, indent=2, default=str))
        else:
            _print_validation(report)
        return 0 if all(r["is_valid"] for r in report) else 1

    trades = load_trades(args.trades, registry)
    service = AnalysisService(registry=registry, config=config)

    if args.command == "stats":
        result = {
            "stats": calculate_trade_stats(trades),
            "efficiency": calculate_efficiency_analysis(trades, registry=registry),
        }
        printer = _print_stats
    elif args.command == "whatif":
        result = {
            "analysis": service.get_what_if_analysis(
                LOCAL_OWNER, trades, args.scenarios, account_size=config.preferences.account_size
            ),
            "replays": [calculate_what_if_scenarios(trades, s, registry=registry) for s in HISTORICAL_SCENARIOS],
        }
        printer = _print_what_if
    elif args.command == "portfolio":
        result = service.get_portfolio_analysis(LOCAL_OWNER, trades, args.period, args.include_open)
        printer = _print_portfolio
    elif args.command == "breakeven":
        result = {
            "recommendations": service.get_be_recommendations(trades),
            "effectiveness": generate_be_optimization_recommendations(
                trades, config.analysis.default_account_size, registry=registry
            ),
        }
        printer = _print_breakeven
    else:
        result, printer = service.get_optimization_insights(trades), _print_optimize

    if args.json:
        print(json.dumps(_jsonable(result), indent=2, default=str))
    else:
        printer(result)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser("tradejournal")
    parser.add_argument("command", choices=COMMANDS, help="What to run")
    parser.add_argument("--trades", type=Path, required=True, help="JSON array of trade records")
    parser.add_argument("--config", type=Path, default=None, help="Path to config YAML")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of a text report")
    parser.add_argument("--scenarios", nargs="+", default=None, help="What-if scenario ids (default: all)")
    parser.add_argument("--period", default="all", choices=["1m", "3m", "6m", "1y", "all"])
    parser.add_argument("--include-open", action="store_true", help="Include open trades in portfolio analysis")
    args = parser.parse_args(argv)

    # Quiet until the configured level is known.
    configure_logging("WARNING")
    config = load_config(args.config)
    configure_logging(config.log_level, json_logs=config.json_logs)

    try:
        return run(args, config)
    except (OSError, ValueError, ValidationError) as e:
        log.error("command_failed", command=args.command, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
