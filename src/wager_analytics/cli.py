"""CLI entrypoint for wager-analytics."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from wager_analytics.aggregation import (
    DIMENSION_LABELS,
    DIMENSIONS,
    METRIC_KEYS,
    breakdown,
    custom_aggregate,
)
from wager_analytics.cli_markdown import (
    render_breakdown_markdown,
    render_chart_markdown,
    render_metrics_markdown,
    render_ranking_markdown,
    render_score_markdown,
    render_timeline_markdown,
)
from wager_analytics.consolidation import consolidate
from wager_analytics.errors import WagerAnalyticsError
from wager_analytics.filtering import LegFilter, filter_legs
from wager_analytics.metrics import compute_metrics, profit_timeline
from wager_analytics.models import WagerLeg
from wager_analytics.ranking import RankingInputs, rank_strategies, score_components
from wager_analytics.records import load_legs, load_strategy_rows
from wager_analytics.runtime_config import LOG_LEVELS, RuntimeConfig
from wager_analytics.settings import Settings
from wager_analytics.time_utils import iso_z, parse_iso_z, resolve_timezone, utc_now

logger = logging.getLogger(__name__)

OUTPUT_FORMATS: tuple[str, ...] = ("json", "markdown")


class CLIError(RuntimeError):
    """User-facing CLI error."""


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] [%(name)s] %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _runtime(args: argparse.Namespace) -> RuntimeConfig:
    config_arg = str(getattr(args, "config", "") or "").strip()
    config = Settings().runtime_config(Path(config_arg).expanduser() if config_arg else None)
    return config.with_overrides(
        calendar_timezone=getattr(args, "timezone", ""),
        log_level=getattr(args, "log_level", ""),
    )


def _emit(
    report: dict[str, Any],
    *,
    output_format: str,
    renderer: Callable[[dict[str, Any]], str],
) -> int:
    if output_format == "markdown":
        print(renderer(report))
    else:
        print(json.dumps(report, sort_keys=True, indent=2, default=str))
    return 0


def _parse_now(raw: str) -> datetime:
    if not raw.strip():
        return utc_now()
    parsed = parse_iso_z(raw)
    if parsed is None:
        raise CLIError(f"invalid --now timestamp: {raw}")
    return parsed


def _leg_filter(args: argparse.Namespace) -> LegFilter:
    return LegFilter(
        leagues=tuple(getattr(args, "league", None) or ()),
        bet_types=tuple(getattr(args, "bet_type", None) or ()),
        sportsbooks=tuple(getattr(args, "sportsbook", None) or ()),
    )


def _load_filtered_legs(args: argparse.Namespace) -> list[WagerLeg]:
    try:
        legs = load_legs(Path(args.input))
    except WagerAnalyticsError as exc:
        raise CLIError(str(exc)) from exc
    leg_filter = _leg_filter(args)
    if leg_filter.is_empty:
        return legs
    filtered = filter_legs(legs, leg_filter)
    logger.info("filter kept %d of %d legs", len(filtered), len(legs))
    return filtered


def _cmd_metrics(args: argparse.Namespace) -> int:
    legs = _load_filtered_legs(args)
    metrics = compute_metrics(consolidate(legs).units())
    report = {"legs": len(legs), "metrics": metrics.to_dict()}
    return _emit(report, output_format=args.format, renderer=render_metrics_markdown)


def _cmd_breakdown(args: argparse.Namespace) -> int:
    runtime = _runtime(args)
    legs = _load_filtered_legs(args)
    entries = breakdown(
        consolidate(legs).units(),
        args.dimension,
        tz=resolve_timezone(runtime.calendar_timezone),
    )
    report = {
        "dimension": args.dimension,
        "entries": [entry.to_dict() for entry in entries],
    }
    return _emit(report, output_format=args.format, renderer=render_breakdown_markdown)


def _cmd_chart(args: argparse.Namespace) -> int:
    runtime = _runtime(args)
    legs = _load_filtered_legs(args)
    points = custom_aggregate(
        legs,
        args.dimension,
        args.metric,
        tz=resolve_timezone(runtime.calendar_timezone),
    )
    report = {
        "dimension": args.dimension,
        "metric": args.metric,
        "points": [point.to_dict() for point in points],
    }
    return _emit(report, output_format=args.format, renderer=render_chart_markdown)


def _cmd_timeline(args: argparse.Namespace) -> int:
    runtime = _runtime(args)
    legs = _load_filtered_legs(args)
    points = profit_timeline(
        consolidate(legs).units(),
        tz=resolve_timezone(runtime.calendar_timezone),
    )
    report = {"points": [point.to_dict() for point in points]}
    return _emit(report, output_format=args.format, renderer=render_timeline_markdown)


def _cmd_score(args: argparse.Namespace) -> int:
    inputs = RankingInputs(
        roi_percentage=float(args.roi),
        win_rate=float(args.win_rate),
        total_bets=int(args.total_bets),
        start_date=args.start_date.strip() or None,
        subscriber_count=int(args.subscribers),
    )
    now = _parse_now(args.now)
    components = score_components(inputs, now=now)
    report = {
        "now_utc": iso_z(now),
        "score": components.score,
        "components": components.to_dict(),
    }
    return _emit(report, output_format=args.format, renderer=render_score_markdown)


def _cmd_rank(args: argparse.Namespace) -> int:
    runtime = _runtime(args)
    try:
        rows = load_strategy_rows(Path(args.input))
    except WagerAnalyticsError as exc:
        raise CLIError(str(exc)) from exc
    min_total_bets = (
        runtime.marketplace_min_total_bets if args.min_total_bets is None else args.min_total_bets
    )
    limit = runtime.marketplace_leaderboard_limit if args.limit is None else args.limit
    now = _parse_now(args.now)
    ranked = rank_strategies(rows, now=now, limit=limit, min_total_bets=min_total_bets)
    report = {
        "now_utc": iso_z(now),
        "min_total_bets": min_total_bets,
        "limit": limit,
        "strategies": ranked,
    }
    return _emit(report, output_format=args.format, renderer=render_ranking_markdown)


def _cmd_catalog(args: argparse.Namespace) -> int:
    report = {
        "dimensions": [{"key": key, "label": DIMENSION_LABELS[key]} for key in DIMENSIONS],
        "metrics": list(METRIC_KEYS),
    }
    print(json.dumps(report, sort_keys=True, indent=2, default=str))
    return 0


def _add_format(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--format", choices=OUTPUT_FORMATS, default="json")


def _add_leg_inputs(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--input", required=True, help="Wager legs (.csv/.json/.jsonl/.parquet).")
    parser.add_argument("--league", action="append", help="Keep legs in this league.")
    parser.add_argument("--bet-type", action="append", help="Keep legs with this bet type.")
    parser.add_argument("--sportsbook", action="append", help="Keep legs from this sportsbook.")
    _add_format(parser)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wager-analytics")
    parser.add_argument(
        "--config",
        default="",
        help="Path to runtime config TOML (default: config/runtime.toml).",
    )
    parser.add_argument(
        "--timezone",
        default="",
        help="IANA timezone for calendar buckets (overrides config).",
    )
    parser.add_argument(
        "--log-level",
        default="",
        type=str.upper,
        choices=("", *LOG_LEVELS),
        help="Log level (overrides config).",
    )
    subparsers = parser.add_subparsers(dest="command")

    metrics = subparsers.add_parser("metrics", help="Aggregate metrics over consolidated wagers.")
    _add_leg_inputs(metrics)
    metrics.set_defaults(func=_cmd_metrics)

    breakdown_parser = subparsers.add_parser("breakdown", help="Per-bucket wager breakdown.")
    _add_leg_inputs(breakdown_parser)
    breakdown_parser.add_argument("--dimension", choices=DIMENSIONS, default="sport")
    breakdown_parser.set_defaults(func=_cmd_breakdown)

    chart = subparsers.add_parser("chart", help="Custom dimension/metric chart over raw legs.")
    _add_leg_inputs(chart)
    chart.add_argument("--dimension", choices=DIMENSIONS, required=True)
    chart.add_argument("--metric", choices=METRIC_KEYS, required=True)
    chart.set_defaults(func=_cmd_chart)

    timeline = subparsers.add_parser("timeline", help="Daily and cumulative profit.")
    _add_leg_inputs(timeline)
    timeline.set_defaults(func=_cmd_timeline)

    score = subparsers.add_parser("score", help="Marketplace rank score for one strategy.")
    score.add_argument("--roi", type=float, default=0.0, help="ROI percentage.")
    score.add_argument("--win-rate", type=float, default=0.0, help="Win rate as a 0..1 fraction.")
    score.add_argument("--total-bets", type=int, default=0)
    score.add_argument("--start-date", default="", help="Strategy start date (ISO-8601).")
    score.add_argument("--subscribers", type=int, default=0)
    score.add_argument("--now", default="", help="Reference time (ISO-8601, default: now).")
    _add_format(score)
    score.set_defaults(func=_cmd_score)

    rank = subparsers.add_parser("rank", help="Rank marketplace strategies by score.")
    rank.add_argument("--input", required=True, help="Strategy rows (.csv/.json/.jsonl/.parquet).")
    rank.add_argument("--limit", type=int, default=None)
    rank.add_argument("--min-total-bets", type=int, default=None)
    rank.add_argument("--now", default="", help="Reference time (ISO-8601, default: now).")
    _add_format(rank)
    rank.set_defaults(func=_cmd_rank)

    catalog = subparsers.add_parser("catalog", help="List chart dimensions and metrics.")
    catalog.set_defaults(func=_cmd_catalog)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 0
    try:
        _configure_logging(_runtime(args).log_level)
        return int(func(args))
    except (CLIError, FileNotFoundError, ValueError, RuntimeError) as exc:
        print(str(exc), file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
