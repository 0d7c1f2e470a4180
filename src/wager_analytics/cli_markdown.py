"""Markdown render helpers for CLI reports."""

from __future__ import annotations

from typing import Any


def _fmt(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def render_metrics_markdown(report: dict[str, Any]) -> str:
    metrics = report.get("metrics", {}) if isinstance(report.get("metrics"), dict) else {}
    lines: list[str] = []
    lines.append("# Wager Metrics")
    lines.append("")
    lines.append(f"- legs: `{report.get('legs', 0)}`")
    lines.append("")
    lines.append("| Metric | Value |")
    lines.append("| --- | --- |")
    for key in sorted(metrics):
        lines.append(f"| {key} | {_fmt(metrics[key])} |")
    lines.append("")
    return "\n".join(lines)


def render_breakdown_markdown(report: dict[str, Any]) -> str:
    rows = report.get("entries", []) if isinstance(report.get("entries"), list) else []
    lines: list[str] = []
    lines.append(f"# Breakdown by {report.get('dimension', '')}")
    lines.append("")
    if rows:
        lines.append("| Bucket | Bets | Profit | Wins | Win Rate | ROI |")
        lines.append("| --- | --- | --- | --- | --- | --- |")
        for row in rows:
            if not isinstance(row, dict):
                continue
            lines.append(
                "| {} | {} | {} | {} | {} | {} |".format(
                    row.get("key", ""),
                    row.get("count", 0),
                    _fmt(row.get("profit", 0.0)),
                    row.get("wins", 0),
                    _fmt(row.get("win_rate", 0.0)),
                    _fmt(row.get("roi", 0.0)),
                )
            )
    else:
        lines.append("_no wagers_")
    lines.append("")
    return "\n".join(lines)


def render_chart_markdown(report: dict[str, Any]) -> str:
    rows = report.get("points", []) if isinstance(report.get("points"), list) else []
    metric = str(report.get("metric", ""))
    lines: list[str] = []
    lines.append(f"# {metric} by {report.get('dimension', '')}")
    lines.append("")
    if rows:
        lines.append(f"| Bucket | {metric} |")
        lines.append("| --- | --- |")
        for row in rows:
            if not isinstance(row, dict):
                continue
            lines.append(f"| {row.get('label', '')} | {_fmt(row.get('value', 0.0))} |")
    else:
        lines.append("_no wagers_")
    lines.append("")
    return "\n".join(lines)


def render_timeline_markdown(report: dict[str, Any]) -> str:
    rows = report.get("points", []) if isinstance(report.get("points"), list) else []
    lines: list[str] = []
    lines.append("# Daily Profit")
    lines.append("")
    if rows:
        lines.append("| Date | Bets | Profit | Cumulative |")
        lines.append("| --- | --- | --- | --- |")
        for row in rows:
            if not isinstance(row, dict):
                continue
            lines.append(
                "| {} | {} | {} | {} |".format(
                    row.get("date", ""),
                    row.get("bets", 0),
                    _fmt(row.get("profit", 0.0)),
                    _fmt(row.get("cumulative_profit", 0.0)),
                )
            )
    else:
        lines.append("_no settled wagers_")
    lines.append("")
    return "\n".join(lines)


def render_score_markdown(report: dict[str, Any]) -> str:
    components = (
        report.get("components", {}) if isinstance(report.get("components"), dict) else {}
    )
    lines: list[str] = []
    lines.append("# Marketplace Rank Score")
    lines.append("")
    lines.append(f"- score: `{_fmt(components.get('score', 0.0))}`")
    lines.append("")
    lines.append("| Component | Value |")
    lines.append("| --- | --- |")
    for key in sorted(components):
        if key == "score":
            continue
        lines.append(f"| {key} | {_fmt(components[key])} |")
    lines.append("")
    return "\n".join(lines)


def render_ranking_markdown(report: dict[str, Any]) -> str:
    rows = report.get("strategies", []) if isinstance(report.get("strategies"), list) else []
    lines: list[str] = []
    lines.append("# Marketplace Leaderboard")
    lines.append("")
    lines.append(f"- strategies: `{len(rows)}`")
    lines.append(f"- min_total_bets: `{report.get('min_total_bets', 0)}`")
    lines.append("")
    if rows:
        lines.append("| Rank | Strategy | Score | ROI % | Win Rate | Bets |")
        lines.append("| --- | --- | --- | --- | --- | --- |")
        for index, row in enumerate(rows, start=1):
            if not isinstance(row, dict):
                continue
            lines.append(
                "| {} | {} | {} | {} | {} | {} |".format(
                    index,
                    row.get("strategy_name") or row.get("strategy_id", ""),
                    _fmt(row.get("marketplace_rank_score", 0.0)),
                    _fmt(row.get("roi_percentage", 0.0)),
                    _fmt(row.get("win_rate", 0.0)),
                    row.get("total_bets", 0),
                )
            )
        lines.append("")
    return "\n".join(lines)
