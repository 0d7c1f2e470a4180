"""Load wager legs and strategy snapshots from tabular files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import polars as pl

from wager_analytics.errors import RecordLoadError
from wager_analytics.models import WagerLeg

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES: tuple[str, ...] = (".csv", ".json", ".jsonl", ".ndjson", ".parquet")


def read_frame(path: Path) -> pl.DataFrame:
    """Read a record file into a frame; CSV columns are kept as strings."""
    if not path.exists():
        raise RecordLoadError(f"record file not found: {path}")
    suffix = path.suffix.lower()
    try:
        if suffix == ".csv":
            return pl.read_csv(path, infer_schema_length=0)
        if suffix in {".jsonl", ".ndjson"}:
            return pl.read_ndjson(path)
        if suffix == ".json":
            return pl.read_json(path)
        if suffix == ".parquet":
            return pl.read_parquet(path)
    except (pl.exceptions.PolarsError, OSError) as exc:
        raise RecordLoadError(f"failed reading records: {path}") from exc
    raise RecordLoadError(
        f"unsupported record format: {path.suffix or '<none>'} "
        f"(expected one of {', '.join(SUPPORTED_SUFFIXES)})"
    )


def read_rows(path: Path) -> list[dict[str, Any]]:
    frame = read_frame(path)
    if frame.is_empty():
        return []
    return frame.to_dicts()


def load_legs(path: Path) -> list[WagerLeg]:
    rows = read_rows(path)
    legs = [WagerLeg.from_mapping(row) for row in rows]
    logger.info("loaded %d wager legs from %s", len(legs), path)
    return legs


def load_strategy_rows(path: Path) -> list[dict[str, Any]]:
    rows = read_rows(path)
    logger.info("loaded %d strategy rows from %s", len(rows), path)
    return rows
