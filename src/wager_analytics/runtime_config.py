"""Runtime configuration loader (config-first, flag-overrides)."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "runtime.toml"
DEFAULT_LOCAL_OVERRIDE_PATH = Path(__file__).resolve().parents[2] / "config" / "runtime.local.toml"

LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class RuntimeConfig:
    """Materialized runtime configuration."""

    config_path: Path | None
    calendar_timezone: str
    marketplace_min_total_bets: int
    marketplace_leaderboard_limit: int
    log_level: str

    def with_overrides(
        self,
        *,
        calendar_timezone: str | None = None,
        log_level: str | None = None,
    ) -> RuntimeConfig:
        """Return copy with explicit overrides applied; blank values are ignored."""
        return replace(
            self,
            calendar_timezone=(calendar_timezone or "").strip() or self.calendar_timezone,
            log_level=_as_log_level(log_level, default=self.log_level),
        )


def default_runtime_config() -> RuntimeConfig:
    return RuntimeConfig(
        config_path=None,
        calendar_timezone="UTC",
        marketplace_min_total_bets=5,
        marketplace_leaderboard_limit=50,
        log_level="WARNING",
    )


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    out = dict(base)
    for key, value in overlay.items():
        existing = out.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            out[key] = _deep_merge(existing, value)
        else:
            out[key] = value
    return out


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        payload = tomllib.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise RuntimeError(f"failed reading runtime config: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise RuntimeError(f"invalid runtime config TOML: {path}") from exc
    if not isinstance(payload, dict):
        raise RuntimeError(f"runtime config root must be a table: {path}")
    return payload


def _as_table(payload: dict[str, Any], key: str) -> dict[str, Any]:
    value = payload.get(key, {})
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise RuntimeError(f"runtime config section [{key}] must be a table")
    return value


def _as_str(value: Any, *, default: str) -> str:
    if isinstance(value, str):
        stripped = value.strip()
        if stripped:
            return stripped
    return default


def _as_int(value: Any, *, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def _as_log_level(value: Any, *, default: str) -> str:
    level = _as_str(value, default=default).upper()
    if level not in LOG_LEVELS:
        raise RuntimeError(f"unsupported log level: {level}")
    return level


def load_runtime_config(config_path: Path | None = None) -> RuntimeConfig:
    """Load runtime config from `config/runtime.toml` plus optional local override.

    An explicit path must exist; a missing default file yields built-in defaults.
    """
    defaults = default_runtime_config()
    source = (config_path or DEFAULT_CONFIG_PATH).expanduser().resolve()
    if not source.exists():
        if config_path is not None:
            raise RuntimeError(f"runtime config file not found: {source}")
        return defaults

    payload = _read_toml(source)
    if source == DEFAULT_CONFIG_PATH and DEFAULT_LOCAL_OVERRIDE_PATH.exists():
        payload = _deep_merge(payload, _read_toml(DEFAULT_LOCAL_OVERRIDE_PATH))

    analytics = _as_table(payload, "analytics")
    marketplace = _as_table(payload, "marketplace")
    logging_table = _as_table(payload, "logging")

    return RuntimeConfig(
        config_path=source,
        calendar_timezone=_as_str(
            analytics.get("calendar_timezone"),
            default=defaults.calendar_timezone,
        ),
        marketplace_min_total_bets=max(
            0,
            _as_int(marketplace.get("min_total_bets"), default=defaults.marketplace_min_total_bets),
        ),
        marketplace_leaderboard_limit=max(
            0,
            _as_int(
                marketplace.get("leaderboard_limit"),
                default=defaults.marketplace_leaderboard_limit,
            ),
        ),
        log_level=_as_log_level(logging_table.get("level"), default=defaults.log_level),
    )
