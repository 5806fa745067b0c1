"""
dashboard/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


class ParseErrorPolicy:
    SKIP = "skip"
    ABORT = "abort"


_ALLOWED_PARSE_ERROR_POLICIES = {ParseErrorPolicy.SKIP, ParseErrorPolicy.ABORT}
_ALLOWED_VOLUME_MEASURES = {"documents", "kilocharacters"}


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    project_root = Path(__file__).resolve().parents[1]
    for filename in (".env", ".env.local"):
        env_path = project_root / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading settings.
    """

    load_env_files()


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_choice_env(name: str, default: str, allowed: set[str]) -> str:
    """
    Read a lower-cased string restricted to *allowed*, falling back to *default*.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    return normalized if normalized in allowed else default


@dataclass(frozen=True)
class UploadSettings:
    """
    File acceptance policy applied before a file is parsed.
    """

    max_file_bytes: int = 50 * 1024 * 1024
    min_file_bytes: int = 1
    parse_error_policy: str = ParseErrorPolicy.SKIP


@dataclass(frozen=True)
class MetricsSettings:
    """
    Runtime settings for the metrics engine.
    """

    top_n: int = 5
    volume_measure: str = "documents"


@dataclass(frozen=True)
class InsightSettings:
    """
    Thresholds used by the insight rule battery.
    """

    decline_threshold: float = 0.20
    growth_threshold: float = 0.50
    dominance_threshold: float = 0.50
    concentration_threshold: float = 0.80
    efficiency_threshold: float = 0.25


@lru_cache(maxsize=1)
def get_upload_settings() -> UploadSettings:
    """
    Return cached upload settings from environment variables.
    """

    return UploadSettings(
        max_file_bytes=max(1, _get_int_env("UPLOAD_MAX_FILE_BYTES", 50 * 1024 * 1024)),
        min_file_bytes=max(0, _get_int_env("UPLOAD_MIN_FILE_BYTES", 1)),
        parse_error_policy=_get_choice_env("PARSE_ERROR_POLICY", ParseErrorPolicy.SKIP, _ALLOWED_PARSE_ERROR_POLICIES),
    )


@lru_cache(maxsize=1)
def get_metrics_settings() -> MetricsSettings:
    """
    Return cached metrics engine settings.
    """

    return MetricsSettings(
        top_n=max(1, _get_int_env("METRICS_TOP_N", 5)),
        volume_measure=_get_choice_env("METRICS_VOLUME_MEASURE", "documents", _ALLOWED_VOLUME_MEASURES),
    )


@lru_cache(maxsize=1)
def get_insight_settings() -> InsightSettings:
    """
    Return cached insight thresholds.
    """

    return InsightSettings(
        decline_threshold=max(0.0, _get_float_env("INSIGHT_DECLINE_THRESHOLD", 0.20)),
        growth_threshold=max(0.0, _get_float_env("INSIGHT_GROWTH_THRESHOLD", 0.50)),
        dominance_threshold=min(1.0, max(0.0, _get_float_env("INSIGHT_DOMINANCE_THRESHOLD", 0.50))),
        concentration_threshold=min(1.0, max(0.0, _get_float_env("INSIGHT_CONCENTRATION_THRESHOLD", 0.80))),
        efficiency_threshold=max(0.0, _get_float_env("INSIGHT_EFFICIENCY_THRESHOLD", 0.25)),
    )
