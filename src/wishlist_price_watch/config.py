from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .emailer import EmailConfig, load_email_config
from .errors import ConfigError


DEFAULT_DELTA_THRESHOLD = 10.0
DEFAULT_SNAPSHOT_PATH = "prices.csv"
DEFAULT_SESSION_PATH = "session.json"
DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class RunConfig:
    source_url: str
    delta_threshold: float = DEFAULT_DELTA_THRESHOLD
    snapshot_path: Path = Path(DEFAULT_SNAPSHOT_PATH)
    session_path: Path | None = Path(DEFAULT_SESSION_PATH)
    email: EmailConfig | None = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    dry_run: bool = False


def _parse_float(name: str, raw: str | float, *, minimum: float) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    if not math.isfinite(value) or value < minimum:
        raise ConfigError(f"{name} must be a finite number >= {minimum:g}, got {raw!r}")
    return value


def load_config(
    *,
    env: Mapping[str, str] | None = None,
    url: str | None = None,
    delta_threshold: str | float | None = None,
    snapshot_path: str | None = None,
    session_path: str | None = None,
    timeout_seconds: str | float | None = None,
    dry_run: bool = False,
) -> RunConfig:
    """Resolve the run configuration once; explicit arguments win over the environment."""
    env = os.environ if env is None else env

    source_url = (url or env.get("WISHLIST_URL") or env.get("URL") or "").strip()
    if not source_url:
        raise ConfigError("wishlist URL is required (--url or WISHLIST_URL)")
    if not source_url.lower().startswith(("http://", "https://")):
        raise ConfigError(f"wishlist URL must be http(s), got {source_url!r}")

    threshold_raw = delta_threshold if delta_threshold is not None else (env.get("DELTA_THRESHOLD") or DEFAULT_DELTA_THRESHOLD)
    timeout_raw = timeout_seconds if timeout_seconds is not None else (env.get("TIMEOUT_SECONDS") or DEFAULT_TIMEOUT_SECONDS)

    snapshot = (snapshot_path or env.get("SNAPSHOT_PATH") or DEFAULT_SNAPSHOT_PATH).strip()
    # An explicit empty value disables the saved session (anonymous fetch).
    session_raw = session_path if session_path is not None else env.get("SESSION_PATH", DEFAULT_SESSION_PATH)
    session = (session_raw or "").strip()

    return RunConfig(
        source_url=source_url,
        delta_threshold=_parse_float("delta threshold", threshold_raw, minimum=0.0),
        snapshot_path=Path(snapshot),
        session_path=Path(session) if session else None,
        email=None if dry_run else load_email_config(env),
        timeout_seconds=_parse_float("timeout", timeout_raw, minimum=0.1),
        dry_run=dry_run,
    )
