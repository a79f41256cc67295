"""Configuration helpers for the tournament service."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

import boto3

from .bracket import DEFAULT_MAX_PARTICIPANTS, is_power_of_two

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

DEFAULT_REGION = "us-east-1"
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

log = logging.getLogger("live-tournament")


def env_bool(name: str, *, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return default


def env_int(name: str, *, default: int | None = None) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_str(name: str, *, default: str | None = None) -> str | None:
    raw = os.getenv(name)
    if raw is None:
        return default
    stripped = raw.strip()
    return stripped or default


@dataclass(frozen=True)
class TournamentSettings:
    table_name: str | None
    region: str = DEFAULT_REGION
    max_participants: int = DEFAULT_MAX_PARTICIPANTS
    log_level: str = DEFAULT_LOG_LEVEL


def read_settings() -> TournamentSettings:
    max_participants = env_int(
        "TOURNAMENT_MAX_PARTICIPANTS", default=DEFAULT_MAX_PARTICIPANTS
    )
    if max_participants is None or max_participants < 2 or not is_power_of_two(
        max_participants
    ):
        log.warning(
            "Invalid TOURNAMENT_MAX_PARTICIPANTS=%s; falling back to %s",
            os.getenv("TOURNAMENT_MAX_PARTICIPANTS"),
            DEFAULT_MAX_PARTICIPANTS,
        )
        max_participants = DEFAULT_MAX_PARTICIPANTS
    log_level = env_str("TOURNAMENT_LOG_LEVEL") or DEFAULT_LOG_LEVEL
    return TournamentSettings(
        table_name=env_str("TOURNAMENT_TABLE_NAME"),
        region=env_str("AWS_REGION") or DEFAULT_REGION,
        max_participants=max_participants,
        log_level=log_level.upper(),
    )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT
    )


def build_table(settings: TournamentSettings, *, profile: str | None = None):
    """Return the DynamoDB table resource named by ``settings``."""
    if not settings.table_name:
        raise RuntimeError("TOURNAMENT_TABLE_NAME is not configured")
    session_kwargs: dict[str, str] = {"region_name": settings.region}
    if profile:
        session_kwargs["profile_name"] = profile
    session = boto3.Session(**session_kwargs)
    return session.resource("dynamodb").Table(settings.table_name)


__all__ = [
    "LOG_FORMAT",
    "TournamentSettings",
    "build_table",
    "configure_logging",
    "env_bool",
    "env_int",
    "env_str",
    "read_settings",
]
