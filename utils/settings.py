"""Runtime configuration for the bus chat service, read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Tuple
from zoneinfo import ZoneInfo

DEFAULT_PROFANITY_WORDS: Tuple[str, ...] = (
    # Hebrew
    "חרא", "זין", "כוס", "מניאק", "אידיוט",
    # English
    "fuck", "shit", "damn", "ass", "bitch", "idiot", "stupid",
)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} must be an integer") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} must be a number") from exc


@dataclass(frozen=True)
class ChatSettings:
    """Moderation thresholds, rate limits and scheduling knobs.

    Attributes:
        timezone: IANA name of the civil timezone schedules are written in.
        message_cooldown_ms: Minimum gap between two accepted sends of one connection.
        max_message_length: Longest message accepted, in code points.
        min_username_length / max_username_length: Inclusive bounds after sanitizing.
        profanity_kick_threshold: Violations that get a connection banned.
        report_delete_threshold: Distinct reporters that get a message removed.
        max_reports_per_minute: Reports one connection may file per minute.
        max_join_attempts_per_minute: Join attempts one connection may make per minute.
        scheduler_interval_seconds: Delay between scheduler ticks.
        profanity_words: Block-list matched against case-folded message text.
    """

    timezone: str = "Asia/Jerusalem"
    message_cooldown_ms: int = 2000
    max_message_length: int = 500
    min_username_length: int = 2
    max_username_length: int = 20
    profanity_kick_threshold: int = 2
    report_delete_threshold: int = 3
    max_reports_per_minute: int = 3
    max_join_attempts_per_minute: int = 5
    scheduler_interval_seconds: float = 60.0
    profanity_words: Tuple[str, ...] = field(default=DEFAULT_PROFANITY_WORDS)

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @classmethod
    def from_env(cls) -> "ChatSettings":
        """Build settings from environment variables, falling back to defaults."""
        words_raw = os.getenv("PROFANITY_WORDS")
        if words_raw and words_raw.strip():
            words = tuple(w.strip() for w in words_raw.split(",") if w.strip())
        else:
            words = DEFAULT_PROFANITY_WORDS

        timezone = (os.getenv("CHAT_TIMEZONE") or "").strip() or cls.timezone
        try:
            ZoneInfo(timezone)
        except Exception as exc:
            raise RuntimeError(f"CHAT_TIMEZONE={timezone!r} is not a known timezone") from exc

        return cls(
            timezone=timezone,
            message_cooldown_ms=_env_int("MESSAGE_COOLDOWN_MS", cls.message_cooldown_ms),
            max_message_length=_env_int("MAX_MESSAGE_LENGTH", cls.max_message_length),
            min_username_length=_env_int("MIN_USERNAME_LENGTH", cls.min_username_length),
            max_username_length=_env_int("MAX_USERNAME_LENGTH", cls.max_username_length),
            profanity_kick_threshold=_env_int("PROFANITY_KICK_THRESHOLD", cls.profanity_kick_threshold),
            report_delete_threshold=_env_int("REPORT_DELETE_THRESHOLD", cls.report_delete_threshold),
            max_reports_per_minute=_env_int("MAX_REPORTS_PER_MINUTE", cls.max_reports_per_minute),
            max_join_attempts_per_minute=_env_int(
                "MAX_JOIN_ATTEMPTS_PER_MINUTE", cls.max_join_attempts_per_minute
            ),
            scheduler_interval_seconds=_env_float(
                "SCHEDULER_INTERVAL_SECONDS", cls.scheduler_interval_seconds
            ),
            profanity_words=words,
        )
