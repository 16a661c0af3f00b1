"""Environment configuration.

Every command-line argument is forwarded to the supervised program, so goup
reads its own settings from the environment only:

- GOUP_TERM_SIGNAL: INT or TERM (default TERM)
- GOUP_WATCH_EXT: comma separated file suffixes (default .go)
- GOUP_ON_BUSY: drop or rerun (default drop)
"""

from __future__ import annotations

import os
import signal
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Final

from .errors import ConfigError

TERM_SIGNAL_ENV: Final[str] = "GOUP_TERM_SIGNAL"
WATCH_EXT_ENV: Final[str] = "GOUP_WATCH_EXT"
ON_BUSY_ENV: Final[str] = "GOUP_ON_BUSY"

DEFAULT_EXTENSIONS: Final[frozenset[str]] = frozenset({".go"})


class TerminationSignal(str, Enum):
    """Signal sent to the supervised program to ask it to stop."""

    INTERRUPT = "INT"
    TERMINATE = "TERM"

    @property
    def signum(self) -> signal.Signals:
        if self is TerminationSignal.INTERRUPT:
            return signal.SIGINT
        return signal.SIGTERM


class BusyPolicy(str, Enum):
    """What to do with a qualifying change that arrives mid-restart."""

    DROP = "drop"
    RERUN = "rerun"


def parse_term_signal(value: str | None) -> TerminationSignal:
    """Map the GOUP_TERM_SIGNAL value to a termination signal.

    Args:
        value: Raw environment value, None when unset

    Returns:
        Resolved termination signal

    Raises:
        ConfigError: If the value is not INT, TERM or empty
    """
    if value == "INT":
        return TerminationSignal.INTERRUPT
    if value in ("TERM", "", None):
        return TerminationSignal.TERMINATE
    raise ConfigError(f"invalid {TERM_SIGNAL_ENV} value: {value}")


def parse_extensions(value: str | None) -> frozenset[str]:
    """Parse a comma separated suffix list, adding the leading dot if missing."""
    if value is None or not value.strip():
        return DEFAULT_EXTENSIONS

    extensions = set()
    for item in value.split(","):
        item = item.strip()
        if not item or item == ".":
            continue
        extensions.add(item if item.startswith(".") else f".{item}")

    if not extensions:
        raise ConfigError(f"invalid {WATCH_EXT_ENV} value: {value!r}")
    return frozenset(extensions)


def parse_busy_policy(value: str | None) -> BusyPolicy:
    if not value:
        return BusyPolicy.DROP
    try:
        return BusyPolicy(value.strip().lower())
    except ValueError:
        raise ConfigError(f"invalid {ON_BUSY_ENV} value: {value}") from None


@dataclass(frozen=True)
class GoupConfig:
    """Process-wide configuration, resolved once at startup."""

    term_signal: TerminationSignal = TerminationSignal.TERMINATE
    extensions: frozenset[str] = field(default_factory=lambda: DEFAULT_EXTENSIONS)
    busy_policy: BusyPolicy = BusyPolicy.DROP

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> GoupConfig:
        """Build configuration from environment variables.

        Args:
            env: Mapping to read from (defaults to os.environ)

        Returns:
            Validated configuration

        Raises:
            ConfigError: If any variable holds an unsupported value
        """
        if env is None:
            env = os.environ
        return cls(
            term_signal=parse_term_signal(env.get(TERM_SIGNAL_ENV)),
            extensions=parse_extensions(env.get(WATCH_EXT_ENV)),
            busy_policy=parse_busy_policy(env.get(ON_BUSY_ENV)),
        )
