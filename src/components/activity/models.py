"""
Activity component input/output models.

Engagement is measured in whole seconds. Raw activity events are reduced to
second-indices (``floor(epoch seconds)``) before they reach the history.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# --- Constants ---

DEFAULT_INACTIVITY_THRESHOLD_SECONDS = 5
DEFAULT_SIGNALS: tuple[str, ...] = ("scroll",)


# --- Tracker State ---


class TrackerState(str, Enum):
    """Lifecycle of an engagement tracker."""

    CREATED = "created"
    STARTED = "started"
    STOPPED = "stopped"


# --- Errors ---


class ActivityNotStartedError(RuntimeError):
    """Raised when engaged time is queried before the page became visible."""


@dataclass(frozen=True)
class ActivityValidationError:
    """Activity validation error."""

    code: str
    message: str
    field_name: str | None = None


# --- Input Models ---


@dataclass(frozen=True)
class ReplayActivityInput:
    """
    Input for replaying a recorded activity stream.

    Timestamps are epoch seconds (fractions allowed). The page becomes visible
    at ``start_seconds``; when omitted, the earliest event time is used.
    """

    event_times: tuple[float, ...]
    start_seconds: float | None = None
    signal: str = "scroll"
    inactivity_threshold_seconds: int = DEFAULT_INACTIVITY_THRESHOLD_SECONDS


@dataclass(frozen=True)
class QueryEngagedTimeInput:
    """Input for querying a live tracker."""

    checkpoint: str | None = None  # Incremental query when set
    reset_checkpoint: bool = True


# --- Output Models ---


@dataclass(frozen=True)
class ReplayActivityOutput:
    """Output from replaying an activity stream."""

    engaged_seconds: int
    sampled_seconds: tuple[int, ...]
    event_count: int
    errors: list[ActivityValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class EngagedTimeOutput:
    """Output for an engaged time query."""

    engaged_seconds: int
    state: TrackerState
    checkpoint: str | None = None
    errors: list[ActivityValidationError] = field(default_factory=list)
    success: bool = True
