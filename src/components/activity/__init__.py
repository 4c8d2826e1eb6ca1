"""
Activity component - Engaged time of a page session.

Activity events are sampled at most once per second into an
EngagementHistory, which counts each active second plus a short idle grace
period as engaged.
"""

from ._history import EngagementHistory, count_engaged_seconds
from ._impl import EngagementTracker
from .component import (
    install_activity_service,
    run,
    run_query_engaged_time,
    run_replay,
    validate_activity_config,
)
from .models import (
    DEFAULT_INACTIVITY_THRESHOLD_SECONDS,
    DEFAULT_SIGNALS,
    ActivityNotStartedError,
    ActivityValidationError,
    EngagedTimeOutput,
    QueryEngagedTimeInput,
    ReplayActivityInput,
    ReplayActivityOutput,
    TrackerState,
)
from .ports import (
    ActivityHostPort,
    ActivityRulesPort,
    SignalPort,
    TimePort,
    TimerPort,
    VisibilityPort,
)

__all__ = [
    # Component functions
    "install_activity_service",
    "run",
    "run_query_engaged_time",
    "run_replay",
    # Pure functions
    "count_engaged_seconds",
    "validate_activity_config",
    # Core classes
    "EngagementHistory",
    "EngagementTracker",
    # Models
    "DEFAULT_INACTIVITY_THRESHOLD_SECONDS",
    "DEFAULT_SIGNALS",
    "ActivityNotStartedError",
    "ActivityValidationError",
    "EngagedTimeOutput",
    "QueryEngagedTimeInput",
    "ReplayActivityInput",
    "ReplayActivityOutput",
    "TrackerState",
    # Ports
    "ActivityHostPort",
    "ActivityRulesPort",
    "SignalPort",
    "TimePort",
    "TimerPort",
    "VisibilityPort",
]
