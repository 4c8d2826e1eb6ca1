"""
Activity component - Engaged time of a page session.

Provides the service factory used by hosts, offline replay of recorded
activity streams, and queries against a live tracker.
"""

from __future__ import annotations

import math

from ._impl import EngagementTracker
from .models import (
    DEFAULT_INACTIVITY_THRESHOLD_SECONDS,
    DEFAULT_SIGNALS,
    ActivityNotStartedError,
    ActivityValidationError,
    EngagedTimeOutput,
    QueryEngagedTimeInput,
    ReplayActivityInput,
    ReplayActivityOutput,
)
from .ports import ActivityHostPort, ActivityRulesPort


# --- Pure Functions (Functional Core) ---


def validate_activity_config(
    inactivity_threshold_seconds: int,
    signals: tuple[str, ...],
) -> list[ActivityValidationError]:
    """
    Validate tracker configuration values.

    Returns:
        List of validation errors (empty if valid)
    """
    errors: list[ActivityValidationError] = []

    if inactivity_threshold_seconds < 1:
        errors.append(
            ActivityValidationError(
                code="INVALID_THRESHOLD",
                message="Inactivity threshold must be at least 1 second",
                field_name="inactivity_threshold_seconds",
            )
        )

    if not signals:
        errors.append(
            ActivityValidationError(
                code="NO_SIGNALS",
                message="At least one activity signal is required",
                field_name="signals",
            )
        )
    elif any(not s or not s.strip() for s in signals):
        errors.append(
            ActivityValidationError(
                code="INVALID_SIGNAL",
                message="Signal names cannot be blank",
                field_name="signals",
            )
        )

    return errors


# --- Component Entry Points ---


def install_activity_service(
    host: ActivityHostPort,
    rules: ActivityRulesPort | None = None,
) -> EngagementTracker:
    """
    Create the engagement tracker for a page session.

    Args:
        host: Host environment the tracker subscribes to
        rules: Optional rules port for threshold and signals

    Returns:
        Tracker waiting for the page to become visible

    Raises:
        ValueError: Rules produce an invalid configuration
    """
    threshold = DEFAULT_INACTIVITY_THRESHOLD_SECONDS
    signals = DEFAULT_SIGNALS

    if rules is not None:
        threshold = rules.get_inactivity_threshold_seconds()
        signals = tuple(rules.get_signals())

    errors = validate_activity_config(threshold, signals)
    if errors:
        raise ValueError("; ".join(e.message for e in errors))

    return EngagementTracker(host, inactivity_threshold=threshold, signals=signals)


def run_replay(inp: ReplayActivityInput) -> ReplayActivityOutput:
    """
    Replay recorded activity timestamps through a tracker.

    A deterministic DevHost drives the tracker, so the per-second sampling
    throttle applies exactly as it does live.

    Args:
        inp: Event timestamps and replay settings

    Returns:
        ReplayActivityOutput with engaged seconds and sampled buckets
    """
    from src.adapters.dev_host import DevHost

    errors = validate_activity_config(inp.inactivity_threshold_seconds, (inp.signal,))

    if not all(math.isfinite(t) for t in inp.event_times):
        errors.append(
            ActivityValidationError(
                code="INVALID_EVENT_TIME",
                message="Event times must be finite numbers",
                field_name="event_times",
            )
        )
    if inp.start_seconds is not None and not math.isfinite(inp.start_seconds):
        errors.append(
            ActivityValidationError(
                code="INVALID_EVENT_TIME",
                message="Start time must be a finite number",
                field_name="start_seconds",
            )
        )
    if errors:
        return ReplayActivityOutput(
            engaged_seconds=0,
            sampled_seconds=(),
            event_count=len(inp.event_times),
            errors=errors,
            success=False,
        )

    events = sorted(inp.event_times)
    start = inp.start_seconds
    if start is None:
        start = events[0] if events else None
    if start is None:
        errors.append(
            ActivityValidationError(
                code="NO_START",
                message="Replay needs a start time or at least one event",
                field_name="start_seconds",
            )
        )
    elif events and events[0] < start:
        errors.append(
            ActivityValidationError(
                code="EVENT_BEFORE_START",
                message="Events cannot occur before the page became visible",
                field_name="event_times",
            )
        )

    if errors or start is None:
        return ReplayActivityOutput(
            engaged_seconds=0,
            sampled_seconds=(),
            event_count=len(events),
            errors=errors,
            success=False,
        )

    host = DevHost(start_seconds=start)
    tracker = EngagementTracker(
        host,
        inactivity_threshold=inp.inactivity_threshold_seconds,
        signals=(inp.signal,),
    )
    host.make_visible()

    for t in events:
        host.advance_to(t)
        host.emit(inp.signal)

    engaged = tracker.get_total_engaged_time()
    history = tracker.history
    sampled = tuple(sorted(history.active_seconds)) if history is not None else ()
    tracker.cleanup()

    return ReplayActivityOutput(
        engaged_seconds=engaged,
        sampled_seconds=sampled,
        event_count=len(events),
        errors=[],
        success=True,
    )


def run_query_engaged_time(
    inp: QueryEngagedTimeInput,
    *,
    tracker: EngagementTracker,
) -> EngagedTimeOutput:
    """
    Query engaged time from a live tracker.

    A tracker that has not started yet yields a NOT_STARTED error rather
    than raising.
    """
    try:
        if inp.checkpoint is not None:
            seconds = tracker.get_incremental_engaged_time(
                inp.checkpoint, reset=inp.reset_checkpoint
            )
        else:
            seconds = tracker.get_total_engaged_time()
    except ActivityNotStartedError as e:
        return EngagedTimeOutput(
            engaged_seconds=0,
            state=tracker.state,
            checkpoint=inp.checkpoint,
            errors=[ActivityValidationError(code="NOT_STARTED", message=str(e))],
            success=False,
        )

    return EngagedTimeOutput(
        engaged_seconds=seconds,
        state=tracker.state,
        checkpoint=inp.checkpoint,
    )


def run(
    inp: ReplayActivityInput | QueryEngagedTimeInput,
    *,
    tracker: EngagementTracker | None = None,
) -> ReplayActivityOutput | EngagedTimeOutput:
    """
    Main entry point for the activity component.

    Dispatches to appropriate handler based on input type.
    """
    if isinstance(inp, ReplayActivityInput):
        return run_replay(inp)
    elif isinstance(inp, QueryEngagedTimeInput):
        if tracker is None:
            raise ValueError("EngagementTracker is required for query operations")
        return run_query_engaged_time(inp, tracker=tracker)
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
