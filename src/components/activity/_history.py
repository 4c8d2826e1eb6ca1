"""
EngagementHistory - Bucketed, cached record of active seconds.

Each bucket is one second of wall-clock time. A bucket with at least one
activity sample is "active". An active bucket covers itself plus the following
``threshold - 1`` idle seconds as engaged; once idleness reaches the threshold
the user counts as disengaged until the next active bucket.

Invariants:
- earliest <= latest
- every active second lies in [earliest, latest]
- the cached total is correct whenever the cache is valid
"""

from __future__ import annotations

from collections.abc import Collection

from .models import DEFAULT_INACTIVITY_THRESHOLD_SECONDS


def count_engaged_seconds(
    active_seconds: Collection[int],
    earliest: int,
    latest: int,
    threshold: int = DEFAULT_INACTIVITY_THRESHOLD_SECONDS,
) -> int:
    """
    Count engaged seconds in the half-open range [earliest, latest).

    Single forward pass. ``gap`` is the number of consecutive idle seconds
    since the last active one and starts at the threshold, so seconds before
    the first activity are never engaged.

    Args:
        active_seconds: Second-indices with at least one activity sample
        earliest: First second of the scan (inclusive)
        latest: Last second of the scan (exclusive)
        threshold: Idle seconds after which engagement stops

    Returns:
        Number of engaged seconds
    """
    total = 0
    gap = threshold
    for second in range(earliest, latest):
        if second in active_seconds:
            gap = 0
        else:
            gap += 1
        if gap < threshold:
            total += 1
    return total


class EngagementHistory:
    """Set of active seconds with a cached engaged-time total."""

    def __init__(
        self,
        start_second: int,
        inactivity_threshold: int = DEFAULT_INACTIVITY_THRESHOLD_SECONDS,
    ) -> None:
        self.earliest = start_second
        self.latest = start_second
        self.inactivity_threshold = inactivity_threshold
        self._active_seconds: set[int] = set()
        self._cached_total = 0
        self._cache_valid = False

    @property
    def active_seconds(self) -> frozenset[int]:
        return frozenset(self._active_seconds)

    @property
    def cache_valid(self) -> bool:
        return self._cache_valid

    def add(self, second: int) -> None:
        """Record activity in the given second. Re-adding a second is a no-op."""
        self.latest = max(self.latest, second)
        self.earliest = min(self.earliest, second)
        if second not in self._active_seconds:
            self._active_seconds.add(second)
            self._cache_valid = False

    def get_total_engaged_time(self) -> int:
        """Return total engaged seconds, recomputing only after new activity."""
        if self._cache_valid:
            return self._cached_total

        self._cached_total = count_engaged_seconds(
            self._active_seconds,
            self.earliest,
            self.latest,
            self.inactivity_threshold,
        )
        self._cache_valid = True
        return self._cached_total

    def __repr__(self) -> str:
        return (
            f"EngagementHistory(earliest={self.earliest}, latest={self.latest}, "
            f"active={len(self._active_seconds)})"
        )
