import time

from src.adapters.clock import SystemClock


def test_system_clock_seconds():
    clock = SystemClock()
    now = clock.now_seconds()
    assert isinstance(now, float)
    # Sanity check: is it close to real now?
    assert abs(time.time() - now) < 1.0
