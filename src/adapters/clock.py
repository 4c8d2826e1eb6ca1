import time


class SystemClock:
    def now_seconds(self) -> float:
        return time.time()
