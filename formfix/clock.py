import time


def now_ms() -> float:
    return time.time() * 1000.0
