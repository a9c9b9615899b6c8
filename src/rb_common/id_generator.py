"""Business ids for clients, products, deliveries, payments, circuits and sessions.

An id packs the milliseconds since 2025-01-01 UTC, the worker number
(WORKER_ID) and a per-millisecond counter into one integer and is exposed
as decimal text. Ids from one worker sort in creation order.
"""

import threading
import time
from collections.abc import Callable

from config.settings import settings

EPOCH_MS = 1_735_689_600_000
WORKER_BITS = 10
COUNTER_BITS = 12
MAX_WORKER = (1 << WORKER_BITS) - 1
MAX_COUNTER = (1 << COUNTER_BITS) - 1


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class IdGenerator:
    def __init__(self, worker: int = 0, clock: Callable[[], int] = _now_ms) -> None:
        if not 0 <= worker <= MAX_WORKER:
            raise ValueError(f"worker must be between 0 and {MAX_WORKER}")
        self._worker = worker
        self._clock = clock
        self._last_ms = -1
        self._counter = 0
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            now = max(self._clock(), self._last_ms)
            if now == self._last_ms:
                self._counter += 1
                if self._counter > MAX_COUNTER:
                    # counter exhausted for this millisecond: borrow the next one
                    now += 1
                    self._counter = 0
            else:
                self._counter = 0
            self._last_ms = now
            packed = (now - EPOCH_MS) << (WORKER_BITS + COUNTER_BITS)
            return str(packed | (self._worker << COUNTER_BITS) | self._counter)


_generator = IdGenerator(worker=settings.WORKER_ID)


def generate_id() -> str:
    return _generator.next_id()
