"""
Per-key debounce scheduler.

Each key has at most one pending call. Scheduling again before the delay has
passed cancels the pending timer and replaces its arguments, so a burst of
writes for the same key collapses into the last one.

An optional `order` ranks keys. Pending calls run lowest rank first, and a
timer that fires for one key first runs the pending calls of every key ranked
before it. Keys missing from `order` rank after all listed keys.
"""
import itertools
import logging
import threading
from typing import Any, Callable, Dict, List, Sequence, Tuple

logger = logging.getLogger(__name__)

Pending = Tuple[int, threading.Timer, Callable[..., Any], tuple]


class Debouncer:
    def __init__(self, delay: float = 0.3, order: Sequence[str] = ()):
        self.delay = delay
        self._ranks = {key: rank for rank, key in enumerate(order)}
        self._lock = threading.Lock()
        self._tokens = itertools.count()
        # key -> (token, timer, func, args)
        self._pending: Dict[str, Pending] = {}

    def _rank(self, key: str) -> int:
        return self._ranks.get(key, len(self._ranks))

    def schedule(self, key: str, func: Callable[..., Any], *args: Any) -> None:
        """Run `func(*args)` after the delay unless `key` is scheduled again first."""
        if self.delay <= 0:
            self._run(key, func, args)
            return

        with self._lock:
            previous = self._pending.pop(key, None)
            if previous is not None:
                previous[1].cancel()
            token = next(self._tokens)
            timer = threading.Timer(self.delay, self._fire, args=(key, token))
            timer.daemon = True
            self._pending[key] = (token, timer, func, args)
            timer.start()

    def _fire(self, key: str, token: int) -> None:
        with self._lock:
            pending = self._pending.get(key)
            # A newer schedule or a flush took over this key
            if pending is None or pending[0] != token:
                return
            rank = self._rank(key)
            due = [k for k in self._pending if k == key or self._rank(k) < rank]
            batch = [(k, self._pending.pop(k)) for k in due]
        self._run_batch(batch)

    def _run(self, key: str, func: Callable[..., Any], args: tuple) -> None:
        try:
            func(*args)
        except Exception:
            # Runs on a timer thread with no caller to report to
            logger.exception("Debounced call for '%s' failed", key)

    def _run_batch(self, batch: List[Tuple[str, Pending]]) -> None:
        batch.sort(key=lambda item: (self._rank(item[0]), item[1][0]))
        for key, (_, timer, func, args) in batch:
            timer.cancel()
            self._run(key, func, args)

    def flush(self) -> None:
        """Run every pending call now, by rank and then in scheduling order."""
        with self._lock:
            batch = list(self._pending.items())
            self._pending.clear()
        self._run_batch(batch)

    def cancel(self, key: str) -> bool:
        with self._lock:
            pending = self._pending.pop(key, None)
        if pending is None:
            return False
        pending[1].cancel()
        return True

    def cancel_all(self) -> None:
        with self._lock:
            pending = list(self._pending.values())
            self._pending.clear()
        for _, timer, _, _ in pending:
            timer.cancel()

    def pending_keys(self) -> List[str]:
        with self._lock:
            return list(self._pending)
