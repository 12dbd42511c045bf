"""
Click debounce guard for Archcheck.

Duplicate UI events for the same control within a short window must not
toggle a tooth (or an extraction card) twice.
"""

import time
from typing import Callable, Dict, Hashable


class ClickGuard:
    """
    Single-flight guard keyed by control.

    try_acquire() returns True for the first click on a key and False for
    any further click on the same key until window_seconds have passed.

    Example:
        >>> guard = ClickGuard(window_seconds=0.1)
        >>> guard.try_acquire(("tooth", 8))
        True
        >>> guard.try_acquire(("tooth", 8))  # same event delivered twice
        False
    """

    def __init__(self, window_seconds: float = 0.1, clock: Callable[[], float] = time.monotonic):
        self.window_seconds = window_seconds
        self._clock = clock
        self._last_accepted: Dict[Hashable, float] = {}

    def try_acquire(self, key: Hashable) -> bool:
        now = self._clock()
        last = self._last_accepted.get(key)
        if last is not None and now - last < self.window_seconds:
            return False
        self._last_accepted[key] = now
        return True

    def reset(self):
        """Forget all keys."""
        self._last_accepted.clear()
