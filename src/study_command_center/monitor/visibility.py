"""Foreground-loss detection for timed activities."""

from collections.abc import Callable

import structlog

logger = structlog.get_logger()


class VisibilityMonitor:
    """Counts breaches and applies the discipline penalty for each one.

    Only hidden transitions while armed count; returning to the foreground
    never reverses a penalty and repeated events are not debounced.

    Args:
        penalty: Points removed from the discipline score per breach.
        is_armed: Returns True while the timed activity is live.
        apply_penalty: Called with the negative score delta.
        on_breach: Called with the new breach count after the penalty.
    """

    def __init__(
        self,
        penalty: int,
        is_armed: Callable[[], bool],
        apply_penalty: Callable[[int], None],
        on_breach: Callable[[int], None] | None = None,
    ):
        self.penalty = penalty
        self.breaches = 0
        self._is_armed = is_armed
        self._apply_penalty = apply_penalty
        self._on_breach = on_breach

    def observe(self, hidden: bool) -> bool:
        """Feed a visibility change; returns True if it counted as a breach."""
        if not hidden or not self._is_armed():
            return False
        self.breaches += 1
        logger.info("visibility_breach", breaches=self.breaches, penalty=self.penalty)
        self._apply_penalty(-self.penalty)
        if self._on_breach is not None:
            self._on_breach(self.breaches)
        return True
