"""Periodic, non-reentrant sample scheduling.

Runs one orchestrator cycle per tick on a monotonic clock. Cycles never
overlap: a trigger arriving while a cycle is in flight is dropped, and
ticks missed while a slow cycle ran are skipped rather than queued.
"""

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from src.orchestrator import CycleResult, SampleOrchestrator

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 2.0


@dataclass
class SchedulerStats:
    """Counters for a scheduler run.

    Attributes:
        produced: Cycles that wrote an image/label pair.
        failed: Cycles that ended without output.
        dropped: Ticks skipped because a cycle was still running.
    """

    produced: int = 0
    failed: int = 0
    dropped: int = 0

    @property
    def cycles(self) -> int:
        return self.produced + self.failed


class SampleScheduler:
    """Fires `run_cycle` on a fixed interval.

    Example:
        >>> scheduler = SampleScheduler(orchestrator, interval=2.0)
        >>> stats = scheduler.run(max_samples=10)
        >>> stats.produced
        10
    """

    def __init__(
        self,
        orchestrator: SampleOrchestrator,
        interval: float = DEFAULT_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize scheduler.

        Args:
            orchestrator: Runs one sample cycle.
            interval: Seconds between ticks.
            clock: Monotonic time source.
            sleep: Blocking sleep used between ticks.

        Raises:
            ValueError: If interval is not positive.
        """
        if not interval > 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._orchestrator = orchestrator
        self._interval = float(interval)
        self._clock = clock
        self._sleep = sleep
        self._stats = SchedulerStats()
        self._busy = False
        self._running = False

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def stats(self) -> SchedulerStats:
        return self._stats

    @property
    def busy(self) -> bool:
        """True while a cycle is in flight."""
        return self._busy

    @property
    def running(self) -> bool:
        return self._running

    def trigger(self) -> CycleResult | None:
        """Run a single cycle unless one is already in flight.

        Returns:
            The cycle result, or None if the trigger was dropped.
        """
        if self._busy:
            self._stats.dropped += 1
            logger.debug("Cycle already in flight; trigger dropped")
            return None

        self._busy = True
        try:
            result = self._orchestrator.run_cycle()
        finally:
            self._busy = False

        if result.ok:
            self._stats.produced += 1
        else:
            self._stats.failed += 1
        return result

    def stop(self) -> None:
        """End the run loop once the current cycle finishes."""
        self._running = False

    def run(self, max_samples: int | None = None) -> SchedulerStats:
        """Trigger cycles every interval until stopped.

        Args:
            max_samples: Number of cycles to run (None=until stopped).

        Returns:
            Counters for this scheduler.
        """
        if max_samples is not None and max_samples < 0:
            raise ValueError(f"max_samples must be non-negative, got {max_samples}")

        self._running = True
        fired = 0
        next_tick = self._clock()
        logger.info(f"Generating samples every {self._interval}s")

        try:
            while self._running and (max_samples is None or fired < max_samples):
                now = self._clock()
                if now < next_tick:
                    self._sleep(next_tick - now)

                self.trigger()
                fired += 1
                next_tick = self._advance(next_tick + self._interval)
        except KeyboardInterrupt:
            logger.info("Interrupted; stopping scheduler")
        finally:
            self._running = False

        stats = self._stats
        logger.info(
            f"Scheduler stopped: {stats.produced} produced, {stats.failed} failed, "
            f"{stats.dropped} dropped"
        )
        return stats

    def _advance(self, next_tick: float) -> float:
        """Skip ticks that passed while the last cycle ran."""
        now = self._clock()
        if now <= next_tick:
            return next_tick

        missed = math.floor((now - next_tick) / self._interval)
        if missed:
            self._stats.dropped += missed
            logger.warning(f"Cycle overran; dropped {missed} tick(s)")
        return next_tick + missed * self._interval


__all__ = [
    "SampleScheduler",
    "SchedulerStats",
    "DEFAULT_INTERVAL",
]
