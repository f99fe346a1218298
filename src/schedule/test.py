"""Tests for the sample scheduler."""

import logging

import pytest

from src.orchestrator import CycleResult, SampleOrchestrator
from src.render import PngImageWriter
from src.schedule import SampleScheduler, SchedulerStats


class FakeClock:
    """Manual monotonic clock; sleeping advances it."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class ScriptedOrchestrator:
    """Returns canned results and advances the clock by a fixed duration."""

    def __init__(self, clock, duration=0.0, outcomes=None, hook=None):
        self.clock = clock
        self.duration = duration
        self.outcomes = list(outcomes or [])
        self.hook = hook
        self.calls = 0

    def run_cycle(self):
        self.calls += 1
        self.clock.now += self.duration
        if self.hook is not None:
            self.hook(self.calls)
        ok = self.outcomes.pop(0) if self.outcomes else True
        if ok:
            return CycleResult(image_path="img.png", label_path="img.txt")
        return CycleResult(errors=[OSError("boom")])


def _scheduler(clock, orchestrator, interval=2.0):
    return SampleScheduler(
        orchestrator, interval=interval, clock=clock, sleep=clock.sleep
    )


class TestSchedulerStats:
    """Tests for SchedulerStats."""

    @pytest.mark.unit
    def test_cycles(self):
        """cycles counts produced and failed samples."""
        assert SchedulerStats(produced=2, failed=1, dropped=5).cycles == 3


class TestSampleScheduler:
    """Tests for SampleScheduler."""

    @pytest.mark.unit
    def test_interval_must_be_positive(self):
        """A non-positive interval is rejected."""
        clock = FakeClock()
        with pytest.raises(ValueError, match="interval"):
            _scheduler(clock, ScriptedOrchestrator(clock), interval=0)

    @pytest.mark.unit
    def test_negative_max_samples_rejected(self):
        """max_samples below zero is rejected."""
        clock = FakeClock()
        with pytest.raises(ValueError, match="max_samples"):
            _scheduler(clock, ScriptedOrchestrator(clock)).run(max_samples=-1)

    @pytest.mark.unit
    def test_runs_requested_count(self):
        """The first tick fires immediately, later ones one interval apart."""
        clock = FakeClock()
        orchestrator = ScriptedOrchestrator(clock)
        stats = _scheduler(clock, orchestrator).run(max_samples=3)

        assert orchestrator.calls == 3
        assert clock.sleeps == [2.0, 2.0]
        assert stats.produced == 3
        assert stats.dropped == 0

    @pytest.mark.unit
    def test_sleep_accounts_for_cycle_time(self):
        """Time spent in a cycle is subtracted from the next wait."""
        clock = FakeClock()
        orchestrator = ScriptedOrchestrator(clock, duration=0.5)
        _scheduler(clock, orchestrator).run(max_samples=3)
        assert clock.sleeps == [pytest.approx(1.5), pytest.approx(1.5)]

    @pytest.mark.unit
    def test_zero_samples(self):
        """max_samples=0 runs nothing."""
        clock = FakeClock()
        orchestrator = ScriptedOrchestrator(clock)
        _scheduler(clock, orchestrator).run(max_samples=0)
        assert orchestrator.calls == 0

    @pytest.mark.unit
    def test_failed_cycles_counted(self):
        """Cycles without output count as failures, not crashes."""
        clock = FakeClock()
        orchestrator = ScriptedOrchestrator(clock, outcomes=[True, False, True])
        stats = _scheduler(clock, orchestrator).run(max_samples=3)
        assert (stats.produced, stats.failed) == (2, 1)

    @pytest.mark.unit
    def test_overrun_drops_missed_ticks(self, caplog):
        """Ticks missed during a slow cycle are skipped, not queued."""
        clock = FakeClock()
        orchestrator = ScriptedOrchestrator(clock, duration=5.0)
        with caplog.at_level(logging.WARNING, logger="src.schedule.lib"):
            stats = _scheduler(clock, orchestrator).run(max_samples=2)

        assert orchestrator.calls == 2
        assert clock.sleeps == []
        assert stats.dropped == 3
        assert "dropped" in caplog.text

    @pytest.mark.unit
    def test_reentrant_trigger_dropped(self):
        """A trigger during an in-flight cycle returns None."""
        clock = FakeClock()
        nested = []
        orchestrator = ScriptedOrchestrator(clock)
        scheduler = _scheduler(clock, orchestrator)
        orchestrator.hook = lambda call: nested.append(scheduler.trigger())

        result = scheduler.trigger()

        assert result is not None and result.ok
        assert nested == [None]
        assert orchestrator.calls == 1
        assert scheduler.stats.dropped == 1
        assert not scheduler.busy

    @pytest.mark.unit
    def test_stop_ends_loop(self):
        """stop() ends an unbounded run after the current cycle."""
        clock = FakeClock()
        orchestrator = ScriptedOrchestrator(clock)
        scheduler = _scheduler(clock, orchestrator)
        orchestrator.hook = lambda call: scheduler.stop() if call == 2 else None

        stats = scheduler.run()

        assert orchestrator.calls == 2
        assert stats.produced == 2
        assert not scheduler.running

    @pytest.mark.unit
    def test_keyboard_interrupt_stops_cleanly(self):
        """Ctrl-C during a cycle ends the run and returns the counters."""
        clock = FakeClock()

        def interrupt(call):
            if call == 2:
                raise KeyboardInterrupt

        orchestrator = ScriptedOrchestrator(clock, hook=interrupt)
        scheduler = _scheduler(clock, orchestrator)

        stats = scheduler.run()

        assert stats.produced == 1
        assert not scheduler.busy
        assert not scheduler.running

    @pytest.mark.unit
    def test_malformed_renderer_output_does_not_stop_run(
        self, fake_renderer, dataset_dir
    ):
        """A renderer returning garbage fails each cycle but the run continues."""
        clock = FakeClock()
        fake_renderer.canvas = None
        orchestrator = SampleOrchestrator(
            renderer=fake_renderer,
            image_writer=PngImageWriter(),
            output_dir=dataset_dir,
        )

        stats = _scheduler(clock, orchestrator).run(max_samples=2)

        assert (stats.produced, stats.failed) == (0, 2)
        assert not dataset_dir.exists()
