"""Unit tests for the fixed-interval scheduler"""
import logging
from unittest.mock import Mock

import pytest

from analyzer_bridge.entrypoints.scheduler import Scheduler, build_scheduler


def test_tick_runs_one_cycle():
    orchestrator = Mock()
    orchestrator.run_cycle.return_value = ["report"]

    assert Scheduler(orchestrator, 5).tick() == ["report"]
    orchestrator.run_cycle.assert_called_once_with()


def test_first_cycle_runs_immediately():
    orchestrator = Mock()
    scheduler = Scheduler(orchestrator, 60)

    scheduler.run_forever(max_ticks=1)

    orchestrator.run_cycle.assert_called_once_with()


def test_failing_cycle_does_not_stop_the_loop():
    orchestrator = Mock()
    scheduler = Scheduler(orchestrator, 0.0001)
    calls = []

    def run_cycle():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("analyzer exploded")
        scheduler.stop()
        return []

    orchestrator.run_cycle.side_effect = run_cycle

    scheduler.run_forever()

    assert len(calls) == 2


def test_overrun_skips_missed_ticks(caplog):
    orchestrator = Mock()
    times = iter([0.0, 250.0])
    scheduler = Scheduler(orchestrator, 1, clock=lambda: next(times))
    orchestrator.run_cycle.side_effect = lambda: scheduler.stop() or []

    with caplog.at_level(logging.WARNING):
        scheduler.run_forever()

    assert "skipping 4 tick(s)" in caplog.text
    orchestrator.run_cycle.assert_called_once_with()


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        Scheduler(Mock(), 0)


def test_build_scheduler_uses_configured_interval(settings, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    scheduler = build_scheduler(settings)

    assert scheduler.interval_seconds == 5 * 60
    assert scheduler.orchestrator.settings is settings
