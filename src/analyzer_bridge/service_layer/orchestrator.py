# pylint: disable=broad-except
"""Polling orchestrator - runs the today and yesterday lanes of one polling cycle."""

import logging
import threading
from datetime import date, timedelta
from typing import Callable, List

from analyzer_bridge.config import Settings
from analyzer_bridge.domain.commands import PollReport
from analyzer_bridge.domain.model import LaneReport
from analyzer_bridge.service_layer import messagebus
from analyzer_bridge.service_layer.unit_of_work import AbstractUnitOfWork

logger = logging.getLogger(__name__)


class PollingOrchestrator:
    """
    Runs one polling cycle at a time.

    Cycles are serialised by a non-blocking run lock: a cycle requested while
    another one is still running (slow analyzer, manual trigger) is skipped.
    The lock only covers this process; running two bridge processes against
    the same ledger can deliver a sample twice.
    """

    def __init__(
        self,
        settings: Settings,
        uow: AbstractUnitOfWork,
        today: Callable[[], date] = date.today,
    ):
        self.settings = settings
        self.uow = uow
        self.today = today
        self._run_lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._run_lock.locked()

    def lanes(self, today: date) -> List[PollReport]:
        commands = [PollReport(day=today, lane="today")]
        if self.settings.communication.query_for_yesterday_results:
            commands.append(PollReport(day=today - timedelta(days=1), lane="yesterday"))
        return commands

    def run_cycle(self) -> List[LaneReport]:
        """Poll today's report and, if configured, yesterday's, in that order."""
        commands = self.lanes(self.today())

        if not self._run_lock.acquire(blocking=False):
            logger.warning("Previous polling cycle is still running, skipping this one")
            return [LaneReport(day=c.day, lane=c.lane, status=LaneReport.SKIPPED_BUSY) for c in commands]

        try:
            logger.info("Sending requests for today's and potentially yesterday's results")
            return [self._run_lane(command) for command in commands]
        finally:
            self._run_lock.release()

    def _run_lane(self, command: PollReport) -> LaneReport:
        try:
            [report] = messagebus.handle(command, self.uow)
            return report
        except Exception as e:
            logger.error(f"Polling {command.lane} ({command.day.isoformat()}) failed: {e}")
            return LaneReport(day=command.day, lane=command.lane, status=LaneReport.FAILED)
