# pylint: disable=broad-except
"""Fixed-interval polling loop - the bridge's headless entry point."""

import logging
import sys
import threading
import time
from typing import Callable, List, Optional

from analyzer_bridge import config
from analyzer_bridge.domain.exceptions import ConfigError
from analyzer_bridge.domain.model import LaneReport
from analyzer_bridge.service_layer.orchestrator import PollingOrchestrator
from analyzer_bridge.service_layer.unit_of_work import unit_of_work_for

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Scheduler:
    """
    Fires the orchestrator once immediately, then every interval.

    Ticks sit on a fixed grid (start + n * interval). A cycle that overruns
    one or more ticks skips them instead of firing back to back.
    """

    def __init__(
        self,
        orchestrator: PollingOrchestrator,
        interval_minutes: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if interval_minutes <= 0:
            raise ValueError(f"Polling interval must be positive, got {interval_minutes}")
        self.orchestrator = orchestrator
        self.interval_seconds = interval_minutes * 60
        self.clock = clock
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def tick(self) -> List[LaneReport]:
        """Run one polling cycle now."""
        try:
            return self.orchestrator.run_cycle()
        except Exception:
            logger.exception("Exception occurred in polling cycle")
            return []

    def run_forever(self, max_ticks: Optional[int] = None):
        logger.info(f"Scheduler started, polling every {self.interval_seconds / 60:g} minute(s)")
        next_tick = self.clock()
        ticks = 0

        while not self._stop.is_set():
            self.tick()
            ticks += 1
            if max_ticks is not None and ticks >= max_ticks:
                break

            next_tick += self.interval_seconds
            now = self.clock()
            if now > next_tick:
                missed = int((now - next_tick) // self.interval_seconds) + 1
                logger.warning(f"Polling cycle overran the interval, skipping {missed} tick(s)")
                next_tick += missed * self.interval_seconds

            if self._stop.wait(max(0.0, next_tick - now)):
                break

        logger.info("Scheduler stopped")

    def stop(self):
        self._stop.set()

    def start_in_background(self) -> threading.Thread:
        self._thread = threading.Thread(target=self.run_forever, name="analyzer-bridge-scheduler", daemon=True)
        self._thread.start()
        return self._thread


def build_scheduler(settings: config.Settings) -> Scheduler:
    orchestrator = PollingOrchestrator(settings, unit_of_work_for(settings))
    return Scheduler(orchestrator, settings.communication.query_frequency_in_minutes)


def main():
    """Main entry point for the analyzer bridge polling loop."""
    logging.basicConfig(level=config.get_log_level(), format=LOG_FORMAT)
    logger.info("Analyzer bridge starting")

    try:
        settings = config.load_settings()
    except ConfigError as e:
        logger.critical(f"Cannot start analyzer bridge: {e}")
        sys.exit(1)

    scheduler = build_scheduler(settings)
    try:
        scheduler.run_forever()
    except KeyboardInterrupt:
        logger.info("Analyzer bridge stopped by user")
        scheduler.stop()


if __name__ == "__main__":
    main()
