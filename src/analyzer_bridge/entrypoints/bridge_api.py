"""
Analyzer Bridge API - health, delivery ledger and manual poll trigger.
Runs the polling scheduler in a background thread for the lifetime of the app.
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import Callable, Optional

import uvicorn
from fastapi import FastAPI, HTTPException

from analyzer_bridge import config, views
from analyzer_bridge.domain.exceptions import ConfigError, LedgerIoError
from analyzer_bridge.entrypoints.scheduler import LOG_FORMAT, Scheduler, build_scheduler
from analyzer_bridge.service_layer.unit_of_work import AbstractUnitOfWork, unit_of_work_factory

logger = logging.getLogger(__name__)

SCHEDULER_JOIN_TIMEOUT = 10


def create_app(
    scheduler: Scheduler,
    uow_factory: Callable[[], AbstractUnitOfWork],
    run_scheduler: bool = True,
) -> FastAPI:
    """
    Build the API around a scheduler.

    Args:
        scheduler: Scheduler whose orchestrator serves the manual trigger
        uow_factory: Builds a fresh unit of work for each ledger read
        run_scheduler: Start the polling loop on app startup
    """
    orchestrator = scheduler.orchestrator

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        thread = scheduler.start_in_background() if run_scheduler else None
        yield
        scheduler.stop()
        if thread is not None:
            thread.join(timeout=SCHEDULER_JOIN_TIMEOUT)
            if thread.is_alive():
                logger.warning("Scheduler thread still busy with a polling cycle at shutdown")

    app = FastAPI(
        title="Analyzer Bridge API",
        description="Status API for the HbA1c analyzer to LIMS bridge",
        version="1.0.0",
        lifespan=lifespan,
    )

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "service": "analyzer-bridge",
            "polling": orchestrator.running,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/api/v1/deliveries/{day}")
    def get_deliveries(day: date):
        """Sample ids delivered to the LIMS for a day (YYYY-MM-DD)."""
        try:
            return views.get_deliveries(day, uow_factory())
        except LedgerIoError as e:
            logger.error(f"Cannot read ledger for {day.isoformat()}: {e}")
            raise HTTPException(status_code=503, detail=str(e))

    @app.post("/api/v1/poll")
    def poll_now():
        """
        Run one polling cycle now.

        Shares the scheduler's run lock; answers 409 while a cycle is running.
        """
        if orchestrator.running:
            raise HTTPException(status_code=409, detail="A polling cycle is already running")

        reports = scheduler.tick()
        if reports and all(r.status == r.SKIPPED_BUSY for r in reports):
            raise HTTPException(status_code=409, detail="A polling cycle is already running")

        return {"lanes": [r.as_dict() for r in reports]}

    return app


def main(settings: Optional[config.Settings] = None):
    """Main entry point for the bridge with its status API."""
    logging.basicConfig(level=config.get_log_level(), format=LOG_FORMAT)

    try:
        settings = settings or config.load_settings()
    except ConfigError as e:
        logger.critical(f"Cannot start analyzer bridge: {e}")
        sys.exit(1)

    app = create_app(build_scheduler(settings), unit_of_work_factory(settings))
    uvicorn.run(app, **config.get_api_host_and_port())


if __name__ == "__main__":
    main()
