import logging

from analyzer_bridge.adapters.report_parser import extract_results
from analyzer_bridge.domain.commands import PollReport
from analyzer_bridge.domain.events import ObservationDelivered
from analyzer_bridge.domain.exceptions import FetchError, LedgerIoError
from analyzer_bridge.domain.model import LaneReport
from analyzer_bridge.service_layer.unit_of_work import AbstractUnitOfWork

logger = logging.getLogger(__name__)


def poll_report(command: PollReport, uow: AbstractUnitOfWork) -> LaneReport:
    """
    Fetch one day's analyzer report and deliver every result not yet delivered that day.

    Flow:
    1. Build the report URL and fetch it; a fetch failure aborts the lane
    2. Extract results; an empty report aborts the lane
    3. For each result in row order: skip if already in the day's ledger,
       otherwise send it and mark it delivered once the LIMS accepted it

    A rejected sample stays unmarked and is retried on the next cycle. A mark
    that cannot be persisted is reported as unrecorded; that sample may be
    delivered again on the next cycle.

    Args:
        command: PollReport command with the report day
        uow: Unit of work giving access to the ledger and both HTTP clients

    Returns:
        LaneReport summarising the lane
    """
    day = command.day
    report = LaneReport(day=day, lane=command.lane)
    logger.info(f"Polling {command.lane}'s results ({day.isoformat()})")

    with uow:
        url = uow.report_client.report_url(day)
        try:
            html = uow.report_client.fetch(url)
        except FetchError as e:
            logger.error(f"Aborting {command.lane} lane, report fetch failed: {e}")
            report.status = LaneReport.FETCH_FAILED
            return report

        results = extract_results(html)
        if not results:
            logger.info(f"No results in {day.isoformat()} report, nothing to deliver")
            report.status = LaneReport.NO_RESULTS
            return report

        ledger = uow.ledgers.get(day)

        for result in results:
            if ledger.is_delivered(result.sample_id):
                logger.info(f"Sample ID {result.sample_id} has already been processed for {day.isoformat()}")
                report.skipped.append(result.sample_id)
                continue

            outcome = uow.lims_client.send(result, day)
            if not outcome.accepted:
                logger.warning(
                    f"LIMS rejected sample {result.sample_id} (status {outcome.status_code}): "
                    f"{outcome.reason}; will retry next cycle"
                )
                report.rejected.append(result.sample_id)
                continue

            ledger.mark_delivered(result.sample_id)
            try:
                uow.commit()
            except LedgerIoError as e:
                logger.warning(
                    f"Sample {result.sample_id} was delivered but could not be recorded, "
                    f"it may be delivered again: {e}"
                )
                report.unrecorded.append(result.sample_id)
                continue
            report.delivered.append(result.sample_id)

    logger.info(
        f"Finished {command.lane} lane: {len(report.delivered)} delivered, "
        f"{len(report.skipped)} already processed, {len(report.rejected)} rejected"
    )
    return report


def log_delivery(event: ObservationDelivered, uow: AbstractUnitOfWork):
    logger.info(
        f"Observation for sample {event.sample_id} ({event.day.isoformat()}) "
        f"delivered at {event.delivered_at.isoformat()}"
    )
