"""
Views for read operations - separate from the polling write path.
"""
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict

from analyzer_bridge.service_layer.unit_of_work import AbstractUnitOfWork

logger = logging.getLogger(__name__)


def get_deliveries(day: date, uow: AbstractUnitOfWork) -> Dict[str, Any]:
    """
    Sample ids delivered to the LIMS for a day, in delivery order.

    Raises:
        LedgerIoError: If the day's ledger cannot be read
    """
    with uow:
        sample_ids = uow.ledgers.list(day)

    return {
        "day": day.isoformat(),
        "count": len(sample_ids),
        "sample_ids": sample_ids,
        "queried_at": datetime.now(timezone.utc).isoformat(),
    }
