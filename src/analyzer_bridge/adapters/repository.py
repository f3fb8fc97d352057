"""Duplicate ledger repositories, one DailyLedger per calendar day."""

import abc
import logging
import os
from datetime import date, datetime, timezone
from pathlib import Path
from typing import List, Set, Union

from sqlalchemy import insert, select
from sqlalchemy.exc import SQLAlchemyError

from analyzer_bridge.adapters import orm
from analyzer_bridge.domain import model
from analyzer_bridge.domain.exceptions import LedgerIoError

logger = logging.getLogger(__name__)


class AbstractLedgerRepository(abc.ABC):
    def __init__(self):
        self.seen = set()  # type: Set[model.DailyLedger]

    def get(self, day: date) -> model.DailyLedger:
        """Load the full ledger of a day into memory."""
        ledger = model.DailyLedger(day, set(self._load(day)))
        self.seen.add(ledger)
        return ledger

    def add(self, record: model.DeliveryRecord) -> None:
        self._append(record)

    def list(self, day: date) -> List[str]:
        """Delivered sample ids of a day, in delivery order."""
        return self._load(day)

    @abc.abstractmethod
    def _load(self, day: date) -> List[str]:
        raise NotImplementedError

    @abc.abstractmethod
    def _append(self, record: model.DeliveryRecord) -> None:
        raise NotImplementedError


class FileLedgerRepository(AbstractLedgerRepository):
    """Append-only text file per day, one sample id per line."""

    def __init__(self, directory: Union[str, Path] = "."):
        super().__init__()
        self.directory = Path(directory)

    def path_for(self, day: date) -> Path:
        return self.directory / f"processed_samples_{day.isoformat()}.txt"

    def _load(self, day):
        path = self.path_for(day)
        if not path.exists():
            return []

        logger.info(f"Loading processed samples from file: {path}")
        try:
            with path.open("r", encoding="utf-8") as f:
                return [line.strip() for line in f if line.strip()]
        except OSError as e:
            logger.error(f"Error reading processed samples file {path}: {e}")
            raise LedgerIoError(f"Cannot read ledger {path}: {e}") from e

    def _append(self, record):
        path = self.path_for(record.day)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as f:
                f.write(f"{record.sample_id}\n")
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            logger.error(f"Error writing to processed samples file {path}: {e}")
            raise LedgerIoError(f"Cannot append {record.sample_id} to ledger {path}: {e}") from e


class SqlAlchemyLedgerRepository(AbstractLedgerRepository):
    def __init__(self, session):
        super().__init__()
        self.session = session

    def _load(self, day):
        try:
            rows = self.session.execute(
                select(orm.delivery_records.c.sample_id)
                .where(orm.delivery_records.c.day == day)
                .order_by(orm.delivery_records.c.delivered_at)
            )
            return [row.sample_id for row in rows]
        except SQLAlchemyError as e:
            logger.error(f"Error loading ledger for {day.isoformat()}: {e}")
            raise LedgerIoError(f"Cannot load ledger for {day.isoformat()}: {e}") from e

    def _append(self, record):
        try:
            self.session.execute(
                insert(orm.delivery_records).values(
                    day=record.day,
                    sample_id=record.sample_id,
                    delivered_at=datetime.now(timezone.utc),
                )
            )
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Error recording delivery of {record.sample_id}: {e}")
            raise LedgerIoError(f"Cannot record {record.sample_id} for {record.day.isoformat()}: {e}") from e
