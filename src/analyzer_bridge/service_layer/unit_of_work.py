# pylint: disable=attribute-defined-outside-init
from __future__ import annotations
import abc
import logging
from pathlib import Path
from typing import Callable, Optional, Union

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session

from analyzer_bridge.adapters import lims_client, orm, report_client, repository
from analyzer_bridge.config import Settings
from analyzer_bridge.domain.exceptions import LedgerIoError

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(abc.ABC):
    ledgers: Optional[repository.AbstractLedgerRepository] = None
    report_client: report_client.AbstractReportClient
    lims_client: lims_client.AbstractLimsClient

    def __enter__(self) -> AbstractUnitOfWork:
        return self

    def __exit__(self, *args):
        self.rollback()

    def commit(self):
        """
        Persist pending delivery marks of every ledger loaded in this unit of work.

        A mark that fails to persist is dropped from the pending list; it stays
        delivered in memory for the rest of the cycle and is absent from the
        store, so the sample is delivered again on a later cycle.

        Raises:
            LedgerIoError: If a mark could not be written
        """
        for ledger in self.ledgers.seen:
            while ledger.pending:
                self.ledgers.add(ledger.pending.pop(0))
        self._commit()

    def collect_new_events(self):
        if self.ledgers is None:
            return
        for ledger in self.ledgers.seen:
            while ledger.events:
                yield ledger.events.pop(0)

    @abc.abstractmethod
    def _commit(self):
        raise NotImplementedError

    @abc.abstractmethod
    def rollback(self):
        raise NotImplementedError


class FileUnitOfWork(AbstractUnitOfWork):
    """Ledger as one append-only file per day. Appends are durable immediately."""

    def __init__(
        self,
        directory: Union[str, Path],
        report_client_impl: report_client.AbstractReportClient,
        lims_client_impl: lims_client.AbstractLimsClient,
    ):
        self.directory = Path(directory)
        self.report_client = report_client_impl
        self.lims_client = lims_client_impl

    def __enter__(self):
        self.ledgers = repository.FileLedgerRepository(self.directory)
        return super().__enter__()

    def _commit(self):
        pass

    def rollback(self):
        # Marks not yet appended are dropped; those samples are delivered again next cycle
        for ledger in self.ledgers.seen:
            ledger.pending.clear()


def session_factory_for(database_url: str) -> sessionmaker:
    engine = create_engine(database_url)
    orm.create_tables(engine)
    return sessionmaker(bind=engine)


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    def __init__(
        self,
        session_factory,
        report_client_impl: report_client.AbstractReportClient,
        lims_client_impl: lims_client.AbstractLimsClient,
    ):
        self.session_factory = session_factory
        self.report_client = report_client_impl
        self.lims_client = lims_client_impl

    def __enter__(self):
        self.session = self.session_factory()  # type: Session
        self.ledgers = repository.SqlAlchemyLedgerRepository(self.session)
        return super().__enter__()

    def __exit__(self, *args):
        super().__exit__(*args)
        self.session.close()

    def _commit(self):
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise LedgerIoError(f"Cannot commit ledger transaction: {e}") from e

    def rollback(self):
        self.session.rollback()


def unit_of_work_factory(settings: Settings) -> Callable[[], AbstractUnitOfWork]:
    """
    Build a factory of units of work for the configured ledger.

    The HTTP clients and the SQL engine are created once and shared; every
    call of the factory returns a new unit of work with its own session.
    """
    timeout = settings.communication.request_timeout_seconds
    reports = report_client.HTTPReportClient(settings.analyzer.analyzer_base_url, timeout=timeout)
    lims = lims_client.HTTPLimsClient(settings, timeout=timeout)

    if settings.ledger.backend == "sql":
        logger.info(f"Using SQL ledger at {settings.ledger.database_url}")
        session_factory = session_factory_for(settings.ledger.database_url)
        return lambda: SqlAlchemyUnitOfWork(session_factory, reports, lims)

    logger.info(f"Using file ledger in {settings.ledger.directory}")
    return lambda: FileUnitOfWork(settings.ledger.directory, reports, lims)


def unit_of_work_for(settings: Settings) -> AbstractUnitOfWork:
    """Build the unit of work and HTTP clients described by the settings."""
    return unit_of_work_factory(settings)()
