# pylint: disable=redefined-outer-name
import copy
from datetime import date
from pathlib import Path

import pytest

from analyzer_bridge.adapters.lims_client import AbstractLimsClient
from analyzer_bridge.adapters.report_client import AbstractReportClient, build_report_url
from analyzer_bridge.adapters.repository import AbstractLedgerRepository
from analyzer_bridge.config import parse_settings
from analyzer_bridge.domain.exceptions import LedgerIoError
from analyzer_bridge.domain.model import DeliveryOutcome
from analyzer_bridge.service_layer.unit_of_work import AbstractUnitOfWork

EXAMPLES_DIR = Path(__file__).parent / "examples"

TODAY = date(2024, 3, 7)
YESTERDAY = date(2024, 3, 6)

RAW_SETTINGS = {
    "middlewareSettings": {
        "analyzerDetails": {
            "analyzerBaseURL": "http://d10.test/report",
            "analyzerName": "Bio-Rad D-10",
            "analyzerId": "7",
            "departmentId": "3",
            "departmentAnalyzerId": "12",
        },
        "communication": {
            "queryFrequencyInMinutes": 5,
            "queryForYesterdayResults": True,
        },
        "limsSettings": {
            "limsServerBaseUrl": "http://lims.test/api/",
            "username": "analyzer",
            "password": "secret",
        },
    }
}


class FakeReportClient(AbstractReportClient):
    """Serves canned report pages per day, or raises a configured error."""

    def __init__(self, base_url: str = "http://d10.test/report"):
        self.base_url = base_url
        self.pages = {}
        self.errors = {}
        self.fetched = []

    def set_report(self, day: date, html: str):
        self.pages[build_report_url(self.base_url, day)] = html

    def set_error(self, day: date, error: Exception):
        self.errors[build_report_url(self.base_url, day)] = error

    def fetch(self, url: str) -> str:
        self.fetched.append(url)
        if url in self.errors:
            raise self.errors[url]
        return self.pages.get(url, "")


class FakeLimsClient(AbstractLimsClient):
    """Accepts every observation unless told to reject a sample."""

    def __init__(self):
        self.sent = []
        self.rejections = {}

    def reject(self, sample_id: str, times: int = 1):
        self.rejections[sample_id] = times

    def send(self, result, day):
        self.sent.append((result.sample_id, day))
        if self.rejections.get(result.sample_id, 0) > 0:
            self.rejections[result.sample_id] -= 1
            return DeliveryOutcome.rejected("LIMS unavailable", status_code=503)
        return DeliveryOutcome.accepted_with(200)


class FakeLedgerRepository(AbstractLedgerRepository):
    def __init__(self, store, fail_appends=False, failing_samples=()):
        super().__init__()
        self.store = store
        self.fail_appends = fail_appends
        self.failing_samples = set(failing_samples)

    def _load(self, day):
        return list(self.store.get(day, []))

    def _append(self, record):
        if self.fail_appends or record.sample_id in self.failing_samples:
            raise LedgerIoError("No space left on device")
        self.store.setdefault(record.day, []).append(record.sample_id)


class FakeUnitOfWork(AbstractUnitOfWork):
    def __init__(self, report_client_impl, lims_client_impl, store=None):
        self.report_client = report_client_impl
        self.lims_client = lims_client_impl
        self.store = {} if store is None else store
        self.fail_appends = False
        self.failing_samples = set()
        self.committed = False

    def __enter__(self):
        self.ledgers = FakeLedgerRepository(self.store, self.fail_appends, self.failing_samples)
        return super().__enter__()

    def _commit(self):
        self.committed = True

    def rollback(self):
        pass


def render_report(rows):
    """Render report rows (lists of cell texts) as an analyzer HTML table."""
    body = "".join(
        "<tr>" + "".join(f"<td>{cell}</td>" for cell in row) + "</tr>"
        for row in rows
    )
    return f"<html><body><table>{body}</table></body></html>"


def sample_row(sample_id, value):
    return ["1", "03/07/2024", "09:12", sample_id, "01-01", value, "OK"]


@pytest.fixture
def raw_settings():
    return copy.deepcopy(RAW_SETTINGS)


@pytest.fixture
def settings(raw_settings):
    return parse_settings(raw_settings)


@pytest.fixture
def report_client():
    return FakeReportClient()


@pytest.fixture
def lims_client():
    return FakeLimsClient()


@pytest.fixture
def uow(report_client, lims_client):
    return FakeUnitOfWork(report_client, lims_client)


@pytest.fixture
def make_report():
    """Build report HTML from (sample_id, value) pairs, one 7-cell row each."""
    def _make(*results):
        return render_report([sample_row(sample_id, value) for sample_id, value in results])
    return _make


@pytest.fixture
def report_html():
    return (EXAMPLES_DIR / "d10_report.html").read_text(encoding="utf-8")
