"""Analyzer report client - builds report URLs and fetches report HTML."""

import abc
import logging
from datetime import date
from typing import Optional

import requests

from analyzer_bridge.domain.exceptions import ConnectError, HttpStatusError, IoError
from analyzer_bridge.domain.model import ReportQuery

logger = logging.getLogger(__name__)

REPORT_PATH_QUERY = "page=result&test=HBA1C"
REPORT_DATE_FORMAT = "%m/%d/%Y"


def encode_report_date(day: date) -> str:
    """Format a date as MM/DD/YYYY with the slashes percent-encoded."""
    return day.strftime(REPORT_DATE_FORMAT).replace("/", "%2F")


def build_report_url(base_url: str, day: date) -> str:
    """
    Build the HbA1c result report URL for a single day.

    >>> build_report_url("http://d10.local/report", date(2024, 3, 7))
    'http://d10.local/report?page=result&test=HBA1C&StartDate=03%2F07%2F2024&EndDate=03%2F07%2F2024'
    """
    query = ReportQuery.for_day(day)
    return (
        f"{base_url}?{REPORT_PATH_QUERY}"
        f"&StartDate={encode_report_date(query.start_date)}"
        f"&EndDate={encode_report_date(query.end_date)}"
    )


class AbstractReportClient(abc.ABC):
    """Abstract base class for analyzer report retrieval."""

    base_url: str

    def report_url(self, day: date) -> str:
        url = build_report_url(self.base_url, day)
        logger.info(f"Generated URL for {day.isoformat()}: {url}")
        return url

    @abc.abstractmethod
    def fetch(self, url: str) -> str:
        """
        Fetch the raw report body.

        Returns:
            The response body; an empty string means a report without data

        Raises:
            FetchError: ConnectError, HttpStatusError or IoError
        """
        raise NotImplementedError


class HTTPReportClient(AbstractReportClient):
    """HTTP client for the analyzer's web report interface."""

    def __init__(self, base_url: str, timeout: float = 30, session: Optional[requests.Session] = None):
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, url: str) -> str:
        logger.info(f"Fetching HTML content from URL: {url}")

        try:
            response = self.session.get(url, timeout=self.timeout)
        except (requests.exceptions.ConnectionError, requests.exceptions.ConnectTimeout) as e:
            logger.error(f"Connection failed while fetching report from {url}: {e}")
            raise ConnectError(url, f"Cannot connect to analyzer: {e}") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"I/O error while fetching report from {url}: {e}")
            raise IoError(url, f"Error reading analyzer response: {e}") from e

        logger.info(f"Response Code: {response.status_code}")

        if response.status_code != 200:
            logger.error(f"Failed to fetch HTML content. HTTP Response Code: {response.status_code}")
            raise HttpStatusError(url, response.status_code)

        body = response.text or ""
        logger.info(f"Fetched HTML content successfully ({len(body)} characters)")
        return body
