"""LIMS client - Adapter for delivering HbA1c observations to the LIMS."""

import abc
import base64
import json
import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional

import requests

from analyzer_bridge.config import Settings
from analyzer_bridge.domain.model import DeliveryOutcome, Result

logger = logging.getLogger(__name__)

LOINC_SYSTEM = "http://loinc.org"
HBA1C_PERCENT_LOINC = "4548-4"  # Hemoglobin A1c/Hemoglobin.total in Blood
UCUM_SYSTEM = "http://unitsofmeasure.org"
PERCENT_UNIT = "%"

ISSUED_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def _local_now() -> datetime:
    return datetime.now().astimezone()


def basic_auth_header(username: str, password: str) -> str:
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


class AbstractLimsClient(abc.ABC):
    """Abstract base class for observation delivery."""

    @abc.abstractmethod
    def send(self, result: Result, day: date) -> DeliveryOutcome:
        """
        Deliver one result to the LIMS.

        Args:
            result: Extracted sample result
            day: Report day the result belongs to

        Returns:
            DeliveryOutcome, accepted only on HTTP 200
        """
        raise NotImplementedError


class HTTPLimsClient(AbstractLimsClient):
    """HTTP client posting observations to ``<limsServerBaseUrl>/observation``."""

    def __init__(
        self,
        settings: Settings,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
        clock: Callable[[], datetime] = _local_now,
    ):
        self.settings = settings
        self.timeout = timeout or settings.communication.request_timeout_seconds
        self.session = session or requests.Session()
        self.clock = clock

    @property
    def observation_url(self) -> str:
        return f"{self.settings.lims.lims_server_base_url}/observation"

    def build_payload(self, result: Result) -> Dict[str, Any]:
        """
        Build the observation record for one result.

        issuedDate is the time of sending, not the report day.
        """
        analyzer = self.settings.analyzer
        lims = self.settings.lims
        return {
            "sampleId": result.sample_id,
            "observationValue": result.value,
            "analyzerId": analyzer.analyzer_id,
            "departmentAnalyzerId": analyzer.department_analyzer_id,
            "analyzerName": analyzer.analyzer_name,
            "departmentId": analyzer.department_id,
            "username": lims.username,
            "password": lims.password,
            "issuedDate": self.clock().strftime(ISSUED_DATE_FORMAT),
            "observationValueCodingSystem": LOINC_SYSTEM,
            "observationValueCode": HBA1C_PERCENT_LOINC,
            "observationUnitCodingSystem": UCUM_SYSTEM,
            "observationUnitCode": PERCENT_UNIT,
        }

    def send(self, result: Result, day: date) -> DeliveryOutcome:
        payload = self.build_payload(result)
        logger.info(
            f"Processing sample ID {result.sample_id} with HbA1c value {result.value} "
            f"for {day.isoformat()}"
        )
        logger.debug(f"Prepared observation JSON: {json.dumps(dict(payload, password='***'))}")

        headers = {
            "Content-Type": "application/json",
            "Authorization": basic_auth_header(self.settings.lims.username, self.settings.lims.password),
        }

        try:
            response = self.session.post(
                self.observation_url,
                data=json.dumps(payload),
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Exception occurred while sending sample {result.sample_id} to LIMS: {e}")
            return DeliveryOutcome.rejected(reason=str(e))

        logger.info(f"Response Code: {response.status_code}")

        if response.status_code != 200:
            body = response.text
            logger.error(f"Error from LIMS server for sample {result.sample_id}: {body}")
            return DeliveryOutcome.rejected(reason=body, status_code=response.status_code)

        logger.info(f"Response from LIMS server for sample {result.sample_id}: {response.text}")
        return DeliveryOutcome.accepted_with(response.status_code)
