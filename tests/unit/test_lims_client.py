"""Unit tests for the LIMS observation client"""
import json
from datetime import date, datetime, timedelta, timezone
from unittest.mock import Mock

import requests

from analyzer_bridge.adapters.lims_client import HTTPLimsClient, basic_auth_header
from analyzer_bridge.domain.model import Result

ISSUED_AT = datetime(2024, 3, 7, 10, 15, 30, tzinfo=timezone(timedelta(hours=3)))
DAY = date(2024, 3, 7)


def _client(settings, status_code=200, text="OK"):
    session = Mock()
    session.post.return_value = Mock(status_code=status_code, text=text)
    client = HTTPLimsClient(settings, session=session, clock=lambda: ISSUED_AT)
    return client, session


def test_basic_auth_header():
    assert basic_auth_header("user", "pass") == "Basic dXNlcjpwYXNz"


def test_build_payload_has_fixed_shape(settings):
    client, _ = _client(settings)

    payload = client.build_payload(Result("22311", "4.58"))

    assert payload == {
        "sampleId": "22311",
        "observationValue": "4.58",
        "analyzerId": "7",
        "departmentAnalyzerId": "12",
        "analyzerName": "Bio-Rad D-10",
        "departmentId": "3",
        "username": "analyzer",
        "password": "secret",
        "issuedDate": "2024-03-07T10:15:30+0300",
        "observationValueCodingSystem": "http://loinc.org",
        "observationValueCode": "4548-4",
        "observationUnitCodingSystem": "http://unitsofmeasure.org",
        "observationUnitCode": "%",
    }


def test_send_posts_json_with_basic_auth(settings):
    client, session = _client(settings)

    client.send(Result("22311", "4.58"), DAY)

    session.post.assert_called_once()
    args, kwargs = session.post.call_args
    assert args[0] == "http://lims.test/api/observation"
    assert kwargs["headers"]["Content-Type"] == "application/json"
    assert kwargs["headers"]["Authorization"] == basic_auth_header("analyzer", "secret")
    assert kwargs["timeout"] == 30
    body = json.loads(kwargs["data"])
    assert body["sampleId"] == "22311"
    assert body["observationValue"] == "4.58"


def test_http_200_is_accepted(settings):
    client, _ = _client(settings, 200, '{"status": "ok"}')

    outcome = client.send(Result("22311", "4.58"), DAY)

    assert outcome.accepted is True
    assert outcome.status_code == 200


def test_other_status_is_rejected_with_server_body(settings):
    client, _ = _client(settings, 401, "Invalid credentials")

    outcome = client.send(Result("22311", "4.58"), DAY)

    assert outcome.accepted is False
    assert outcome.status_code == 401
    assert outcome.reason == "Invalid credentials"


def test_created_status_is_not_accepted(settings):
    client, _ = _client(settings, 201, "")

    assert client.send(Result("22311", "4.58"), DAY).accepted is False


def test_transport_failure_is_rejected(settings):
    session = Mock()
    session.post.side_effect = requests.exceptions.ConnectionError("Connection refused")
    client = HTTPLimsClient(settings, session=session, clock=lambda: ISSUED_AT)

    outcome = client.send(Result("22311", "4.58"), DAY)

    assert outcome.accepted is False
    assert outcome.status_code is None
    assert "Connection refused" in outcome.reason


def test_issued_date_is_time_of_sending_not_report_day(settings):
    sent_at = datetime(2024, 3, 9, 8, 0, 0, tzinfo=timezone.utc)
    client = HTTPLimsClient(settings, session=Mock(), clock=lambda: sent_at)

    payload = client.build_payload(Result("22311", "4.58"))

    assert payload["issuedDate"] == "2024-03-09T08:00:00+0000"
