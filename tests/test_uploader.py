import requests

from conftest import FakeResponse, FakeSession
from ofeed_connector.relay import Uploader, UploadResult
from ofeed_connector.relay.uploader import RESULTS_FILENAME, XML_CONTENT_TYPE


def test_upload_builds_multipart_request(relay_config, app_log, status):
    session = FakeSession(post=[FakeResponse(200, '{"message": "ok"}')])

    outcome = Uploader(session, relay_config, app_log, status).upload("<ResultList/>")

    assert outcome.kind is UploadResult.UPLOADED
    method, url, kwargs = session.calls[0]
    assert method == "POST"
    assert url == "https://ofeed.test/rest/v1/upload/iof"
    assert kwargs["data"] == {"eventId": "evt123"}
    assert kwargs["files"]["file"] == (RESULTS_FILENAME, b"<ResultList/>", XML_CONTENT_TYPE)
    assert kwargs["headers"]["Authorization"] == "Basic ZXZ0MTIzOnNlY3JldA=="
    assert kwargs["headers"]["User-Agent"] == "OFeed Connector/test"


def test_upload_success_records_status(relay_config, app_log, status):
    session = FakeSession(post=[FakeResponse(201, "created")])

    Uploader(session, relay_config, app_log, status).upload("<x/>")

    assert status.latest().startswith("S")
    assert status.latest().endswith("Results uploaded to OFeed.")
    assert [e.text for e in app_log.get()] == [
        "Results uploaded to OFeed.",
        "POST request to OFeed.",
    ]


def test_server_error_is_a_failure(relay_config, app_log, status):
    session = FakeSession(post=[FakeResponse(500, "boom")])

    outcome = Uploader(session, relay_config, app_log, status).upload("<x/>")

    assert outcome.kind is UploadResult.HTTP_ERROR
    assert outcome.status_code == 500
    assert status.latest().startswith("F")
    assert "500" in status.latest()


def test_unauthorized(relay_config, app_log, status):
    session = FakeSession(post=[FakeResponse(401, "nope")])

    outcome = Uploader(session, relay_config, app_log, status).upload("<x/>")

    assert outcome.message == "401 (Unauthorized)."


def test_no_content_counts_as_uploaded(relay_config, app_log, status):
    session = FakeSession(post=[FakeResponse(204, "")])

    outcome = Uploader(session, relay_config, app_log, status).upload("<x/>")

    assert outcome.kind is UploadResult.UPLOADED
    assert outcome.succeeded
    assert status.latest().startswith("S")
    assert status.latest().endswith("Results uploaded to OFeed.")


def test_unreachable_sink(relay_config, app_log, status):
    session = FakeSession(post=[requests.ConnectionError("Name or service not known")])

    outcome = Uploader(session, relay_config, app_log, status).upload("<x/>")

    assert outcome.kind is UploadResult.UNREACHABLE
    assert status.latest().endswith("Name or service not known")
