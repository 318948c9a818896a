"""
Upload of result lists to OFeed.

Handles:
- Building the multipart form (event id + XML file)
- Basic authorization
- Classifying the server response (any 2xx is an upload)
"""

import logging

import requests

from ofeed_connector.diagnostics import BoundedLog, StatusTracker
from ofeed_connector.http.client import describe_transport_error
from ofeed_connector.http.status_codes import describe
from ofeed_connector.relay.outcomes import (
    MSG_POST_REQUEST,
    MSG_UPLOAD_OK,
    UploadOutcome,
    UploadResult,
)

logger = logging.getLogger(__name__)

RESULTS_FILENAME = "result-list-iof-3.0.xml"
XML_CONTENT_TYPE = "text/xml; charset=utf-8"


class Uploader:
    """
    Posts a result list to the OFeed upload endpoint.

    Each outcome is written to the application log and recorded in the
    status tracker. Nothing is raised to the caller.
    """

    def __init__(self, session: requests.Session, config, log: BoundedLog, status: StatusTracker):
        """
        Initialize uploader.

        Args:
            session: HTTP session (timeouts and wire trace already set up)
            config: RelayConfig with sink URL, event id and authorization
            log: Application log
            status: Status tracker
        """
        self._session = session
        self._url = config.sink_url
        self._event_id = config.event_id
        self._authorization = config.authorization
        self._user_agent = config.user_agent
        self._log = log
        self._status = status

    def _fail(self, outcome: UploadOutcome) -> UploadOutcome:
        self._status.record_failure(outcome.message)
        self._log.add(outcome.message)
        logger.warning(f"Upload failed: {outcome.message}")
        return outcome

    def upload(self, payload: str) -> UploadOutcome:
        """
        Upload a result list.

        Args:
            payload: IOF XML 3.0 result list

        Returns:
            UploadOutcome
        """
        self._log.add(MSG_POST_REQUEST)

        files = {
            "file": (RESULTS_FILENAME, payload.encode("utf-8"), XML_CONTENT_TYPE),
        }
        data = {
            "eventId": self._event_id,
        }
        headers = {
            "User-Agent": self._user_agent,
            "Authorization": self._authorization,
        }

        try:
            response = self._session.post(
                self._url,
                data=data,
                files=files,
                headers=headers,
            )
        except requests.RequestException as e:
            return self._fail(UploadOutcome(
                UploadResult.UNREACHABLE,
                describe_transport_error(e),
            ))

        try:
            code = response.status_code
            if not 200 <= code < 300:
                return self._fail(UploadOutcome(
                    UploadResult.HTTP_ERROR,
                    describe(code),
                    status_code=code,
                ))

            self._status.record_success(MSG_UPLOAD_OK)
            self._log.add(MSG_UPLOAD_OK)
            logger.info(MSG_UPLOAD_OK)
            return UploadOutcome(UploadResult.UPLOADED, MSG_UPLOAD_OK, status_code=code)
        finally:
            response.close()
