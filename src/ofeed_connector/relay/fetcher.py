"""
Polling of the local results source (SI-Droid Event).
"""

import logging

import requests

from ofeed_connector.diagnostics import BoundedLog, StatusTracker
from ofeed_connector.http.client import describe_transport_error
from ofeed_connector.http.status_codes import describe
from ofeed_connector.relay.outcomes import (
    FetchOutcome,
    FetchResult,
    MSG_EMPTY_RESPONSE,
    MSG_GET_REQUEST,
    MSG_NO_RESULTS,
    MSG_RESULTS_RETRIEVED,
)

logger = logging.getLogger(__name__)

# Present in the result list as soon as at least one competitor has a result
RESULTS_MARKER = "<PersonResult>"


class Fetcher:
    """
    Gets the result list from the results source.

    Each outcome is written to the application log and recorded in the
    status tracker. Nothing is raised to the caller.
    """

    def __init__(self, session: requests.Session, config, log: BoundedLog, status: StatusTracker):
        """
        Initialize fetcher.

        Args:
            session: HTTP session (timeouts and wire trace already set up)
            config: RelayConfig with source URL and user agent
            log: Application log
            status: Status tracker
        """
        self._session = session
        self._url = config.source_url
        self._user_agent = config.user_agent
        self._log = log
        self._status = status

    def _fail(self, outcome: FetchOutcome) -> FetchOutcome:
        self._status.record_failure(outcome.message)
        self._log.add(outcome.message)
        logger.warning(f"Fetch failed: {outcome.message}")
        return outcome

    def _succeed(self, outcome: FetchOutcome) -> FetchOutcome:
        self._status.record_success(outcome.message)
        self._log.add(outcome.message)
        logger.info(outcome.message)
        return outcome

    def fetch(self) -> FetchOutcome:
        """
        Get results from the source.

        Returns:
            FetchOutcome; RESULTS carries the raw XML body
        """
        self._log.add(MSG_GET_REQUEST)

        try:
            response = self._session.get(
                self._url,
                headers={"User-Agent": self._user_agent},
            )
        except requests.RequestException as e:
            return self._fail(FetchOutcome(
                FetchResult.UNREACHABLE,
                describe_transport_error(e),
            ))

        try:
            code = response.status_code
            if not 200 <= code < 300:
                return self._fail(FetchOutcome(
                    FetchResult.HTTP_ERROR,
                    describe(code),
                    status_code=code,
                ))

            # requests falls back to ISO-8859-1 for text/* without a charset
            if "charset" not in response.headers.get("Content-Type", "").lower():
                response.encoding = "utf-8"

            body = response.text
            if not body:
                return self._fail(FetchOutcome(
                    FetchResult.EMPTY_BODY,
                    MSG_EMPTY_RESPONSE,
                    status_code=code,
                ))

            if RESULTS_MARKER not in body:
                return self._succeed(FetchOutcome(
                    FetchResult.NO_RESULTS_YET,
                    MSG_NO_RESULTS,
                    status_code=code,
                ))

            return self._succeed(FetchOutcome(
                FetchResult.RESULTS,
                MSG_RESULTS_RETRIEVED,
                status_code=code,
                body=body,
            ))
        finally:
            response.close()
