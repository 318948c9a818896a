"""Results relay: polling, upload and scheduling."""

from ofeed_connector.relay.fetcher import Fetcher, RESULTS_MARKER
from ofeed_connector.relay.outcomes import (
    FetchOutcome,
    FetchResult,
    UploadOutcome,
    UploadResult,
)
from ofeed_connector.relay.scheduler import RelayScheduler, SchedulerState
from ofeed_connector.relay.service import ResultsRelay
from ofeed_connector.relay.uploader import Uploader

__all__ = [
    "Fetcher",
    "FetchOutcome",
    "FetchResult",
    "RESULTS_MARKER",
    "RelayScheduler",
    "ResultsRelay",
    "SchedulerState",
    "UploadOutcome",
    "UploadResult",
    "Uploader",
]
