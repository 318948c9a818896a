"""
Outcomes of the fetch and upload steps of a relay cycle.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

# Messages shown in the application log and status
MSG_GET_REQUEST = "GET request to SI-Droid Event."
MSG_RESULTS_RETRIEVED = "Results retrieved from SI-Droid Event."
MSG_NO_RESULTS = "No results available in SI-Droid Event yet."
MSG_POST_REQUEST = "POST request to OFeed."
MSG_UPLOAD_OK = "Results uploaded to OFeed."
MSG_EMPTY_RESPONSE = "Empty response."
MSG_TRANSFORM_ERROR = "Could not insert ids in results."
MSG_CYCLE_ERROR = "Unexpected error while relaying results."


class FetchResult(Enum):
    UNREACHABLE = "unreachable"
    HTTP_ERROR = "http_error"
    EMPTY_BODY = "empty_body"
    NO_RESULTS_YET = "no_results_yet"
    RESULTS = "results"


class UploadResult(Enum):
    UNREACHABLE = "unreachable"
    HTTP_ERROR = "http_error"
    UPLOADED = "uploaded"


@dataclass
class FetchOutcome:
    """Result of polling the results source."""
    kind: FetchResult
    message: str
    status_code: Optional[int] = None
    body: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.kind in (FetchResult.NO_RESULTS_YET, FetchResult.RESULTS)

    @property
    def has_results(self) -> bool:
        return self.kind is FetchResult.RESULTS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "status_code": self.status_code,
            "succeeded": self.succeeded,
        }


@dataclass
class UploadOutcome:
    """Result of posting results to OFeed."""
    kind: UploadResult
    message: str
    status_code: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.kind is UploadResult.UPLOADED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "status_code": self.status_code,
            "succeeded": self.succeeded,
        }
