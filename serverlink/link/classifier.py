"""Classification of raw probe responses into canonical statuses."""

from serverlink.fetch.constants import HTTP_STATUS_BAD_REQUEST, HTTP_STATUS_OK
from serverlink.fetch.models import FetchResult
from serverlink.link.models import RECOGNIZED_STATUS_VALUES, Status


def classify(status_code: int | None, body: str | None) -> Status:
    """Map a transport response to a canonical status.

    Args:
        status_code: Transport status code, None if there was no response.
        body: Response body text.

    Returns:
        The status named by the body when the transport reported the
        canonical success code and the body is recognized, else INVALID.
    """
    if status_code != HTTP_STATUS_OK or body not in RECOGNIZED_STATUS_VALUES:
        return Status.INVALID
    return Status(body)


def classify_result(result: FetchResult) -> Status | None:
    """Classify a probe result.

    Args:
        result: Raw probe result.

    Returns:
        Classified status, or None for a transport failure.
    """
    if result.error is not None and result.status_code is None:
        return None
    if result.error is not None:
        # A response arrived but could not be read in full
        return Status.INVALID
    return classify(result.status_code, result.body)


def classify_best_effort(result: FetchResult) -> Status:
    """Classify a probe result for a one-shot status read.

    Transport failures and HTTP error responses read as OFFLINE.

    Args:
        result: Raw probe result.

    Returns:
        Classified status, never raising.
    """
    if result.error is not None and result.status_code is None:
        return Status.OFFLINE
    if result.status_code is not None and result.status_code >= HTTP_STATUS_BAD_REQUEST:
        return Status.OFFLINE
    return classify_result(result) or Status.OFFLINE
