"""Failures of a single fetch cycle.

They never escape ``WidgetFetcher.run_cycle``: the message is recorded on
the widget and in its history instead.
"""


class FetchError(Exception):
    """Base class for anything that makes a fetch cycle fail."""


class TransportFailure(FetchError):
    """Network unreachable, DNS failure, timeout, invalid URL."""


class HttpStatusFailure(FetchError):
    def __init__(self, status_code: int, reason: str = ""):
        self.status_code = status_code
        self.reason = reason
        detail = f"{status_code} {reason}".strip()
        super().__init__(f"Error fetching data: {detail}")


class BodyParseFailure(FetchError):
    """The response body is not valid JSON."""
