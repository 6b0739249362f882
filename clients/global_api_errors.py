"""
GlobalAPI Error Types — Structured exception hierarchy for the HTTP layer.

Lets the retry loop retry only what makes sense (connection drops,
timeouts, 429s, 5xx) and lets callers tell "the API is down" apart from
"the API answered with garbage".
"""


class GlobalAPIError(Exception):
    """Base class for all GlobalAPI errors."""
    pass


class GlobalAPIConnectionError(GlobalAPIError):
    """API unreachable or returned a server error (5xx). Retryable."""
    pass


class GlobalAPITimeoutError(GlobalAPIError):
    """Request timed out. Retryable."""
    pass


class GlobalAPIRateLimitError(GlobalAPIError):
    """API returned 429 Too Many Requests. Retryable after backoff."""
    pass


class GlobalAPINotFoundError(GlobalAPIError):
    """The route or entity does not exist (404). NOT retryable."""
    pass


class GlobalAPIDataError(GlobalAPIError):
    """The response body was not the JSON shape we expected. NOT retryable."""
    pass
