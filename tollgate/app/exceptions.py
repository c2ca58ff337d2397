"""Custom exceptions for the tollgate application.

Library operations report expected failures as result objects. These
exceptions exist for the HTTP layer, where a failed result is turned
into an error response.
"""


class TollgateException(Exception):
    """Base class for tollgate exceptions with HTTP status code.

    All custom exceptions should inherit from this class and define
    their specific status_code for consistent HTTP response handling.
    """
    status_code: int = 500

    def __init__(self, message: str = "Tollgate error"):
        self.message = message
        super().__init__(message)


class RateLimitExceededError(TollgateException):
    """Raised when a client has exhausted its request allowance.

    Maps to HTTP 429 Too Many Requests.
    """
    status_code = 429

    def __init__(self, retry_after: int, limit: int, detail: str | None = None):
        self.retry_after = retry_after
        self.limit = limit
        super().__init__(detail or "Rate limit exceeded. Please try again later.")


class AuthenticationError(TollgateException):
    """Raised when bearer token or admin token authentication fails.

    Maps to HTTP 401 Unauthorized.
    """
    status_code = 401

    def __init__(self, detail: str = "Invalid or missing token"):
        self.detail = detail
        super().__init__(detail)


class InvalidRequestError(TollgateException):
    """Raised for malformed client input such as oversized credentials.

    Maps to HTTP 400 Bad Request.
    """
    status_code = 400

    def __init__(self, detail: str = "Invalid request"):
        self.detail = detail
        super().__init__(detail)
