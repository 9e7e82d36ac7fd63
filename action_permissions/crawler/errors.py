"""Exceptions raised while talking to GitHub and crawling scopes."""


class GatewayError(Exception):
    """A GitHub request failed."""

    def __init__(self, message: str, status: int | None = None):
        self.message = message
        self.status = status
        super().__init__(message)


class AuthenticationError(GatewayError):
    """The token was rejected. Fatal for the whole crawl."""

    def __init__(self, message: str = "Bad credentials", status: int | None = 401):
        super().__init__(message, status)


class NotAccessibleError(GatewayError):
    """The resource does not exist or is not visible to the token."""


class RateLimitError(GatewayError):
    """The primary rate limit was hit again after waiting for the reset."""


class SecondaryRateLimitError(GatewayError):
    """GitHub abuse detection kicked in; the request was not retried."""


class CrawlAbortedError(AuthenticationError):
    """Authentication failed mid-crawl.

    ``records`` holds whatever was collected before the failure so callers
    can still report it.
    """

    def __init__(self, message: str, records: list | None = None):
        super().__init__(message)
        self.records = records or []
