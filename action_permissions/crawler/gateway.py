"""Rate-limit aware wrapper around every GitHub call."""

import logging
import time
from typing import Any, Callable

from github import (
    Auth,
    BadCredentialsException,
    Github,
    GithubException,
    RateLimitExceededException,
    UnknownObjectException,
)

from .errors import (
    AuthenticationError,
    GatewayError,
    NotAccessibleError,
    RateLimitError,
    SecondaryRateLimitError,
)

DEFAULT_BASE_URL = "https://api.github.com"
# Fallback wait when a primary limit response carries no reset header
DEFAULT_RESET_WAIT = 60.0


def create_client(
    token: str,
    base_url: str = DEFAULT_BASE_URL,
    timeout: int = 30,
    per_page: int = 100,
) -> Github:
    """Build a PyGithub client whose own retry logic is disabled."""
    return Github(
        auth=Auth.Token(token),
        base_url=base_url,
        timeout=timeout,
        per_page=per_page,
        retry=None,
    )


class RequestGateway:
    """Runs GitHub calls and applies the rate-limit policy.

    A primary rate limit (quota exhausted, known reset time) is waited out
    and the call retried once. A secondary limit (abuse detection) is
    logged and raised without retrying. Authentication and visibility
    failures are translated to :mod:`.errors` exceptions.
    """

    def __init__(
        self,
        github: Github,
        logger: logging.Logger | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ):
        self.github = github
        self.logger = logger or logging.getLogger(__name__)
        self.sleep = sleep
        self.clock = clock
        self.total_requests = 0
        self.total_waits = 0

    def execute(self, call: Callable[..., Any], *args, description: str = "", **kwargs) -> Any:
        """Invoke ``call(*args, **kwargs)`` under the rate-limit policy."""
        label = description or getattr(call, "__name__", "request")
        waited = False

        while True:
            self.total_requests += 1
            try:
                return call(*args, **kwargs)
            except GithubException as e:
                if not self._is_rate_limit(e):
                    raise self._translate(e, label) from e

                if not self._is_primary_limit(e):
                    self.logger.warning("Abuse detected for request %s", label)
                    raise SecondaryRateLimitError(
                        f"secondary rate limit hit for {label}", e.status
                    ) from e

                self.logger.warning("Request quota exhausted for request %s", label)
                if waited:
                    raise RateLimitError(
                        f"rate limit still exhausted for {label} after waiting", e.status
                    ) from e

                wait_seconds = self._seconds_until_reset(e)
                self.logger.warning("Retrying after %.0f seconds!", wait_seconds)
                self.sleep(wait_seconds)
                self.total_waits += 1
                waited = True

    def graphql(self, query: str, variables: dict[str, Any], description: str = "graphql") -> dict:
        """Run a GraphQL query and return its ``data`` object."""
        _, payload = self.execute(
            self.github.requester.graphql_query,
            query,
            variables,
            description=description,
        )
        return payload.get("data") or {}

    def _is_rate_limit(self, error: GithubException) -> bool:
        if isinstance(error, RateLimitExceededException):
            return True
        if error.status == 429:
            return True
        if error.status == 403 and "rate limit" in _message(error).lower():
            return True
        # GraphQL reports exhausted quota as a 200 with a RATE_LIMITED error
        return any(err.get("type") == "RATE_LIMITED" for err in _graphql_errors(error))

    def _is_primary_limit(self, error: GithubException) -> bool:
        headers = _headers(error)
        if headers.get("x-ratelimit-remaining") == "0":
            return True
        return "secondary" not in _message(error).lower() and "retry-after" not in headers

    def _seconds_until_reset(self, error: GithubException) -> float:
        reset = _headers(error).get("x-ratelimit-reset")
        if not reset:
            return DEFAULT_RESET_WAIT
        try:
            return max(float(reset) - self.clock() + 1, 1.0)
        except ValueError:
            return DEFAULT_RESET_WAIT

    def _translate(self, error: GithubException, label: str) -> GatewayError:
        if isinstance(error, BadCredentialsException) or error.status == 401:
            return AuthenticationError("Bad credentials", error.status)
        if isinstance(error, UnknownObjectException) or error.status in (403, 404):
            return NotAccessibleError(
                f"{label}: resource does not exist or you do not have permission to view it",
                error.status,
            )
        if any(err.get("type") == "NOT_FOUND" for err in _graphql_errors(error)):
            return NotAccessibleError(f"{label}: {_message(error)}", error.status)
        return GatewayError(f"{label} failed: {_message(error)}", error.status)


def _headers(error: GithubException) -> dict[str, str]:
    return {k.lower(): str(v) for k, v in (error.headers or {}).items()}


def _message(error: GithubException) -> str:
    data = error.data
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return str(getattr(error, "message", None) or data or "")


def _graphql_errors(error: GithubException) -> list[dict]:
    data = error.data
    if isinstance(data, dict) and isinstance(data.get("errors"), list):
        return [err for err in data["errors"] if isinstance(err, dict)]
    return []
