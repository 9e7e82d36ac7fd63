"""Tests for the rate-limit aware request gateway."""

from unittest.mock import MagicMock

import pytest
from github import GithubException, RateLimitExceededException

from action_permissions.crawler.errors import (
    AuthenticationError,
    GatewayError,
    NotAccessibleError,
    RateLimitError,
    SecondaryRateLimitError,
)
from conftest import bad_credentials, not_found


def primary_limit(reset="1060"):
    return RateLimitExceededException(
        403,
        {"message": "API rate limit exceeded for user ID 1."},
        {"x-ratelimit-remaining": "0", "x-ratelimit-reset": reset},
    )


def secondary_limit():
    return RateLimitExceededException(
        403,
        {"message": "You have exceeded a secondary rate limit."},
        {"x-ratelimit-remaining": "4000", "retry-after": "60"},
    )


def test_execute_returns_result(gateway_for, sleeps):
    gateway = gateway_for(MagicMock())
    call = MagicMock(return_value="ok")

    assert gateway.execute(call, "a", key="b") == "ok"
    call.assert_called_once_with("a", key="b")
    assert sleeps == []


def test_primary_limit_waits_for_reset_and_retries_once(gateway_for, sleeps):
    gateway = gateway_for(MagicMock())
    call = MagicMock(side_effect=[primary_limit(), "ok"])

    assert gateway.execute(call) == "ok"
    assert call.call_count == 2
    assert sleeps == [61.0]


def test_second_primary_limit_is_not_retried(gateway_for, sleeps):
    gateway = gateway_for(MagicMock())
    call = MagicMock(side_effect=[primary_limit(), primary_limit(), "never"])

    with pytest.raises(RateLimitError):
        gateway.execute(call)
    assert call.call_count == 2
    assert len(sleeps) == 1


def test_primary_limit_with_past_reset_waits_at_least_one_second(gateway_for, sleeps):
    gateway = gateway_for(MagicMock())
    call = MagicMock(side_effect=[primary_limit(reset="10"), "ok"])

    gateway.execute(call)
    assert sleeps == [1.0]


def test_secondary_limit_is_logged_and_not_retried(gateway_for, sleeps, caplog):
    gateway = gateway_for(MagicMock())
    call = MagicMock(side_effect=[secondary_limit(), "never"])

    with pytest.raises(SecondaryRateLimitError):
        gateway.execute(call, description="GET /repos/o/r")
    assert call.call_count == 1
    assert sleeps == []
    assert "Abuse detected for request GET /repos/o/r" in caplog.text


def test_bad_credentials_raise_authentication_error(gateway_for):
    gateway = gateway_for(MagicMock())
    with pytest.raises(AuthenticationError):
        gateway.execute(MagicMock(side_effect=bad_credentials()))


def test_not_found_raises_not_accessible(gateway_for):
    gateway = gateway_for(MagicMock())
    with pytest.raises(NotAccessibleError) as excinfo:
        gateway.execute(MagicMock(side_effect=not_found()))
    assert excinfo.value.status == 404


def test_forbidden_without_rate_limit_is_not_accessible(gateway_for):
    gateway = gateway_for(MagicMock())
    error = GithubException(403, {"message": "Resource not accessible by integration"}, {})
    with pytest.raises(NotAccessibleError):
        gateway.execute(MagicMock(side_effect=error))


def test_other_errors_raise_gateway_error(gateway_for):
    gateway = gateway_for(MagicMock())
    error = GithubException(502, {"message": "Bad Gateway"}, {})
    with pytest.raises(GatewayError) as excinfo:
        gateway.execute(MagicMock(side_effect=error))
    assert excinfo.value.status == 502
    assert not isinstance(excinfo.value, NotAccessibleError)


def test_graphql_returns_data_object(gateway_for):
    github = MagicMock()
    github.requester.graphql_query.return_value = ({}, {"data": {"viewer": {"login": "me"}}})
    gateway = gateway_for(github)

    assert gateway.graphql("query { viewer { login } }", {}) == {"viewer": {"login": "me"}}


def test_graphql_not_found_error_is_not_accessible(gateway_for):
    github = MagicMock()
    github.requester.graphql_query.side_effect = GithubException(
        400, {"errors": [{"type": "NOT_FOUND", "message": "Could not resolve"}]}, {}
    )
    gateway = gateway_for(github)

    with pytest.raises(NotAccessibleError):
        gateway.graphql("query", {})


def test_graphql_rate_limited_is_waited_out(gateway_for, sleeps):
    github = MagicMock()
    github.requester.graphql_query.side_effect = [
        GithubException(
            400,
            {"errors": [{"type": "RATE_LIMITED", "message": "API rate limit exceeded"}]},
            {"x-ratelimit-remaining": "0", "x-ratelimit-reset": "1030"},
        ),
        ({}, {"data": {"ok": True}}),
    ]
    gateway = gateway_for(github)

    assert gateway.graphql("query", {}) == {"ok": True}
    assert sleeps == [31.0]
