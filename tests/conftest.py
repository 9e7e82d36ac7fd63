"""Shared test fixtures."""

import base64
import logging
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from github import BadCredentialsException, RateLimitExceededException, UnknownObjectException

from action_permissions.config import CrawlerConfig
from action_permissions.crawler.gateway import RequestGateway
from action_permissions.crawler.models import WORKFLOWS_PATH


def not_found():
    return UnknownObjectException(404, {"message": "Not Found"}, {})


def bad_credentials():
    return BadCredentialsException(401, {"message": "Bad credentials"}, {})


def secondary_limit():
    return RateLimitExceededException(
        403,
        {"message": "You have exceeded a secondary rate limit."},
        {"x-ratelimit-remaining": "4000", "retry-after": "60"},
    )


def content_file(path, text):
    """A ContentFile-like object as returned by ``Repository.get_contents``."""
    raw = text.encode("utf-8")
    return SimpleNamespace(
        type="file",
        name=path.rsplit("/", 1)[-1],
        path=path,
        content=base64.b64encode(raw).decode("ascii"),
        encoding="base64",
        decoded_content=raw,
    )


def directory_entry(path, entry_type="file"):
    return SimpleNamespace(type=entry_type, name=path.rsplit("/", 1)[-1], path=path)


def connection(nodes, has_next_page=False, end_cursor=None):
    return {
        "nodes": nodes,
        "pageInfo": {"hasNextPage": has_next_page, "endCursor": end_cursor},
    }


def paged(pages):
    """Turn a list of node lists into GraphQL connections chained by cursor."""
    return [
        connection(nodes, has_next_page=i < len(pages) - 1, end_cursor=f"cursor-{i + 1}")
        for i, nodes in enumerate(pages)
    ]


def repo_node(name, owner, archived=False):
    return {"name": name, "isArchived": archived, "owner": {"login": owner}}


def make_github(repos=None, accounts=None, enterprises=None, owners=None):
    """Build a fake PyGithub client.

    ``repos`` maps ``owner/name`` to ``{workflow path: yaml text}``, or to an
    exception raised on any content request. ``accounts`` maps logins to the
    REST account type. ``enterprises`` and ``owners`` map a slug/login to a
    list of GraphQL pages (lists of nodes).
    """
    repos = repos or {}
    accounts = accounts or {}
    enterprises = enterprises or {}
    owners = owners or {}
    github = MagicMock()

    def get_repo(full_name, lazy=False):
        files = repos.get(full_name)
        repository = MagicMock()

        def get_contents(path):
            if isinstance(files, Exception):
                raise files
            if files is None:
                raise not_found()
            if path == WORKFLOWS_PATH:
                if not files:
                    raise not_found()
                return [directory_entry(p) for p in files]
            if path not in files:
                raise not_found()
            if isinstance(files[path], Exception):
                raise files[path]
            return content_file(path, files[path])

        repository.get_contents.side_effect = get_contents
        return repository

    def get_user(login):
        if login not in accounts:
            raise not_found()
        if isinstance(accounts[login], Exception):
            raise accounts[login]
        return SimpleNamespace(login=login, type=accounts[login])

    def graphql_query(query, variables):
        cursor = variables.get("cursor")
        index = int(cursor.split("-")[1]) if cursor else 0

        if "enterprise" in variables:
            slug = variables["enterprise"]
            if isinstance(enterprises.get(slug), Exception):
                raise enterprises[slug]
            if slug not in enterprises:
                return {}, {"data": {"enterprise": None}}
            return {}, {"data": {"enterprise": {"organizations": paged(enterprises[slug])[index]}}}

        login = variables["owner"]
        kind = "organization" if "organization(login" in query else "user"
        if isinstance(owners.get(login), Exception):
            raise owners[login]
        if login not in owners:
            return {}, {"data": {kind: None}}
        return {}, {"data": {kind: {"repositories": paged(owners[login])[index]}}}

    github.get_repo.side_effect = get_repo
    github.get_user.side_effect = get_user
    github.requester.graphql_query.side_effect = graphql_query
    return github


@pytest.fixture
def sleeps():
    """Collects the durations passed to an injected sleep function."""
    return []


@pytest.fixture
def logger():
    return logging.getLogger("crawl-tests")


@pytest.fixture
def config():
    return CrawlerConfig(token="ghp_test", repo_delay=2.0, search_page_delay=3.0)


@pytest.fixture
def gateway_for(sleeps, logger):
    def build(github):
        return RequestGateway(github, logger=logger, sleep=sleeps.append, clock=lambda: 1000.0)
    return build


@pytest.fixture
def sample_workflow():
    return """
name: CI
on: [push]
permissions:
  contents: read
jobs:
  build:
    runs-on: ubuntu-latest
    permissions:
      packages: write
    steps:
      - uses: actions/checkout@v4
"""
