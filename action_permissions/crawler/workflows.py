"""Resolve the ``permissions`` declared by a repository's workflow files."""

import logging
import time
from typing import Callable

import yaml
from github import Github

from ..extractors.nested_key import search
from .errors import NotAccessibleError
from .gateway import RequestGateway
from .models import WORKFLOWS_PATH, WorkflowPermissionRecord

PERMISSIONS_KEY = "permissions"
WORKFLOW_EXTENSIONS = (".yml", ".yaml")

# Code search needs a content term; nearly every workflow mentions the token
SEARCH_MARKER = "GITHUB_TOKEN in:file path:.github/workflows extension:yml language:yaml"
SEARCH_PAGE_DELAY = 3.0
SEARCH_PAGE_SIZE = 100


def sort_records(records: list[WorkflowPermissionRecord]) -> list[WorkflowPermissionRecord]:
    """Stable sort by workflow path, ignoring case."""
    return sorted(records, key=lambda record: record.workflow_path.upper())


def parse_permissions(content: str) -> list:
    """Parse workflow YAML and collect every ``permissions`` value."""
    return search(yaml.safe_load(content), PERMISSIONS_KEY)


class WorkflowReader:
    """Fetches a single workflow file and turns it into a record."""

    def __init__(
        self,
        github: Github,
        gateway: RequestGateway,
        logger: logging.Logger | None = None,
    ):
        self.github = github
        self.gateway = gateway
        self.logger = logger or logging.getLogger(__name__)

    def read(self, owner: str, repo: str, path: str) -> WorkflowPermissionRecord | None:
        """Return the record for ``path``, or None when it cannot be read or parsed."""
        repository = self.github.get_repo(f"{owner}/{repo}", lazy=True)
        try:
            content_file = self.gateway.execute(
                repository.get_contents,
                path,
                description=f"GET /repos/{owner}/{repo}/contents/{path}",
            )
        except NotAccessibleError:
            self.logger.warning("%s/%s: workflow %s is no longer accessible", owner, repo, path)
            return None

        if isinstance(content_file, list) or not content_file.content:
            self.logger.warning("%s/%s: skipping %s with no file content", owner, repo, path)
            return None
        if content_file.encoding != "base64":
            self.logger.warning(
                "%s/%s: skipping %s with unsupported encoding %s",
                owner, repo, path, content_file.encoding,
            )
            return None

        try:
            text = content_file.decoded_content.decode("utf-8")
            permissions = parse_permissions(text)
        except (UnicodeDecodeError, ValueError, RecursionError, yaml.YAMLError) as e:
            self.logger.warning("%s/%s: skipping unparsable workflow %s: %s", owner, repo, path, e)
            return None

        return WorkflowPermissionRecord(
            owner=owner,
            repo=repo,
            workflow_path=path,
            permissions=permissions,
        )


class WorkflowPermissionResolver(WorkflowReader):
    """Lists ``.github/workflows`` and reads every workflow in it."""

    def resolve(self, owner: str, repo: str) -> list[WorkflowPermissionRecord]:
        repository = self.github.get_repo(f"{owner}/{repo}", lazy=True)
        try:
            entries = self.gateway.execute(
                repository.get_contents,
                WORKFLOWS_PATH,
                description=f"GET /repos/{owner}/{repo}/contents/{WORKFLOWS_PATH}",
            )
        except NotAccessibleError:
            self.logger.debug("%s/%s: no accessible %s directory", owner, repo, WORKFLOWS_PATH)
            return []

        if not isinstance(entries, list):
            self.logger.debug("%s/%s: %s is not a directory", owner, repo, WORKFLOWS_PATH)
            return []

        records = []
        for entry in entries:
            if entry.type != "file" or not entry.name.lower().endswith(WORKFLOW_EXTENSIONS):
                continue
            record = self.read(owner, repo, entry.path)
            if record is not None:
                records.append(record)

        return sort_records(records)


class WorkflowSearch(WorkflowReader):
    """Locates workflows through code search instead of directory listings.

    Search has its own, much tighter rate limit, so pages are requested one
    at a time with ``page_delay`` seconds between them.
    """

    def __init__(
        self,
        github: Github,
        gateway: RequestGateway,
        logger: logging.Logger | None = None,
        page_delay: float = SEARCH_PAGE_DELAY,
        page_size: int = SEARCH_PAGE_SIZE,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(github, gateway, logger)
        self.page_delay = page_delay
        self.page_size = page_size
        self.sleep = sleep

    @staticmethod
    def build_query(owner: str, repo: str | None = None) -> str:
        if repo is not None:
            return f"{SEARCH_MARKER} repo:{owner}/{repo}"
        return f"{SEARCH_MARKER} user:{owner}"

    def resolve(self, owner: str, repo: str | None = None) -> list[WorkflowPermissionRecord]:
        query = self.build_query(owner, repo)
        try:
            hits = self._search(query)
        except NotAccessibleError:
            self.logger.warning(
                "%s cannot be searched either because the resources do not exist "
                "or you do not have permission to view them",
                owner,
            )
            return []

        records = []
        for repo_name, path in hits:
            record = self.read(owner, repo_name, path)
            if record is not None:
                records.append(record)

        return sort_records(records)

    def _search(self, query: str) -> list[tuple[str, str]]:
        results = self.gateway.execute(self.github.search_code, query, description="search code")
        hits: list[tuple[str, str]] = []
        page = 0

        while True:
            if page:
                self.sleep(self.page_delay)
            items = self.gateway.execute(
                results.get_page, page, description=f"GET /search/code page {page + 1}"
            )
            if not items:
                break
            hits.extend((item.repository.name, item.path) for item in items)
            if len(items) < self.page_size:
                break
            page += 1

        self.logger.debug("Code search %r matched %d workflows", query, len(hits))
        return hits
