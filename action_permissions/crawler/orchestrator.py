"""Crawl an enterprise, an owner, or one repository for workflow permissions."""

import logging
import time
from typing import Callable

from github import Github

from ..config import CrawlerConfig
from .enumerators import OrganizationEnumerator, RepositoryEnumerator
from .errors import AuthenticationError, CrawlAbortedError, NotAccessibleError
from .gateway import RequestGateway, create_client
from .models import CrawlScope, OwnerKind, RepositoryRef, WorkflowPermissionRecord
from .workflows import WorkflowPermissionResolver, WorkflowSearch, sort_records


class Crawler:
    """Drives discovery for one :class:`CrawlScope`.

    Repositories are resolved one at a time with ``config.repo_delay``
    seconds between them. A failure on one organization or repository is
    logged and skipped; an authentication failure aborts the crawl with
    :class:`CrawlAbortedError` holding the records gathered so far.
    """

    def __init__(
        self,
        scope: CrawlScope,
        config: CrawlerConfig,
        github: Github | None = None,
        gateway: RequestGateway | None = None,
        logger: logging.Logger | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.scope = scope
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.sleep = sleep
        self.github = github or create_client(
            config.token,
            base_url=config.base_url,
            timeout=config.timeout,
        )
        self.gateway = gateway or RequestGateway(self.github, logger=self.logger, sleep=sleep)

        self.organizations = OrganizationEnumerator(self.gateway, self.logger)
        self.repositories = RepositoryEnumerator(self.gateway, self.logger)
        self.resolver = WorkflowPermissionResolver(self.github, self.gateway, self.logger)
        self.search = WorkflowSearch(
            self.github,
            self.gateway,
            self.logger,
            page_delay=config.search_page_delay,
            sleep=sleep,
        )
        self.records: list[WorkflowPermissionRecord] = []

    def run(self) -> list[WorkflowPermissionRecord]:
        """Run the crawl and return records sorted by workflow path."""
        self.records = []
        self.logger.debug(
            "Gathering GitHub Action permissions for %s (%s mode)",
            self.scope.label, self.scope.mode,
        )

        try:
            if self.config.strategy == "search" and self.scope.mode != "enterprise":
                self._run_search()
            else:
                self._resolve_all(self.discover_repositories())
        except AuthenticationError as e:
            raise CrawlAbortedError(e.message, sort_records(self.records)) from e

        return sort_records(self.records)

    def discover_repositories(self) -> list[RepositoryRef]:
        """List the repositories the scope covers, in crawl order."""
        if self.scope.mode == "enterprise":
            return self._enterprise_repositories(self.scope.enterprise)
        if self.scope.mode == "owner":
            return self._owner_repositories(self.scope.owner)
        return [RepositoryRef(owner=self.scope.owner, name=self.scope.repo)]

    def owner_kind(self, login: str) -> OwnerKind:
        """Look up whether ``login`` is an organization or a user."""
        account = self.gateway.execute(
            self.github.get_user, login, description=f"GET /users/{login}"
        )
        return OwnerKind.from_account_type(account.type)

    def _enterprise_repositories(self, enterprise: str) -> list[RepositoryRef]:
        try:
            organizations = self.organizations.enumerate(enterprise)
        except NotAccessibleError as e:
            self.logger.warning("%s", e.message)
            return []
        except AuthenticationError:
            raise
        except Exception as e:
            self.logger.warning("Could not list organizations of %s: %s", enterprise, e)
            return []

        self.logger.info("Searching in %d organizations", len(organizations))
        repositories: list[RepositoryRef] = []
        for org in organizations:
            try:
                found = self.repositories.enumerate(org, OwnerKind.ORGANIZATION)
            except AuthenticationError:
                raise
            except Exception as e:
                self.logger.warning("Skipping organization %s: %s", org, e)
                continue
            self.logger.info("Found %d repositories in %s", len(found), org)
            repositories.extend(found)

        return repositories

    def _owner_repositories(self, owner: str) -> list[RepositoryRef]:
        try:
            kind = self.owner_kind(owner)
            repositories = self.repositories.enumerate(owner, kind)
        except NotAccessibleError:
            self.logger.warning(
                "%s cannot be searched either because the resources do not exist "
                "or you do not have permission to view them",
                owner,
            )
            return []
        except AuthenticationError:
            raise
        except Exception as e:
            self.logger.warning("Could not list repositories of %s: %s", owner, e)
            return []

        self.logger.info("Found %d repositories for %s %s", len(repositories), kind.value, owner)
        return repositories

    def _resolve_all(self, repositories: list[RepositoryRef]) -> None:
        for index, ref in enumerate(repositories):
            if index:
                self.sleep(self.config.repo_delay)
            self.logger.info("Inspecting workflows of %s", ref.full_name)
            try:
                found = self.resolver.resolve(ref.owner, ref.name)
            except AuthenticationError:
                raise
            except Exception as e:
                self.logger.warning("Skipping %s: %s", ref.full_name, e)
                continue
            self.records.extend(found)

    def _run_search(self) -> None:
        try:
            found = self.search.resolve(self.scope.owner, self.scope.repo)
        except AuthenticationError:
            raise
        except Exception as e:
            self.logger.warning("Code search for %s failed: %s", self.scope.label, e)
            return
        self.records.extend(found)
