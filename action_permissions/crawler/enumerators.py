"""Paginated GraphQL listings of enterprise organizations and owner repositories."""

import logging
from typing import Any, Callable, Iterator

from .errors import NotAccessibleError
from .gateway import RequestGateway
from .models import OwnerKind, PageCursor, RepositoryRef

ORG_PAGE_SIZE = 25
REPO_PAGE_SIZE = 100

ORG_QUERY = """
query ($enterprise: String!, $cursor: String = null) {
  enterprise(slug: $enterprise) {
    organizations(first: %d, after: $cursor) {
      nodes {
        login
      }
      pageInfo {
        hasNextPage
        endCursor
      }
    }
  }
}
""" % ORG_PAGE_SIZE

REPO_QUERY = """
query ($owner: String!, $cursor: String = null) {
  %s(login: $owner) {
    repositories(
      first: %d
      after: $cursor
      ownerAffiliations: OWNER
      isFork: false
      orderBy: {field: PUSHED_AT, direction: DESC}
    ) {
      nodes {
        name
        isArchived
        owner {
          login
        }
      }
      pageInfo {
        hasNextPage
        endCursor
      }
    }
  }
}
"""


def paginate(fetch_page: Callable[[str | None], dict]) -> Iterator[list[dict]]:
    """Yield the ``nodes`` of each page until ``hasNextPage`` is false.

    ``fetch_page`` receives the previous page's end cursor (``None`` for the
    first page) and returns a connection object ``{nodes, pageInfo}``.
    """
    cursor = PageCursor(end_cursor=None, has_next_page=True)
    while cursor.has_next_page:
        connection = fetch_page(cursor.end_cursor)
        yield connection.get("nodes") or []
        cursor = PageCursor.from_page_info(connection.get("pageInfo") or {})


class OrganizationEnumerator:
    """Lists the organizations belonging to an enterprise account."""

    def __init__(self, gateway: RequestGateway, logger: logging.Logger | None = None):
        self.gateway = gateway
        self.logger = logger or logging.getLogger(__name__)

    def enumerate(self, enterprise: str) -> list[str]:
        organizations: list[str] = []
        for nodes in paginate(lambda cursor: self._fetch_page(enterprise, cursor)):
            organizations.extend(node["login"] for node in nodes if node)

        self.logger.debug("Enterprise %s has %d organizations", enterprise, len(organizations))
        return organizations

    def _fetch_page(self, enterprise: str, cursor: str | None) -> dict[str, Any]:
        data = self.gateway.graphql(
            ORG_QUERY,
            {"enterprise": enterprise, "cursor": cursor},
            description=f"organizations of enterprise {enterprise}",
        )
        account = data.get("enterprise")
        if account is None:
            raise NotAccessibleError(f"enterprise {enterprise} not found or not visible")
        return account["organizations"]


class RepositoryEnumerator:
    """Lists an owner's own, non-fork, non-archived repositories.

    Results keep GitHub's most-recently-pushed-first order. Nodes reporting
    an owner other than the requested login are dropped, which guards
    against transferred or renamed repositories showing up in a listing.
    """

    def __init__(self, gateway: RequestGateway, logger: logging.Logger | None = None):
        self.gateway = gateway
        self.logger = logger or logging.getLogger(__name__)

    def enumerate(self, owner: str, owner_kind: OwnerKind) -> list[RepositoryRef]:
        query = REPO_QUERY % (owner_kind.value, REPO_PAGE_SIZE)
        repositories: list[RepositoryRef] = []
        skipped = 0

        for nodes in paginate(lambda cursor: self._fetch_page(query, owner, owner_kind, cursor)):
            for node in nodes:
                if not node:
                    continue
                if node.get("isArchived"):
                    skipped += 1
                    continue
                if (node.get("owner") or {}).get("login") != owner:
                    skipped += 1
                    continue
                repositories.append(RepositoryRef(owner=owner, name=node["name"]))

        self.logger.debug(
            "Owner %s has %d repositories (%d archived or foreign skipped)",
            owner, len(repositories), skipped,
        )
        return repositories

    def _fetch_page(
        self,
        query: str,
        owner: str,
        owner_kind: OwnerKind,
        cursor: str | None,
    ) -> dict[str, Any]:
        data = self.gateway.graphql(
            query,
            {"owner": owner, "cursor": cursor},
            description=f"repositories of {owner_kind.value} {owner}",
        )
        account = data.get(owner_kind.value)
        if account is None:
            raise NotAccessibleError(f"{owner_kind.value} {owner} not found or not visible")
        return account["repositories"]
