"""Data models shared by the crawler components."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

WORKFLOWS_PATH = ".github/workflows"


class OwnerKind(str, Enum):
    """Kind of account that owns repositories."""

    ORGANIZATION = "organization"
    USER = "user"

    @classmethod
    def from_account_type(cls, account_type: str) -> "OwnerKind":
        """Map the REST ``type`` field ("Organization" / "User")."""
        if account_type.lower() == "organization":
            return cls.ORGANIZATION
        return cls.USER


@dataclass(frozen=True)
class RepositoryRef:
    """A repository to inspect for workflows."""
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class WorkflowPermissionRecord:
    """The ``permissions`` values found in one workflow file."""
    owner: str
    repo: str
    workflow_path: str
    permissions: list[Any] = field(default_factory=list)

    @property
    def url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}/blob/HEAD/{self.workflow_path}"

    def to_dict(self) -> dict:
        """Convert the record to the report's JSON shape."""
        return {
            "owner": self.owner,
            "repo": self.repo,
            "workflow": self.workflow_path,
            "permissions": self.permissions,
        }


@dataclass(frozen=True)
class PageCursor:
    """Continuation state returned with one GraphQL page."""
    end_cursor: str | None
    has_next_page: bool

    @classmethod
    def from_page_info(cls, page_info: dict) -> "PageCursor":
        return cls(
            end_cursor=page_info.get("endCursor"),
            has_next_page=bool(page_info.get("hasNextPage")),
        )


@dataclass(frozen=True)
class CrawlScope:
    """What to crawl: an enterprise, an owner, or a single repository.

    Exactly one of the three shapes is allowed::

        CrawlScope(enterprise="acme")
        CrawlScope(owner="octo-org")
        CrawlScope(owner="octo-org", repo="hello-world")
    """
    enterprise: str | None = None
    owner: str | None = None
    repo: str | None = None

    def __post_init__(self):
        if self.enterprise and (self.owner or self.repo):
            raise ValueError("can only use one of: enterprise, owner, repository")
        if self.repo and not self.owner:
            raise ValueError("a repository scope needs an owner")
        if not (self.enterprise or self.owner):
            raise ValueError("no scope provided")

    @classmethod
    def from_options(
        cls,
        enterprise: str | None = None,
        owner: str | None = None,
        repository: str | None = None,
    ) -> "CrawlScope":
        """Build a scope from the CLI options, ``repository`` being ``owner/repo``."""
        given = [opt for opt in (enterprise, owner, repository) if opt]
        if not given:
            raise ValueError("no options provided")
        if len(given) > 1:
            raise ValueError("can only use one of: enterprise, owner, repository")

        if repository:
            repo_owner, _, repo = repository.partition("/")
            if not repo_owner or not repo or "/" in repo:
                raise ValueError(f"repository must look like owner/repo, got {repository!r}")
            return cls(owner=repo_owner, repo=repo)

        return cls(enterprise=enterprise, owner=owner)

    @property
    def mode(self) -> str:
        if self.enterprise:
            return "enterprise"
        if self.repo:
            return "repository"
        return "owner"

    @property
    def label(self) -> str:
        if self.enterprise:
            return self.enterprise
        if self.repo:
            return f"{self.owner}/{self.repo}"
        return self.owner or ""
