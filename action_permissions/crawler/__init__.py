"""GitHub discovery: gateway, enumerators, workflow resolution and orchestration."""

from .errors import (
    AuthenticationError,
    CrawlAbortedError,
    GatewayError,
    NotAccessibleError,
    RateLimitError,
    SecondaryRateLimitError,
)
from .models import CrawlScope, OwnerKind, RepositoryRef, WorkflowPermissionRecord
from .orchestrator import Crawler

__all__ = [
    "AuthenticationError",
    "CrawlAbortedError",
    "CrawlScope",
    "Crawler",
    "GatewayError",
    "NotAccessibleError",
    "OwnerKind",
    "RateLimitError",
    "RepositoryRef",
    "SecondaryRateLimitError",
    "WorkflowPermissionRecord",
]
