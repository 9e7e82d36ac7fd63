"""Value extraction from parsed workflow documents."""

from .nested_key import search

__all__ = ["search"]
