"""Report output generation."""

from .output import OutputGenerator

__all__ = ["OutputGenerator"]
