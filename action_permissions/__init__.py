"""Report GitHub Actions workflow permissions across enterprises, owners and repositories."""

__version__ = "1.0.0"
