"""Crawler configuration from a YAML file, the environment and CLI flags."""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_PATH = Path("config/config.yaml")
STRATEGIES = ("listing", "search")


class ConfigError(Exception):
    """Configuration is missing or invalid."""


@dataclass
class CrawlerConfig:
    """Settings for a crawl."""
    token: str = ""
    base_url: str = "https://api.github.com"
    repo_delay: float = 2.0  # seconds between repositories
    search_page_delay: float = 3.0  # seconds between code search pages
    strategy: str = "listing"  # listing | search
    timeout: int = 30

    def __post_init__(self):
        if self.strategy not in STRATEGIES:
            raise ConfigError(
                f"unknown strategy {self.strategy!r}, expected one of: {', '.join(STRATEGIES)}"
            )
        self.repo_delay = float(self.repo_delay)
        self.search_page_delay = float(self.search_page_delay)
        self.timeout = int(self.timeout)
        if self.repo_delay < 0 or self.search_page_delay < 0:
            raise ConfigError("delays must not be negative")


def load_config_file(config_path: Path | str | None = None) -> dict:
    """Load the ``github`` section of a YAML config file.

    Without an explicit path the default location is used when present;
    an explicit path that does not exist is an error.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
        if not config_path.exists():
            return {}
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        data = yaml.safe_load(config_path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    section = data.get("github") or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'github' in {config_path} must be a mapping")
    return section


def load_config(
    config_path: Path | str | None = None,
    overrides: dict[str, Any] | None = None,
    environ: dict[str, str] | None = None,
) -> CrawlerConfig:
    """Merge defaults, environment, config file and CLI overrides (in that order)."""
    environ = os.environ if environ is None else environ
    known = {f.name for f in fields(CrawlerConfig)}

    values: dict[str, Any] = {}
    if environ.get("GITHUB_TOKEN"):
        values["token"] = environ["GITHUB_TOKEN"]

    for key, value in load_config_file(config_path).items():
        if key not in known:
            raise ConfigError(f"Unknown config key: github.{key}")
        if value is not None:
            values[key] = value

    for key, value in (overrides or {}).items():
        if value is not None:
            values[key] = value

    try:
        config = CrawlerConfig(**values)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    if not config.token:
        raise ConfigError("GitHub Personal Access Token (PAT) not provided")
    return config
