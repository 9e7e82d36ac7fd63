"""Command line entry point for action-permissions."""

import argparse
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import STRATEGIES, ConfigError, load_config
from .crawler.errors import CrawlAbortedError, GatewayError
from .crawler.models import CrawlScope, WorkflowPermissionRecord
from .crawler.orchestrator import Crawler
from .store.output import OutputGenerator

# Diagnostics go to stderr so stdout carries only the JSON result
console = Console(stderr=True)

EPILOG = """\
examples:
  # all repositories under a GitHub Enterprise Cloud account
  action-permissions -e my-enterprise

  # all repositories of an organization or user
  action-permissions -o my-org

  # a single repository, also written to CSV and markdown
  action-permissions -r octo-org/hello-world --csv perms.csv --md perms.md
"""


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Route log records through rich on stderr."""
    logger = logging.getLogger("action_permissions")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.handlers.clear()
    logger.addHandler(RichHandler(console=console, show_path=False, markup=False))
    return logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="action-permissions",
        description="Report GitHub Actions workflow `permissions` for an enterprise, owner or repository",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    scope = parser.add_argument_group("scope (exactly one)")
    scope.add_argument("--enterprise", "-e", help="GitHub Enterprise Cloud account slug")
    scope.add_argument(
        "--owner", "-o",
        help="GitHub organization or user login",
    )
    scope.add_argument("--repository", "-r", help="Repository name with owner (owner/repo)")

    parser.add_argument("--csv", help="Path to CSV for the output")
    parser.add_argument("--md", help="Path to markdown for the output")
    parser.add_argument("--token", "-t", help="GitHub Personal Access Token (default: $GITHUB_TOKEN)")
    parser.add_argument(
        "--config", "-c",
        help="Path to configuration file (default: config/config.yaml when present)",
    )
    parser.add_argument(
        "--strategy",
        choices=STRATEGIES,
        help="Discover workflows by repository listing (default) or code search",
    )
    parser.add_argument(
        "--delay",
        type=float,
        help="Seconds to wait between repositories",
    )
    parser.add_argument("--verbose", "-V", action="store_true", help="Show debug output")
    parser.add_argument("--version", "-v", action="version", version=f"%(prog)s {__version__}")
    return parser


def write_outputs(
    records: list[WorkflowPermissionRecord],
    csv_path: str | None,
    md_path: str | None,
) -> None:
    generator = OutputGenerator(records)
    if csv_path:
        generator.save_csv(csv_path)
    if md_path:
        generator.save_markdown(md_path)
    # JSON always goes to stdout
    print(generator.to_json())


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = setup_logging(args.verbose)

    try:
        if args.csv == "":
            raise ConfigError("please provide a valid path for the CSV output")
        if args.md == "":
            raise ConfigError("please provide a valid path for the markdown output")

        scope = CrawlScope.from_options(args.enterprise, args.owner, args.repository)
        config = load_config(
            args.config,
            overrides={
                "token": args.token,
                "strategy": args.strategy,
                "repo_delay": args.delay,
            },
        )
    except (ConfigError, ValueError) as e:
        console.print(f"\n  [red]ERROR: {e}[/red]\n")
        parser.print_help(sys.stderr)
        return 1

    console.print(
        f"\nGathering GitHub Action [reverse]permissions[/reverse] for [blue]{scope.label}[/blue]"
    )
    console.print("[dim](this could take a while...)[/dim]\n")

    try:
        records = Crawler(scope, config, logger=logger).run()
    except CrawlAbortedError as e:
        console.print(f"\n  [red]ERROR: {e.message}[/red]")
        if e.records:
            write_outputs(e.records, args.csv, args.md)
        return 1
    except GatewayError as e:
        console.print(f"\n  [red]ERROR: {e.message}[/red]")
        return 1

    console.print(f"[green]✓[/green] Found {len(records)} workflows")
    write_outputs(records, args.csv, args.md)
    return 0


if __name__ == "__main__":
    sys.exit(main())
