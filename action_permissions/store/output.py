"""Output generators for crawl results."""

import csv
import io
import json
from pathlib import Path
from typing import Any

from rich.console import Console

from ..crawler.models import WorkflowPermissionRecord

console = Console(stderr=True)

COLUMNS = ["owner", "repo", "workflow", "permissions"]


def flatten_permissions(permissions: list[Any]) -> str:
    """Render a permissions list as a single table cell."""
    parts = []
    for value in permissions:
        if isinstance(value, str):
            parts.append(value)
        else:
            parts.append(json.dumps(value, default=str))
    return ", ".join(parts)


class OutputGenerator:
    """Render workflow permission records as JSON, CSV or Markdown."""

    def __init__(self, records: list[WorkflowPermissionRecord]):
        self.records = records

    def to_json(self) -> str:
        """JSON array with the full permissions values."""
        return json.dumps([r.to_dict() for r in self.records], indent=2, default=str)

    def to_csv(self) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(COLUMNS)
        for record in self.records:
            writer.writerow([
                record.owner,
                record.repo,
                record.workflow_path,
                flatten_permissions(record.permissions),
            ])
        return buffer.getvalue()

    def to_markdown(self) -> str:
        """Markdown table linking every workflow to its file on GitHub."""
        lines = [
            " | ".join(COLUMNS),
            " | ".join(["-----"] * len(COLUMNS)),
        ]
        for record in self.records:
            permissions = json.dumps(record.permissions, default=str).replace("|", "\\|")
            lines.append(
                f"{record.owner} | {record.repo} | "
                f"[{record.workflow_path}]({record.url}) | {permissions}"
            )
        return "\n".join(lines) + "\n"

    def save_csv(self, path: Path | str) -> Path:
        path = Path(path)
        console.print(f"saving CSV in [blue]{path}[/blue]")
        return self._write(path, self.to_csv())

    def save_markdown(self, path: Path | str) -> Path:
        path = Path(path)
        console.print(f"saving markdown in [blue]{path}[/blue]")
        return self._write(path, self.to_markdown())

    def _write(self, path: Path, content: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        console.print(f"[green]✓[/green] Wrote {len(self.records)} records to {path}")
        return path
