"""
Legacy document import command.
"""
import json
from pathlib import Path
from typing import Any, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from app.core.config import settings
from app.core.database import get_session_context, init_db
from app.core.time_utils import validate_timezone
from app.services.legacy_import_service import LegacyImportService

console = Console()


def load_documents(path: Path) -> List[Any]:
    """
    Read an export as a JSON array or as one JSON document per line
    (the default output of ``mongoexport``).
    """
    text = path.read_text(encoding="utf-8").strip()
    if not text:
        return []
    if text.startswith("["):
        documents = json.loads(text)
        if not isinstance(documents, list):
            raise ValueError("Expected a JSON array of documents")
        return documents
    return [json.loads(line) for line in text.splitlines() if line.strip()]


def import_legacy(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Exported entries (JSON array or JSON lines)"),
    timezone: Optional[str] = typer.Option(None, "--timezone", "-z", help="Zone used when a document has no date field"),
    show_errors: bool = typer.Option(False, "--show-errors", help="Print every skipped document"),
):
    """Import entries exported from the legacy document store."""
    try:
        documents = load_documents(file)
    except (ValueError, json.JSONDecodeError) as exc:
        console.print(f"[red]Could not read {file}: {escape(str(exc))}[/red]")
        raise typer.Exit(code=1)

    tz_name = timezone or settings.local_timezone
    if not validate_timezone(tz_name):
        console.print(f"[red]Unknown timezone '{tz_name}'[/red]")
        raise typer.Exit(code=1)

    init_db()
    with get_session_context() as session:
        result = LegacyImportService(session, tz_name=tz_name).import_documents(documents)

    table = Table(title=f"Import of {file.name}")
    table.add_column("Outcome")
    table.add_column("Count", justify="right")
    table.add_row("Imported", str(result.imported), style="green")
    table.add_row("Already present", str(result.duplicates))
    table.add_row("Skipped (malformed)", str(result.skipped), style="yellow" if result.skipped else None)
    console.print(table)

    if show_errors:
        for error in result.errors:
            console.print(f"[yellow]{escape(error)}[/yellow]")
