"""
Recall debugging command: prints what the app would show for a day.
"""
from datetime import date
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from app.cli.commands.legacy import load_documents
from app.core.config import settings
from app.core.exceptions import InvalidCalendarDateError
from app.schemas.entry import EntryRecord
from app.services.entry_read_service import EntryReadService
from app.services.entry_store import InMemoryEntryStore, SQLEntryStore

console = Console()


def _entries_table(title: str, records: List[EntryRecord]) -> Table:
    table = Table(title=title)
    table.add_column("Date")
    table.add_column("Entry")
    table.add_column("Media", justify="right")
    table.add_column("Caption")
    for record in records:
        table.add_row(
            record.local_date.isoformat(),
            record.id,
            str(len(record.usable_asset_ids)),
            (record.caption or "")[:60],
        )
    return table


def _print_views(service: EntryReadService, user_id: str, target: date) -> None:
    args = (user_id, target.year, target.month, target.day)
    console.print(_entries_table("Entries of the day", service.get_entries_for_day(*args)))
    summary = service.get_today_summary(*args)
    console.print(f"Summary entry: {summary.id if summary else '-'}")
    console.print(_entries_table("Same day, earlier months", service.get_same_day_previous_months(*args)))
    console.print(_entries_table("Same day, earlier years", service.get_same_day_previous_years(*args)))


def recall(
    user_id: str = typer.Argument(..., help="Owner id (token subject)"),
    day: str = typer.Argument(..., help="Reference date, YYYY-MM-DD"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", exists=True, dir_okay=False, help="Read a legacy export instead of the database"),
):
    """Print the recall views for one user and date."""
    try:
        target = date.fromisoformat(day)
    except ValueError:
        console.print(f"[red]Invalid date '{day}', expected YYYY-MM-DD[/red]")
        raise typer.Exit(code=1)

    tz_name = settings.local_timezone
    try:
        if file is not None:
            store = InMemoryEntryStore(load_documents(file), tz_name=tz_name)
            _print_views(EntryReadService(store, tz_name), user_id, target)
        else:
            from app.core.database import get_session_context
            with get_session_context() as session:
                store = SQLEntryStore(session, tz_name=tz_name)
                _print_views(EntryReadService(store, tz_name), user_id, target)
    except InvalidCalendarDateError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
