"""
Main CLI application using Typer.

Entry point: python -m app.cli
CLI Name: thisday-admin
"""
import typer

from app import __version__ as app_version

app = typer.Typer(
    name="thisday-admin",
    help="ThisDay Admin CLI - maintenance tools for the ThisDay service",
)

@app.command()
def version():
    """Show CLI version information."""
    typer.echo(f"ThisDay CLI version {app_version}")

# Register commands
from app.cli.commands import legacy, recall
app.command("import-legacy")(legacy.import_legacy)
app.command("recall")(recall.recall)
