"""
Saved clarification progress commands for ClariValue CLI
"""

import click
from rich.table import Table

from clarivalue.domain.exceptions import ProgressStoreError
from clarivalue.infrastructure.database import SqlProgressStore

from ..utils import console, error_exit


def _open_store(ctx) -> SqlProgressStore:
    settings = ctx.obj["settings"]
    try:
        return SqlProgressStore(settings.database.url, echo=settings.database.echo)
    except ProgressStoreError as e:
        error_exit(str(e))


@click.group()
@click.pass_context
def progress(ctx):
    """Saved clarification answers

    Examples:
        clarivalue progress show 3f2a...
        clarivalue progress clear 3f2a...
    """
    pass


@progress.command("show")
@click.argument("session_id")
@click.pass_context
def show(ctx, session_id):
    """Show the answers saved for a session"""
    store = _open_store(ctx)
    try:
        answers = store.load_progress(session_id)
        updated = store.last_updated(session_id)
    except ProgressStoreError as e:
        error_exit(str(e))

    if not answers:
        click.echo(f"No saved answers for session {session_id}")
        return

    table = Table(title=f"Session {session_id}")
    table.add_column("Question", style="cyan")
    table.add_column("Answer")
    for key, text in sorted(answers.items()):
        table.add_row(key, text)
    console.print(table)
    if updated:
        console.print(f"[dim]Last updated {updated.isoformat()}[/dim]")


@progress.command("clear")
@click.argument("session_id")
@click.confirmation_option(prompt="Delete the saved answers?")
@click.pass_context
def clear(ctx, session_id):
    """Delete the answers saved for a session"""
    store = _open_store(ctx)
    try:
        store.clear_progress(session_id)
    except ProgressStoreError as e:
        error_exit(str(e))
    click.echo(f"Cleared saved answers for session {session_id}")
