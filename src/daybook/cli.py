"""Daybook CLI - Personal Journal."""

import asyncio
import json
import logging
import sys
from datetime import datetime

import click

from .app import Daybook, create_app
from .core.entries import JournalEntry, Mood

MOOD_CHOICE = click.Choice([m.value for m in Mood])


def _format_time(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000).strftime("%b %d, %Y • %I:%M %p")


def _format_entry_line(entry: JournalEntry) -> str:
    tags = "".join(f" #{t}" for t in entry.tags)
    return f"{entry.id[:8]}  {_format_time(entry.created_at)}  [{entry.mood.label}] {entry.title}{tags}"


def _show_entry(entry: JournalEntry) -> None:
    click.echo(entry.title)
    click.echo(f"{entry.mood.label} · {_format_time(entry.created_at)}")
    if entry.tags:
        click.echo(" ".join(f"#{t}" for t in entry.tags))
    click.echo("")
    click.echo(entry.content)
    if entry.ai_reflection:
        click.echo("\nReflection")
        click.echo(entry.ai_reflection)


def _load_app() -> Daybook:
    try:
        return create_app()
    except ValueError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)


def _run(command) -> None:
    """Run an async command body against a started app; exit 1 on failure."""
    app = _load_app()

    async def runner() -> int:
        async with app:
            return await command(app)

    code = asyncio.run(runner())
    if code:
        sys.exit(code)


def _fail(message: str) -> int:
    click.echo(f"Error: {message}", err=True)
    return 1


def _require_user(app: Daybook) -> bool:
    if app.user is None:
        click.echo("Error: Not signed in. Run 'daybook login' first.", err=True)
        return False
    return True


def _find_entry(app: Daybook, entry_id: str) -> JournalEntry | None:
    """Match a full id or an unambiguous prefix."""
    entry = app.collection.get(entry_id)
    if entry:
        return entry
    matches = [e for e in app.collection.entries if e.id.startswith(entry_id)]
    return matches[0] if len(matches) == 1 else None


@click.group()
@click.version_option()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """Daybook - Personal Journal CLI."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


# ============== Session ==============


@main.command()
@click.option("--email", prompt=True)
@click.option("--password", prompt=True, hide_input=True)
def login(email: str, password: str):
    """Sign in with email and password."""

    async def command(app: Daybook) -> int:
        if not await app.session.login(email, password):
            return _fail(app.session.error)
        await app.session.settle()
        name = app.user.name if app.user else email
        click.echo(f"Signed in as {name}.")
        return 0

    _run(command)


@main.command()
@click.option("--name", prompt="Full name")
@click.option("--email", prompt=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
def signup(name: str, email: str, password: str):
    """Create an account."""

    async def command(app: Daybook) -> int:
        if not await app.session.signup(email, password, name):
            return _fail(app.session.error)
        if app.session.notice:
            click.echo(app.session.notice)
        elif app.user:
            click.echo(f"Signed in as {app.user.name}.")
        return 0

    _run(command)


@main.command()
def logout():
    """Sign out."""

    async def command(app: Daybook) -> int:
        if not await app.session.logout():
            return _fail(app.session.error)
        click.echo("Signed out.")
        return 0

    _run(command)


@main.command()
def whoami():
    """Show the signed-in user."""

    async def command(app: Daybook) -> int:
        if not _require_user(app):
            return 1
        click.echo(f"{app.user.name} <{app.user.email}>")
        return 0

    _run(command)


# ============== Entries ==============


@main.command("list")
@click.option("--search", "query", default="", help="Filter by title or content")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_entries(query: str, as_json: bool):
    """List entries, newest first."""

    async def command(app: Daybook) -> int:
        if not _require_user(app):
            return 1
        if app.collection.error:
            return _fail(app.collection.error)

        app.collection.set_query(query)
        entries = app.collection.visible

        if as_json:
            click.echo(json.dumps([e.to_dict() for e in entries], indent=2, ensure_ascii=False))
            return 0

        if not entries:
            click.echo("No entries found." if query else "No entries yet. Write one with 'daybook new'.")
            return 0

        for entry in entries:
            click.echo(_format_entry_line(entry))
        return 0

    _run(command)


@main.command()
@click.argument("entry_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def show(entry_id: str, as_json: bool):
    """Show one entry."""

    async def command(app: Daybook) -> int:
        if not _require_user(app):
            return 1
        entry = _find_entry(app, entry_id)
        if entry is None:
            return _fail(f"No entry {entry_id}")

        if as_json:
            click.echo(json.dumps(entry.to_dict(), indent=2, ensure_ascii=False))
        else:
            _show_entry(entry)
        return 0

    _run(command)


async def _reflect_and_save(app: Daybook, reflect: bool) -> int:
    """Shared tail of new/edit: optional reflection, then save."""
    editor = app.editor
    if reflect:
        reflection = await editor.generate_reflection()
        if reflection:
            click.echo(f"Reflection: {reflection}\n")

    title = editor.draft.title if editor.draft else ""
    if not await editor.save():
        return _fail(editor.error)

    click.echo(f"Saved: {title}")
    return 0


@main.command()
@click.option("--title", prompt=True)
@click.option("--content", default=None, help="Entry text (opens $EDITOR if omitted)")
@click.option("--mood", type=MOOD_CHOICE, default=None)
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable)")
@click.option("--reflect", is_flag=True, help="Ask for an AI reflection before saving")
def new(title: str, content: str | None, mood: str | None, tags: tuple[str, ...], reflect: bool):
    """Write a new entry."""
    if content is None:
        content = (click.edit() or "").strip()

    async def command(app: Daybook) -> int:
        if not _require_user(app):
            return 1
        app.editor.open_new()
        app.editor.update_draft(title=title, content=content, mood=mood, tags=list(tags))
        return await _reflect_and_save(app, reflect)

    _run(command)


@main.command()
@click.argument("entry_id")
@click.option("--title", default=None)
@click.option("--content", default=None)
@click.option("--mood", type=MOOD_CHOICE, default=None)
@click.option("--tag", "tags", multiple=True, help="Replace tags (repeatable)")
@click.option("--reflect", is_flag=True, help="Ask for an AI reflection before saving")
def edit(
    entry_id: str,
    title: str | None,
    content: str | None,
    mood: str | None,
    tags: tuple[str, ...],
    reflect: bool,
):
    """Edit an existing entry."""

    async def command(app: Daybook) -> int:
        if not _require_user(app):
            return 1
        entry = _find_entry(app, entry_id)
        if entry is None:
            return _fail(f"No entry {entry_id}")

        app.editor.open_existing(entry)
        app.editor.update_draft(
            title=title, content=content, mood=mood, tags=list(tags) if tags else None
        )
        return await _reflect_and_save(app, reflect)

    _run(command)


@main.command()
@click.argument("entry_id")
@click.option("--save", is_flag=True, help="Store the reflection on the entry")
def reflect(entry_id: str, save: bool):
    """Generate an AI reflection for an entry."""

    async def command(app: Daybook) -> int:
        if not _require_user(app):
            return 1
        entry = _find_entry(app, entry_id)
        if entry is None:
            return _fail(f"No entry {entry_id}")

        app.editor.open_existing(entry, read_only=not save)
        reflection = await app.editor.generate_reflection()
        click.echo(reflection or "")
        if save and not await app.editor.save():
            return _fail(app.editor.error)
        return 0

    _run(command)


@main.command()
@click.argument("entry_id")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt")
def delete(entry_id: str, yes: bool):
    """Delete an entry."""

    async def command(app: Daybook) -> int:
        if not _require_user(app):
            return 1
        entry = _find_entry(app, entry_id)
        if entry is None:
            return _fail(f"No entry {entry_id}")

        def confirm() -> bool:
            return yes or click.confirm("Are you sure you want to delete this entry?")

        app.editor.open_existing(entry, read_only=True)
        if not await app.editor.delete(entry.id, confirm):
            if app.editor.error:
                return _fail(app.editor.error)
            click.echo("Cancelled.")
            return 0
        click.echo(f"Deleted {entry.title}.")
        return 0

    _run(command)
