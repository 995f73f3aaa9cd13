"""CLI entry point for Penwright, a book and chapter writing workspace.

Usage:
  penwright book new -t "My Novel"         create a book
  penwright chapter add 1 -t "Opening"     add a chapter
  penwright chapter move 7 2               move chapter 7 to position 2
  penwright proofread 7 --no-ai --apply    fix common typos in chapter 7
  penwright write 7                        open the chapter editor
  penwright --help                         list all commands
"""

import asyncio
import logging
import os
import sys
from datetime import datetime
from pathlib import Path

# Ensure UTF-8 output on Windows for Rich
if sys.platform == "win32":
    os.environ.setdefault("PYTHONIOENCODING", "utf-8")

import click
from rich.markup import escape

from cli.theme import (
    get_console,
    app_header,
    command_panel,
    success_panel,
    book_summary_panel,
    book_table,
    chapter_table,
    chapter_panel,
    progress_panel,
    suggestion_table,
)
from config.exceptions import PenwrightError
from config.logging_config import setup_logging
from config.settings import get_settings
from models.enums import BookStatus
from services.book_service import BookService
from services.export import export_book
from services.progress import summarize
from tools.text_utils import apply_suggestions

console = get_console()


def _init_logging(verbose: bool):
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    setup_logging(level=level, log_dir=get_settings().log_dir, console_enabled=verbose)


def _run(coro):
    """Run a service coroutine; domain errors are printed inline and exit 1."""
    try:
        return asyncio.run(coro)
    except PenwrightError as e:
        console.print(f"[error]{escape(str(e))}[/]")
        sys.exit(1)


class _Context:
    def __init__(self, user_id: str, verbose: bool = False):
        self.user_id = user_id
        self.verbose = verbose
        self._service = None

    @property
    def service(self) -> BookService:
        if self._service is None:
            self._service = BookService.from_settings(get_settings())
        return self._service


pass_ctx = click.make_pass_decorator(_Context)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--user", "-u", default=None, help="Owner identifier (defaults to DEFAULT_USER_ID)")
@click.pass_context
def cli(ctx, verbose, user):
    """Penwright: organize books into ordered chapters and write them.

    \b
    Examples:
      penwright book new -t "The Long Road" -g fantasy
      penwright chapter add 1 -t "Departure"
      penwright chapter move 3 1
      penwright progress 1
    """
    _init_logging(verbose)
    ctx.obj = _Context(user or get_settings().default_user_id, verbose=verbose)


# ---------------------------------------------------------------------------
# book commands
# ---------------------------------------------------------------------------

@cli.group()
def book():
    """Create, inspect, edit and delete books."""


@book.command(name="new")
@click.option("--title", "-t", required=True, help="Book title")
@click.option("--subtitle", "-s", default=None, help="Subtitle")
@click.option("--description", "-d", default=None, help="Short description")
@click.option("--genre", "-g", default=None, help="Genre (e.g. fantasy, mystery)")
@click.option("--target", type=int, default=None, help="Target word count")
@pass_ctx
def book_new(obj, title, subtitle, description, genre, target):
    """Create a new draft book."""
    created = _run(obj.service.create_book(
        obj.user_id, title, subtitle=subtitle, description=description,
        genre=genre, target_word_count=target,
    ))
    console.print(success_panel(
        "Book created",
        f"  [bold]{created.title}[/] [muted](ID: {created.id})[/]\n"
        f"  [stat.label]Target:[/] [stat.value]{created.target_word_count:,}[/] words\n"
        f"\n  Next: [info]penwright chapter add {created.id} -t \"Chapter title\"[/]",
    ))


@book.command(name="list")
@pass_ctx
def book_list(obj):
    """List your books, newest first."""
    books = _run(obj.service.list_books(obj.user_id))
    console.print(app_header())
    if not books:
        console.print("[warning]No books yet. Create one with [info]penwright book new[/].[/]")
        return
    console.print(book_table(books))


@book.command(name="show")
@click.argument("book_id", type=int)
@pass_ctx
def book_show(obj, book_id):
    """Show a book's details, progress and chapters."""

    async def _show():
        found = await obj.service.get_book(obj.user_id, book_id)
        chapters = await obj.service.list_chapters(obj.user_id, book_id)
        return found, chapters

    found, chapters = _run(_show())
    console.print(app_header())
    console.print(book_summary_panel(found, summarize(found, chapters)))
    console.print()
    if chapters:
        console.print(chapter_table(chapters))
    else:
        console.print(f"[muted]No chapters yet. Add one with [info]penwright chapter add {book_id} -t ...[/][/]")


@book.command(name="edit")
@click.argument("book_id", type=int)
@click.option("--title", "-t", default=None, help="New title")
@click.option("--subtitle", "-s", default=None, help="New subtitle")
@click.option("--description", "-d", default=None, help="New description")
@click.option("--genre", "-g", default=None, help="New genre")
@click.option("--target", type=int, default=None, help="New target word count")
@click.option("--status", type=click.Choice([s.value for s in BookStatus]), default=None,
              help="New status")
@click.option("--public/--private", "is_public", default=None, help="Visibility")
@pass_ctx
def book_edit(obj, book_id, title, subtitle, description, genre, target, status, is_public):
    """Update a book's metadata."""
    fields = {
        "title": title,
        "subtitle": subtitle,
        "description": description,
        "genre": genre,
        "target_word_count": target,
        "status": status,
        "is_public": is_public,
    }
    fields = {k: v for k, v in fields.items() if v is not None}
    if not fields:
        console.print("[warning]Nothing to update.[/]")
        return
    updated = _run(obj.service.update_book(obj.user_id, book_id, **fields))
    shown = {k: getattr(updated, k) for k in fields}
    if "status" in shown:
        shown["status"] = updated.status.value
    console.print(command_panel("Book updated", {k: str(v) for k, v in shown.items()}))


@book.command(name="delete")
@click.argument("book_id", type=int)
@click.option("--force", "-f", is_flag=True, help="Skip confirmation")
@pass_ctx
def book_delete(obj, book_id, force):
    """Delete a book and all of its chapters."""
    found = _run(obj.service.get_book(obj.user_id, book_id))
    if not force:
        if not click.confirm(f"Delete '{found.title}' and all its chapters? This cannot be undone", default=False):
            console.print("[warning]Cancelled[/]")
            return
    _run(obj.service.delete_book(obj.user_id, book_id))
    console.print(f"[success]Book {book_id} deleted[/]")


# ---------------------------------------------------------------------------
# chapter commands
# ---------------------------------------------------------------------------

@cli.group()
def chapter():
    """Add, order, rename and delete chapters."""


@chapter.command(name="add")
@click.argument("book_id", type=int)
@click.option("--title", "-t", required=True, help="Chapter title")
@click.option("--position", "-p", type=int, default=None, help="Insert at this position (default: end)")
@click.option("--file", "-f", "source", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              default=None, help="Read initial content from a text file")
@pass_ctx
def chapter_add(obj, book_id, title, position, source):
    """Add a chapter to a book."""
    content = source.read_text(encoding="utf-8") if source else None
    created = _run(obj.service.create_chapter(obj.user_id, book_id, title, content=content, position=position))
    console.print(
        f"[success]Chapter {created.id} added at position {created.order}[/] "
        f"[muted]({created.word_count:,} words)[/]"
    )


@chapter.command(name="list")
@click.argument("book_id", type=int)
@pass_ctx
def chapter_list(obj, book_id):
    """List a book's chapters in reading order."""
    chapters = _run(obj.service.list_chapters(obj.user_id, book_id))
    if not chapters:
        console.print("[warning]This book has no chapters.[/]")
        return
    console.print(chapter_table(chapters))


@chapter.command(name="show")
@click.argument("chapter_id", type=int)
@pass_ctx
def chapter_show(obj, chapter_id):
    """Show a chapter's stats and how its text currently ends."""
    found = _run(obj.service.get_chapter(obj.user_id, chapter_id))
    console.print(chapter_panel(found))


@chapter.command(name="rename")
@click.argument("chapter_id", type=int)
@click.argument("title")
@pass_ctx
def chapter_rename(obj, chapter_id, title):
    """Rename a chapter."""
    renamed = _run(obj.service.rename_chapter(obj.user_id, chapter_id, title))
    console.print(f"[success]Chapter {renamed.id} renamed to[/] [bold]{renamed.title}[/]")


@chapter.command(name="move")
@click.argument("chapter_id", type=int)
@click.argument("position", type=int)
@pass_ctx
def chapter_move(obj, chapter_id, position):
    """Move a chapter to POSITION (1 = first)."""
    chapters = _run(obj.service.move_chapter(obj.user_id, chapter_id, position))
    console.print(chapter_table(chapters, title="New order"))


@chapter.command(name="delete")
@click.argument("chapter_id", type=int)
@click.option("--force", "-f", is_flag=True, help="Skip confirmation")
@pass_ctx
def chapter_delete(obj, chapter_id, force):
    """Delete a chapter; later chapters move up."""
    found = _run(obj.service.get_chapter(obj.user_id, chapter_id))
    if not force:
        if not click.confirm(f"Delete chapter '{found.title}'? This cannot be undone", default=False):
            console.print("[warning]Cancelled[/]")
            return
    survivors = _run(obj.service.delete_chapter(obj.user_id, chapter_id))
    console.print(f"[success]Chapter {chapter_id} deleted[/]")
    if survivors:
        console.print(chapter_table(survivors))


@chapter.command(name="import")
@click.argument("book_id", type=int)
@click.argument("files", nargs=-1, required=True,
                type=click.Path(exists=True, dir_okay=False, path_type=Path))
@pass_ctx
def chapter_import(obj, book_id, files):
    """Append one chapter per text file, in the order given.

    The title is the file's first "# " heading, or its name.
    """

    async def _import():
        created = []
        for path in files:
            title, content = _split_heading(path.read_text(encoding="utf-8"), path.stem)
            created.append(await obj.service.create_chapter(obj.user_id, book_id, title, content=content))
        return created

    created = _run(_import())
    console.print(f"[success]Imported {len(created)} chapter(s)[/]")
    console.print(chapter_table(created, title="Imported"))


def _split_heading(text: str, fallback: str) -> tuple[str, str]:
    """Return ``(title, body)``: a leading markdown heading becomes the title."""
    stripped = text.lstrip()
    first, _, rest = stripped.partition("\n")
    if first.startswith("# "):
        return first[2:].strip() or fallback, rest.lstrip("\n")
    return fallback, text


@chapter.command(name="recompact")
@click.argument("book_id", type=int)
@pass_ctx
def chapter_recompact(obj, book_id):
    """Renumber a book's chapters to 1..N, keeping their relative order."""
    chapters = _run(obj.service.recompact_chapters(obj.user_id, book_id))
    console.print(f"[success]{len(chapters)} chapter(s) renumbered[/]")


# ---------------------------------------------------------------------------
# progress / export
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("book_id", type=int)
@pass_ctx
def progress(obj, book_id):
    """Show progress toward a book's word goal."""

    async def _progress():
        found = await obj.service.get_book(obj.user_id, book_id)
        return found, await obj.service.book_progress(obj.user_id, book_id)

    found, snapshot = _run(_progress())
    console.print(progress_panel(found, snapshot))


@cli.command()
@click.argument("book_id", type=int)
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Target file (default: <title>.md)")
@pass_ctx
def export(obj, book_id, output):
    """Export a book as one markdown manuscript."""

    async def _load():
        found = await obj.service.get_book(obj.user_id, book_id)
        return found, await obj.service.list_chapters(obj.user_id, book_id)

    found, chapters = _run(_load())
    target = export_book(found, chapters, output or Path(f"{_slug(found.title)}.md"))
    console.print(f"[success]Exported {len(chapters)} chapter(s) to[/] [bold]{target}[/]")


@cli.command()
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Backup file (default: next to the database, timestamped)")
@pass_ctx
def backup(obj, output):
    """Copy the database file."""
    db = obj.service.store.db
    if output is None:
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        output = db.db_path.with_name(f"{db.db_path.stem}-{stamp}.db")
    target = db.backup_database(output)
    console.print(f"[success]Database backed up to[/] [bold]{target}[/]")


def _slug(title: str) -> str:
    cleaned = "".join(c if c.isalnum() else "-" for c in title.lower())
    return "-".join(part for part in cleaned.split("-") if part) or "book"


# ---------------------------------------------------------------------------
# proofread / write
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("chapter_id", type=int)
@click.option("--start", type=int, default=0, help="Selection start offset")
@click.option("--end", type=int, default=None, help="Selection end offset")
@click.option("--no-ai", is_flag=True, help="Only run the offline checks")
@click.option("--apply", "apply_all", is_flag=True, help="Apply the suggestions and save the chapter")
@pass_ctx
def proofread(obj, chapter_id, start, end, no_ai, apply_all):
    """Suggest grammar, style and spelling fixes for a chapter."""
    from agents.proofreader_agent import ProofreaderAgent

    async def _proofread():
        found = await obj.service.get_chapter(obj.user_id, chapter_id)
        text = found.content or ""
        agent = ProofreaderAgent(settings=obj.service.settings)
        suggestions = await agent.proofread(text, start=start, end=end, use_ai=not no_ai)
        return text, suggestions, agent.llm.get_usage_summary()

    if not no_ai:
        with console.status("[info]Proofreading...[/]"):
            text, suggestions, usage = _run(_proofread())
        if obj.verbose:
            console.print(
                f"[muted]AI calls: {usage['total_calls']} "
                f"(failed {usage['failed_calls']}), cost ${usage['total_cost_usd']:.4f}[/]"
            )
    else:
        text, suggestions, _ = _run(_proofread())
    if not suggestions:
        console.print("[success]No suggestions[/]")
        return
    console.print(suggestion_table(text, suggestions))

    if apply_all:
        revised, applied = apply_suggestions(text, suggestions)
        saved = _run(obj.service.update_chapter_content(obj.user_id, chapter_id, revised))
        skipped = len(suggestions) - applied
        note = f" [muted]({skipped} overlapping skipped)[/]" if skipped else ""
        console.print(
            f"[success]Applied {applied} suggestion(s);[/] chapter now {saved.word_count:,} words{note}"
        )


@cli.command()
@click.argument("chapter_id", type=int)
@pass_ctx
def write(obj, chapter_id):
    """Open the chapter editor (autosaves; ctrl+s saves immediately)."""
    from cli.tui import ChapterEditorApp

    found = _run(obj.service.get_chapter(obj.user_id, chapter_id))

    async def open_session(callback):
        return await obj.service.open_editor(obj.user_id, chapter_id, callback=callback)

    app = ChapterEditorApp(found.title, open_session)
    app.run()
    if app.exit_error is not None:
        console.print(f"[error]Last changes were not saved: {app.exit_error}[/]")
        sys.exit(1)
    if app.session is not None:
        console.print(f"[success]Chapter {chapter_id}:[/] {app.session.word_count:,} words")


def main():
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
