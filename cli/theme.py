"""Unified Rich theme and reusable UI helper functions for the CLI."""

from typing import Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.rule import Rule
from rich.table import Table
from rich.theme import Theme

from models.enums import BookStatus
from services.progress import BookProgress
from tools.text_utils import get_chapter_ending, split_into_paragraphs

PENWRIGHT_THEME = Theme({
    "app.title": "bold",
    "success": "green",
    "warning": "yellow",
    "error": "red",
    "info": "blue",
    "muted": "dim",
    "accent": "cyan",
    "genre": "bold",
    "stat.label": "dim",
    "stat.value": "bold",
    "chapter.num": "blue",
    "suggestion.from": "red strike",
    "suggestion.to": "bold green",
})

STATUS_COLORS = {
    BookStatus.DRAFT: "dim",
    BookStatus.IN_PROGRESS: "yellow",
    BookStatus.COMPLETED: "green",
    BookStatus.PUBLISHED: "cyan",
}


def get_console() -> Console:
    """Return a Console instance with the penwright theme applied."""
    return Console(theme=PENWRIGHT_THEME)


def app_header(title: str = "penwright") -> Rule:
    """Return a Rule element for the application header banner."""
    return Rule(title=f"[bold]{title}[/]", style="dim")


def command_panel(title: str, fields: dict[str, str]) -> Panel:
    """Return a Panel displaying command parameters.

    Args:
        title: Panel title (e.g. "New book").
        fields: Ordered dict of label -> value pairs.
    """
    lines = []
    for label, value in fields.items():
        lines.append(f"  [stat.label]{label}:[/] [stat.value]{value}[/]")
    body = "\n".join(lines)
    return Panel(body, title=f"[bold]{title}[/]", box=box.ROUNDED, border_style="dim", padding=(0, 2))


def success_panel(title: str, body: str) -> Panel:
    """Return a green-bordered Panel for success results."""
    return Panel(body, title=f"[success]{title}[/]", box=box.ROUNDED, border_style="green", padding=(0, 2))


def status_label(status: BookStatus) -> str:
    return f"[{STATUS_COLORS.get(status, 'white')}]{status.value}[/]"


def book_table(books: list) -> Table:
    """Build a Rich Table listing books with their word totals."""
    table = Table(title="Books", show_lines=True, border_style="dim")
    table.add_column("ID", style="chapter.num")
    table.add_column("Title", style="bold")
    table.add_column("Genre", style="genre")
    table.add_column("Status")
    table.add_column("Words", justify="right")
    table.add_column("Target", justify="right")

    for b in books:
        table.add_row(
            str(b.id),
            b.title,
            b.genre or "-",
            status_label(b.status),
            f"{b.current_word_count:,}",
            f"{b.target_word_count:,}",
        )
    return table


def chapter_table(chapters: list, title: str = "Chapters") -> Table:
    """Build a Rich Table of chapters in reading order."""
    table = Table(title=title, border_style="dim")
    table.add_column("#", style="chapter.num", justify="right")
    table.add_column("ID", style="muted")
    table.add_column("Title")
    table.add_column("Words", justify="right")
    table.add_column("Last autosave", style="muted")

    for ch in chapters:
        saved = ch.last_autosave.strftime("%Y-%m-%d %H:%M") if ch.last_autosave else "-"
        table.add_row(str(ch.order), str(ch.id), escape(ch.title), f"{ch.word_count:,}", saved)
    return table


def chapter_panel(chapter, ending_chars: int = 300) -> Panel:
    """Return a Panel with a chapter's stats and the closing lines of its text."""
    paragraphs = split_into_paragraphs(chapter.content)
    ending = get_chapter_ending(chapter.content, char_limit=ending_chars)
    if ending and len(ending) < len(chapter.content or ""):
        ending = "..." + ending.lstrip()

    lines = [
        f"  [stat.label]Position:[/] [chapter.num]{chapter.order}[/]  "
        f"[muted]|[/]  [stat.label]Words:[/] [stat.value]{chapter.word_count:,}[/]  "
        f"[muted]|[/]  [stat.label]Paragraphs:[/] {len(paragraphs)}",
    ]
    if chapter.last_autosave:
        lines.append(f"  [stat.label]Last autosave:[/] {chapter.last_autosave.strftime('%Y-%m-%d %H:%M')}")
    lines.append("")
    lines.append(f"[muted]{escape(ending)}[/]" if ending else "[muted](empty)[/]")

    return Panel(
        "\n".join(lines),
        title=f"[bold]{escape(chapter.title)}[/] [muted](ID: {chapter.id})[/]",
        box=box.ROUNDED,
        border_style="dim",
        padding=(0, 2),
    )


def book_summary_panel(book, progress: Optional[BookProgress] = None) -> Panel:
    """Return a Panel with a book's metadata and, optionally, its progress."""
    description = book.description or ""
    if len(description) > 200:
        description = description[:200] + "..."

    lines = [
        f"  [stat.label]Genre:[/] [genre]{book.genre or '-'}[/]  "
        f"[muted]|[/]  [stat.label]Status:[/] {status_label(book.status)}  "
        f"[muted]|[/]  [stat.label]Public:[/] {'yes' if book.is_public else 'no'}",
    ]
    if book.subtitle:
        lines.append(f"  [stat.label]Subtitle:[/] {book.subtitle}")
    if description:
        lines.append(f"  [stat.label]Description:[/] {description}")
    if progress is not None:
        lines.append(progress_line(progress))

    return Panel(
        "\n".join(lines),
        title=f"[bold]{book.title}[/] [muted](ID: {book.id})[/]",
        box=box.ROUNDED,
        border_style="dim",
        padding=(0, 2),
    )


def progress_line(progress: BookProgress) -> str:
    return (
        f"  [stat.label]Words:[/] [stat.value]{progress.current_word_count:,}[/] / "
        f"{progress.target_word_count:,}  [muted]|[/]  "
        f"[stat.label]Chapters:[/] [stat.value]{progress.chapter_count}[/]  [muted]|[/]  "
        f"[stat.value]{progress.percent:.1f}%[/]"
    )


def progress_panel(book, progress: BookProgress) -> Panel:
    """Return a Panel with a progress bar toward the book's word goal."""
    table = Table.grid(padding=(0, 1))
    table.add_column()
    table.add_row(progress_line(progress))
    table.add_row(ProgressBar(total=100, completed=progress.percent, width=50))
    if progress.goal_reached:
        table.add_row("  [success]Word goal reached[/]")
    else:
        table.add_row(f"  [muted]{progress.remaining_words:,} words to go[/]")
    if progress.suggested_status is not None:
        table.add_row(
            f"  [info]Consider marking the book as {progress.suggested_status.value}[/] "
            f"[muted](penwright book edit {book.id} --status {progress.suggested_status.value})[/]"
        )
    return Panel(table, title=f"[bold]{book.title}[/]", box=box.ROUNDED, border_style="dim", padding=(0, 1))


def suggestion_table(text: str, suggestions: list) -> Table:
    """Build a Rich Table of proofreading suggestions with surrounding context."""
    table = Table(title="Suggestions", border_style="dim")
    table.add_column("Pos", style="chapter.num", justify="right")
    table.add_column("Type", style="muted")
    table.add_column("Change")
    table.add_column("Context", style="muted")

    for s in suggestions:
        context = text[max(0, s.start - 20):s.end + 20].replace("\n", " ")
        table.add_row(
            str(s.start),
            s.category.value,
            f"[suggestion.from]{escape(s.matched_text)}[/] -> [suggestion.to]{escape(s.replacement)}[/]",
            f"...{escape(context)}...",
        )
    return table
