"""Penwright chapter editor: Textual-based writing view with autosave.

Layout:
  ┌─ banner (static) ───────────────────────────────┐
  ├─ editor (text area, fills remaining space) ─────┤
  └─ status bar (word count / save state) ──────────┘
"""

import logging
from datetime import datetime
from typing import Optional

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Static, TextArea

from editor.autosave import AutosaveCoordinator
from models.enums import AutosaveState
from tools.text_utils import apply_emphasis

logger = logging.getLogger(__name__)


class StatusBarCallback:
    """Autosave callback that renders save status into the editor's status bar.

    Failures show a transient "retrying" message; the editor buffer is
    never touched.
    """

    def __init__(self, app: "ChapterEditorApp"):
        self._app = app

    def on_state_change(self, chapter_id: int, state: AutosaveState) -> None:
        self._app.save_state = state.value
        self._app.refresh_status()

    def on_saved(self, chapter_id: int, saved_at: datetime, word_count: int) -> None:
        self._app.save_note = f"saved {saved_at.strftime('%H:%M:%S')}"
        self._app.refresh_status()

    def on_save_failed(self, chapter_id: int, error: Exception, attempt: int) -> None:
        logger.warning("Chapter %s save failed (attempt %d): %s", chapter_id, attempt, error)
        self._app.save_note = f"[yellow]save failed, retrying (attempt {attempt})[/]"
        self._app.refresh_status()


class ChapterEditorApp(App):
    """Full-screen editor for one chapter.

    The coordinator is opened on mount through ``open_session`` so that its
    timers live on the app's event loop.
    """

    CSS = """
    Screen {
        background: black;
    }

    #banner {
        height: auto;
        background: #121212;
        border: tall #3a3a3a;
        padding: 0 2;
    }

    #editor {
        height: 1fr;
        border: round #4e4e4e;
    }

    #status {
        height: 1;
        padding: 0 2;
        color: #767676;
    }
    """

    BINDINGS = [
        Binding("ctrl+s", "save", "Save"),
        Binding("ctrl+b", "emphasis('bold')", "Bold", priority=True),
        Binding("ctrl+t", "emphasis('italic')", "Italic", priority=True),
        Binding("ctrl+u", "emphasis('underline')", "Underline", priority=True),
        Binding("ctrl+q", "quit", "Quit"),
        Binding("escape", "quit", "Quit"),
    ]

    def __init__(self, title: str, open_session):
        """
        Args:
            title: Chapter title shown in the banner.
            open_session: Async callable ``open_session(callback)`` returning
                an ``AutosaveCoordinator`` for the chapter.
        """
        super().__init__()
        self.chapter_title = title
        self._open_session = open_session
        self.session: Optional[AutosaveCoordinator] = None
        self.save_state = AutosaveState.IDLE.value
        self.save_note = ""
        self.exit_error: Optional[Exception] = None

    # ── Layout ────────────────────────────────────────────────────────────

    def compose(self) -> ComposeResult:
        yield Static(
            f"[bold]{escape(self.chapter_title)}[/]  [dim]ctrl+s save · ctrl+b/t/u bold/italic/underline · ctrl+q quit[/]",
            id="banner",
        )
        yield TextArea(id="editor", soft_wrap=True)
        yield Static("", id="status")

    async def on_mount(self) -> None:
        for name in ("claude_agent_sdk", "claude_agent_sdk._internal"):
            logging.getLogger(name).setLevel(logging.WARNING)

        self.session = await self._open_session(StatusBarCallback(self))
        editor = self.query_one("#editor", TextArea)
        editor.load_text(self.session.content)
        editor.focus()
        self.refresh_status()

    # ── Helpers ───────────────────────────────────────────────────────────

    def refresh_status(self) -> None:
        if self.session is None:
            return
        words = self.session.word_count
        note = f"    {self.save_note}" if self.save_note else ""
        self.query_one("#status", Static).update(
            f"[dim]{words:,} words    {self.save_state}[/]{note}"
        )

    # ── Events ────────────────────────────────────────────────────────────

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        if self.session is None:
            return
        text = event.text_area.text
        if text != self.session.content:
            self.session.edit(text)
        self.refresh_status()

    # ── Actions ───────────────────────────────────────────────────────────

    async def action_save(self) -> None:
        if self.session is None:
            return
        try:
            await self.session.save_now()
        except Exception as e:
            # The coordinator has already scheduled a retry.
            self.save_note = f"[red]save failed: {e}[/]"
            self.refresh_status()

    async def action_quit(self) -> None:
        if self.session is not None:
            try:
                await self.session.close(save=True)
            except Exception as e:
                logger.error("Final save of chapter %s failed: %s", self.session.chapter_id, e)
                self.exit_error = e
        self.exit()

    def action_emphasis(self, style: str) -> None:
        """Wrap the current selection in emphasis markers."""
        editor = self.query_one("#editor", TextArea)
        selected = editor.selected_text
        if self.session is None or not selected:
            return
        start, end = sorted((editor.selection.start, editor.selection.end))
        editor.replace(apply_emphasis(selected, 0, len(selected), style), start, end)
