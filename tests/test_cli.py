"""Tests for the click CLI commands."""

import pytest
from unittest.mock import patch
from click.testing import CliRunner


@pytest.fixture
def runner(settings):
    """CliRunner with the CLI bound to the temp settings."""
    with patch("cli.main.get_settings", return_value=settings):
        yield CliRunner()


def _invoke(runner, *args, user="alice", **kwargs):
    from cli.main import cli
    return runner.invoke(cli, ["--user", user, *args], **kwargs)


def _new_book(runner, db_path):
    from models.database import Database
    result = _invoke(runner, "book", "new", "-t", "Field Notes", "--target", "100")
    assert result.exit_code == 0, result.output
    return Database(db_path).list_books("alice")[0]


class TestBookCommands:
    def test_new_and_list(self, runner, settings):
        book = _new_book(runner, settings.sqlite_db_path)
        assert book.title == "Field Notes"
        assert book.target_word_count == 100

        result = _invoke(runner, "book", "list")
        assert result.exit_code == 0
        assert "Field Notes" in result.output

    def test_other_user_sees_nothing(self, runner, settings):
        book = _new_book(runner, settings.sqlite_db_path)
        result = _invoke(runner, "book", "show", str(book.id), user="bob")
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_invalid_target_reported_inline(self, runner):
        result = _invoke(runner, "book", "new", "-t", "Bad", "--target", "0")
        assert result.exit_code == 1
        assert "must be positive" in result.output

    def test_edit_status(self, runner, settings):
        from models.database import Database
        book = _new_book(runner, settings.sqlite_db_path)
        result = _invoke(runner, "book", "edit", str(book.id), "--status", "in_progress")
        assert result.exit_code == 0, result.output
        assert Database(settings.sqlite_db_path).get_book(book.id).status.value == "in_progress"

    def test_delete_requires_confirmation(self, runner, settings):
        from models.database import Database
        book = _new_book(runner, settings.sqlite_db_path)
        result = _invoke(runner, "book", "delete", str(book.id), input="n\n")
        assert "Cancelled" in result.output
        assert Database(settings.sqlite_db_path).get_book(book.id) is not None

        result = _invoke(runner, "book", "delete", str(book.id), "--force")
        assert result.exit_code == 0
        assert Database(settings.sqlite_db_path).get_book(book.id) is None


class TestChapterCommands:
    def test_add_move_and_progress(self, runner, settings, tmp_path):
        from models.database import Database
        book = _new_book(runner, settings.sqlite_db_path)
        source = tmp_path / "draft.txt"
        source.write_text("ten words " * 5, encoding="utf-8")

        for title in ["A", "B", "C"]:
            assert _invoke(runner, "chapter", "add", str(book.id), "-t", title).exit_code == 0
        result = _invoke(runner, "chapter", "add", str(book.id), "-t", "D", "--file", str(source))
        assert result.exit_code == 0, result.output

        db = Database(settings.sqlite_db_path)
        d = db.get_chapters(book.id)[3]
        result = _invoke(runner, "chapter", "move", str(d.id), "2")
        assert result.exit_code == 0, result.output
        assert [c.title for c in db.get_chapters(book.id)] == ["A", "D", "B", "C"]

        result = _invoke(runner, "progress", str(book.id))
        assert result.exit_code == 0
        assert "10.0%" in result.output

    def test_move_out_of_range_is_reported(self, runner, settings):
        from models.database import Database
        book = _new_book(runner, settings.sqlite_db_path)
        _invoke(runner, "chapter", "add", str(book.id), "-t", "Only")
        only = Database(settings.sqlite_db_path).get_chapters(book.id)[0]

        result = _invoke(runner, "chapter", "move", str(only.id), "3")
        assert result.exit_code == 1
        assert "outside range" in result.output

    def test_import_uses_heading_as_title(self, runner, settings, tmp_path):
        from models.database import Database
        book = _new_book(runner, settings.sqlite_db_path)
        first = tmp_path / "01.md"
        first.write_text("# The Beginning\n\nOnce upon a time.", encoding="utf-8")
        second = tmp_path / "second-part.txt"
        second.write_text("No heading here.", encoding="utf-8")

        result = _invoke(runner, "chapter", "import", str(book.id), str(first), str(second))
        assert result.exit_code == 0, result.output

        chapters = Database(settings.sqlite_db_path).get_chapters(book.id)
        assert [(c.title, c.order) for c in chapters] == [("The Beginning", 1), ("second-part", 2)]
        assert chapters[0].content == "Once upon a time."

    def test_export(self, runner, settings, tmp_path):
        book = _new_book(runner, settings.sqlite_db_path)
        _invoke(runner, "chapter", "add", str(book.id), "-t", "Opening")
        target = tmp_path / "manuscript.md"

        result = _invoke(runner, "export", str(book.id), "-o", str(target))
        assert result.exit_code == 0, result.output
        assert "## 1. Opening" in target.read_text(encoding="utf-8")

    def test_proofread_offline(self, runner, settings, tmp_path):
        from models.database import Database
        book = _new_book(runner, settings.sqlite_db_path)
        source = tmp_path / "typos.txt"
        source.write_text("I recieve letters.", encoding="utf-8")
        _invoke(runner, "chapter", "add", str(book.id), "-t", "Mail", "--file", str(source))
        chapter = Database(settings.sqlite_db_path).get_chapters(book.id)[0]

        result = _invoke(runner, "proofread", str(chapter.id), "--no-ai")
        assert result.exit_code == 0, result.output
        assert "receive" in result.output
        assert Database(settings.sqlite_db_path).get_chapter(chapter.id).content == "I recieve letters."

    def test_proofread_apply_saves_chapter(self, runner, settings, tmp_path):
        from models.database import Database
        book = _new_book(runner, settings.sqlite_db_path)
        source = tmp_path / "typos.txt"
        source.write_text("I recieve teh letters.", encoding="utf-8")
        _invoke(runner, "chapter", "add", str(book.id), "-t", "Mail", "--file", str(source))
        chapter = Database(settings.sqlite_db_path).get_chapters(book.id)[0]

        result = _invoke(runner, "proofread", str(chapter.id), "--no-ai", "--apply")
        assert result.exit_code == 0, result.output
        assert "Applied 2" in result.output
        assert Database(settings.sqlite_db_path).get_chapter(chapter.id).content == "I receive the letters."

    def test_show_chapter(self, runner, settings, tmp_path):
        from models.database import Database
        book = _new_book(runner, settings.sqlite_db_path)
        source = tmp_path / "draft.txt"
        source.write_text("First part.\n\nThe very end.", encoding="utf-8")
        _invoke(runner, "chapter", "add", str(book.id), "-t", "Closing", "--file", str(source))
        chapter = Database(settings.sqlite_db_path).get_chapters(book.id)[0]

        result = _invoke(runner, "chapter", "show", str(chapter.id))
        assert result.exit_code == 0, result.output
        assert "Closing" in result.output
        assert "The very end." in result.output
        assert "Paragraphs:" in result.output


class TestBackup:
    def test_backup_copies_database(self, runner, settings, tmp_path):
        from models.database import Database
        _new_book(runner, settings.sqlite_db_path)
        target = tmp_path / "copies" / "books.bak.db"

        result = _invoke(runner, "backup", "-o", str(target))
        assert result.exit_code == 0, result.output
        assert [b.title for b in Database(target).list_books("alice")] == ["Field Notes"]


class TestChapterEditor:
    @pytest.mark.asyncio
    async def test_ctrl_s_saves_and_quit_flushes(self, service, db):
        from textual.widgets import TextArea
        from cli.tui import ChapterEditorApp

        book = await service.create_book("alice", "Book")
        chapter = await service.create_chapter("alice", book.id, "One", content="start")

        async def open_session(callback):
            return await service.open_editor("alice", chapter.id, callback=callback)

        app = ChapterEditorApp(chapter.title, open_session)
        async with app.run_test() as pilot:
            await pilot.pause()
            editor = app.query_one("#editor", TextArea)
            assert editor.text == "start"

            editor.insert("a fresh ")
            await pilot.pause()
            assert app.session.word_count == 3

            await pilot.press("ctrl+s")
            await pilot.pause()
            assert db.get_chapter(chapter.id).content == "a fresh start"

            editor.insert("very ")
            await pilot.pause()
            await pilot.press("ctrl+q")

        assert app.exit_error is None
        assert db.get_chapter(chapter.id).content == "a fresh very start"

    @pytest.mark.asyncio
    async def test_ctrl_b_wraps_selection_in_bold(self, service, db):
        from textual.widgets import TextArea
        from textual.widgets.text_area import Selection
        from cli.tui import ChapterEditorApp

        book = await service.create_book("alice", "Book")
        chapter = await service.create_chapter("alice", book.id, "One", content="a quiet night")

        async def open_session(callback):
            return await service.open_editor("alice", chapter.id, callback=callback)

        app = ChapterEditorApp(chapter.title, open_session)
        async with app.run_test() as pilot:
            await pilot.pause()
            editor = app.query_one("#editor", TextArea)
            editor.selection = Selection((0, 2), (0, 7))
            await pilot.press("ctrl+b")
            await pilot.pause()

            assert editor.text == "a **quiet** night"
            assert app.session.content == "a **quiet** night"
            assert app.session.word_count == 3
            await pilot.press("ctrl+q")

        assert db.get_chapter(chapter.id).content == "a **quiet** night"


class TestProofreadWithAI:
    def test_verbose_reports_ai_usage(self, runner, settings, tmp_path):
        from claude_agent_sdk import ResultMessage
        from models.database import Database

        async def fake_query(*args, **kwargs):
            yield ResultMessage(
                subtype="result", duration_ms=10, duration_api_ms=8, is_error=False,
                num_turns=1, session_id="s", total_cost_usd=0.0025,
                usage={"input_tokens": 1, "output_tokens": 1},
                result='{"suggestions": []}',
            )

        book = _new_book(runner, settings.sqlite_db_path)
        source = tmp_path / "clean.txt"
        source.write_text("All is well.", encoding="utf-8")
        _invoke(runner, "chapter", "add", str(book.id), "-t", "Fine", "--file", str(source))
        chapter = Database(settings.sqlite_db_path).get_chapters(book.id)[0]

        with patch("tools.agent_sdk_client.query", fake_query):
            result = _invoke(runner, "--verbose", "proofread", str(chapter.id))
        assert result.exit_code == 0, result.output
        assert "AI calls: 1 (failed 0), cost $0.0025" in result.output
        assert "No suggestions" in result.output
