"""Tests for manuscript export."""

from models.book import Book
from models.chapter import Chapter
from services.export import export_book, render_book_markdown


def _book():
    return Book(id=1, title="The Long Road", subtitle="A journey", description="Two travellers.")


class TestRenderBookMarkdown:
    def test_chapters_rendered_in_order(self):
        chapters = [
            Chapter(id=2, title="Second", content="Then **more**.", order=2),
            Chapter(id=1, title="First", content="It began.", order=1),
        ]
        text = render_book_markdown(_book(), chapters)

        assert text.startswith("# The Long Road\n\n*A journey*\n\nTwo travellers.")
        assert text.index("## 1. First") < text.index("## 2. Second")
        assert "Then **more**." in text

    def test_empty_chapter_has_heading_only(self):
        text = render_book_markdown(Book(title="T"), [Chapter(id=1, title="Blank", order=1)])
        assert text == "# T\n\n## 1. Blank\n"


class TestExportBook:
    def test_writes_file(self, tmp_path):
        target = export_book(_book(), [Chapter(id=1, title="First", content="x", order=1)],
                             tmp_path / "out" / "book.md")
        assert target.exists()
        assert "## 1. First" in target.read_text(encoding="utf-8")
