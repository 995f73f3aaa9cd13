"""Tests for logging setup."""

import logging

import pytest


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    saved = (root.level, list(root.handlers))
    yield
    from config.logging_config import DEDICATED_LOGS
    for name in DEDICATED_LOGS:
        component = logging.getLogger(name)
        for handler in list(component.handlers):
            component.removeHandler(handler)
            handler.close()
        component.setLevel(logging.NOTSET)
    for handler in root.handlers:
        if handler not in saved[1]:
            handler.close()
    root.setLevel(saved[0])
    root.handlers[:] = saved[1]


class TestSetupLogging:
    def test_files_created(self, tmp_path, restore_logging):
        from config.logging_config import setup_logging
        setup_logging(log_dir=tmp_path, console_enabled=False)
        logging.getLogger("editor.autosave").debug("saved chapter 1")
        logging.getLogger("services.book_service").info("created book")

        for handler in logging.getLogger().handlers + logging.getLogger("editor.autosave").handlers:
            handler.flush()

        assert "created book" in (tmp_path / "penwright.log").read_text(encoding="utf-8")
        assert "saved chapter 1" in (tmp_path / "autosave.log").read_text(encoding="utf-8")
        assert (tmp_path / "ai_calls.log").exists()
        assert "saved chapter 1" not in (tmp_path / "penwright.log").read_text(encoding="utf-8")

    def test_rerun_does_not_duplicate_handlers(self, tmp_path, restore_logging):
        from config.logging_config import setup_logging
        setup_logging(log_dir=tmp_path, console_enabled=True)
        setup_logging(log_dir=tmp_path, console_enabled=False)

        assert len(logging.getLogger().handlers) == 1
        assert len(logging.getLogger("tools.agent_sdk_client").handlers) == 1
