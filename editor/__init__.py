"""Autosave coordination for chapter-editing sessions."""

from editor.autosave import AutosaveCoordinator
from editor.callbacks import AutosaveCallback, LoggingCallback

__all__ = [
    "AutosaveCoordinator",
    "AutosaveCallback",
    "LoggingCallback",
]
