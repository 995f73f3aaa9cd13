"""Settings, logging and exceptions."""

from config.exceptions import (
    PenwrightError,
    ValidationError,
    NotFoundError,
    InvalidOrderError,
    InvalidTargetError,
    InvalidConfigError,
    StoreError,
    StoreTimeoutError,
    ReorderError,
    PartialReorderError,
    LLMError,
    LLMTimeoutError,
    LLMResponseParseError,
)
from config.logging_config import setup_logging
from config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "PenwrightError",
    "ValidationError",
    "NotFoundError",
    "InvalidOrderError",
    "InvalidTargetError",
    "InvalidConfigError",
    "StoreError",
    "StoreTimeoutError",
    "ReorderError",
    "PartialReorderError",
    "LLMError",
    "LLMTimeoutError",
    "LLMResponseParseError",
]
