"""Custom exception hierarchy for the writing-project manager."""

from typing import Optional


class PenwrightError(Exception):
    """Base exception for all penwright errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# ---- Validation Errors ----

class ValidationError(PenwrightError):
    """Input validation failed. Raised before any mutation."""


class NotFoundError(ValidationError):
    """Unknown (or not owned) book or chapter."""

    def __init__(self, entity: str, entity_id, message: str = ""):
        msg = message or f"{entity.capitalize()} not found: {entity_id}"
        super().__init__(msg, {"entity": entity, "id": entity_id})
        self.entity = entity
        self.entity_id = entity_id


class InvalidOrderError(ValidationError):
    """Target position outside [1, N], or an order sequence that is not dense."""

    def __init__(self, requested: Optional[int], max_order: int, message: str = ""):
        msg = message or f"Order {requested} outside range [1, {max_order}]"
        super().__init__(msg, {"requested": requested, "max": max_order})
        self.requested = requested
        self.max_order = max_order


class InvalidTargetError(ValidationError):
    """Target word count is not a positive integer."""

    def __init__(self, target, message: str = ""):
        msg = message or f"Target word count must be positive, got {target}"
        super().__init__(msg, {"target": target})
        self.target = target


class InvalidConfigError(ValidationError):
    """Configuration value is invalid."""


# ---- Store Errors ----

class StoreError(PenwrightError):
    """Record store operation failed (connectivity or constraint problem)."""


class StoreTimeoutError(StoreError):
    """Record store call exceeded the configured timeout."""

    def __init__(self, operation: str, timeout: float):
        super().__init__(
            f"Store call '{operation}' timed out after {timeout}s",
            {"operation": operation, "timeout": timeout},
        )
        self.operation = operation
        self.timeout = timeout


# ---- Reorder Errors ----

class ReorderError(PenwrightError):
    """Base exception for chapter reorder failures."""


class PartialReorderError(ReorderError):
    """Some but not all order updates of a move/compaction committed.

    The stored sequence may be non-dense; re-fetch and recompact.
    """

    def __init__(self, book_id: int, applied: list[int], failed: dict[int, Exception]):
        super().__init__(
            f"Reorder of book {book_id} partially applied",
            {"book_id": book_id, "applied": len(applied), "failed": len(failed)},
        )
        self.book_id = book_id
        self.applied = applied
        self.failed = failed


# ---- LLM Errors ----

class LLMError(PenwrightError):
    """Base exception for AI suggestion service errors."""


class LLMTimeoutError(LLMError):
    """AI service request timed out."""


class LLMResponseParseError(LLMError):
    """Failed to parse AI service response."""

    def __init__(self, message: str = "Failed to parse LLM response", raw_response: str = ""):
        details = {"raw_response": raw_response[:200]} if raw_response else {}
        super().__init__(message, details)
        self.raw_response = raw_response
