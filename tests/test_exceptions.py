"""Tests for the custom exception hierarchy."""

import pytest
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


class TestExceptionHierarchy:
    def test_all_inherit_from_penwright_error(self):
        leaf_classes = [
            ValidationError, NotFoundError, InvalidOrderError, InvalidTargetError,
            InvalidConfigError, StoreError, StoreTimeoutError, ReorderError,
            PartialReorderError, LLMError, LLMTimeoutError, LLMResponseParseError,
        ]
        for cls in leaf_classes:
            assert issubclass(cls, PenwrightError), f"{cls.__name__} must inherit PenwrightError"

    def test_validation_subclasses(self):
        assert issubclass(NotFoundError, ValidationError)
        assert issubclass(InvalidOrderError, ValidationError)
        assert issubclass(InvalidTargetError, ValidationError)
        assert issubclass(InvalidConfigError, ValidationError)

    def test_store_and_reorder_subclasses(self):
        assert issubclass(StoreTimeoutError, StoreError)
        assert issubclass(PartialReorderError, ReorderError)
        assert not issubclass(PartialReorderError, StoreError)

    def test_llm_subclasses(self):
        assert issubclass(LLMTimeoutError, LLMError)
        assert issubclass(LLMResponseParseError, LLMError)


class TestExceptionCreation:
    def test_basic_message(self):
        err = StoreError("disk full")
        assert err.message == "disk full"
        assert err.details == {}
        assert str(err) == "disk full"

    def test_details_rendered_in_str(self):
        err = NotFoundError("chapter", 12)
        assert err.details == {"entity": "chapter", "id": 12}
        assert str(err) == "Chapter not found: 12 (entity=chapter, id=12)"

    def test_invalid_order_carries_range(self):
        err = InvalidOrderError(7, 4)
        assert err.requested == 7
        assert err.max_order == 4
        assert "[1, 4]" in str(err)

    def test_store_timeout(self):
        err = StoreTimeoutError("get_chapters", 2.5)
        assert err.operation == "get_chapters"
        assert "timed out" in str(err)

    def test_partial_reorder_lists_outcomes(self):
        failure = StoreError("rejected")
        err = PartialReorderError(3, applied=[1, 2], failed={5: failure})
        assert err.applied == [1, 2]
        assert err.failed[5] is failure
        assert err.details["failed"] == 1

    def test_parse_error_has_raw_response(self):
        err = LLMResponseParseError("Parse failed", raw_response='{"bad": json}')
        assert err.raw_response == '{"bad": json}'

    def test_catchable_as_base(self):
        with pytest.raises(PenwrightError):
            raise InvalidTargetError(0)
