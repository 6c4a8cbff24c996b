"""Custom exception classes and error handling utilities."""
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from loguru import logger


class VocabQuizException(Exception):
    """Base exception for the application."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidInputError(VocabQuizException):
    """Empty or malformed request data."""


class NotFoundError(VocabQuizException):
    """A referenced user, word or saved word does not exist."""


class GenerationFailure(VocabQuizException):
    """The external article generator failed, timed out or returned junk."""


class StoreUnavailableError(VocabQuizException):
    """The durable article store could not be reached."""


class GenerationQualityWarning(UserWarning):
    """Generated article does not carry one blank per requested word."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Article has {actual} blanks but {expected} words were requested")


def handle_invalid_input_error(error: InvalidInputError) -> HTTPException:
    """Handle invalid request errors."""
    logger.warning(f"Invalid input: {error.message}")
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"message": error.message, "details": error.details},
    )


def handle_not_found_error(error: NotFoundError) -> HTTPException:
    """Handle missing resource errors."""
    logger.info(f"Not found: {error.message}")
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.message)
