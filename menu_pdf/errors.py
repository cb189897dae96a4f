"""
Error taxonomy for the render pipeline.

Every stage failure is reclassified into a RenderError before it crosses the
renderer's public boundary; callers only ever see the small vocabulary below.

MIT License - Copyright (c) 2025 Menu PDF Renderer
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError


class ErrorKind(Enum):
    INVALID_INPUT = "invalid_input"
    BROWSER_LAUNCH_FAILED = "browser_launch_failed"
    NAVIGATION_TIMEOUT = "navigation_timeout"
    EXPORT_TIMEOUT = "export_timeout"
    INVALID_OUTPUT = "invalid_output"
    EXHAUSTED = "exhausted"


# Human-readable categories exposed to callers
_CATEGORIES = {
    ErrorKind.INVALID_INPUT: "invalid menu data",
    ErrorKind.BROWSER_LAUNCH_FAILED: "renderer unavailable",
    ErrorKind.NAVIGATION_TIMEOUT: "timed out",
    ErrorKind.EXPORT_TIMEOUT: "timed out",
    ErrorKind.INVALID_OUTPUT: "invalid output",
    ErrorKind.EXHAUSTED: "rendering failed",
}

_PUBLIC_MESSAGES = {
    ErrorKind.INVALID_INPUT: "The menu cannot be rendered",
    ErrorKind.BROWSER_LAUNCH_FAILED: "The PDF renderer could not be started",
    ErrorKind.NAVIGATION_TIMEOUT: "Loading the menu document timed out",
    ErrorKind.EXPORT_TIMEOUT: "Exporting the PDF timed out",
    ErrorKind.INVALID_OUTPUT: "The renderer produced an invalid PDF",
    ErrorKind.EXHAUSTED: "Failed to generate PDF",
}


class RenderError(Exception):
    """A classified failure of one render stage."""

    def __init__(self, kind: ErrorKind, message: str, stage: str = "",
                 cause: Optional[BaseException] = None, attempts: int = 0,
                 last_error: Optional["RenderError"] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.stage = stage
        self.cause = cause
        self.attempts = attempts
        self.last_error = last_error

    def __repr__(self) -> str:
        return f"RenderError({self.kind.value}, stage={self.stage!r}, message={self.message!r})"

    def __str__(self) -> str:
        where = f"[{self.stage}] " if self.stage else ""
        return f"{where}{self.kind.value}: {self.message}"

    @property
    def retryable(self) -> bool:
        """Whether a caller may reasonably submit the same job again."""
        return self.kind is not ErrorKind.INVALID_INPUT

    @property
    def timed_out(self) -> bool:
        kind = self.kind
        if kind is ErrorKind.EXHAUSTED and self.last_error is not None:
            kind = self.last_error.kind
        return kind in (ErrorKind.NAVIGATION_TIMEOUT, ErrorKind.EXPORT_TIMEOUT)

    @property
    def category(self) -> str:
        if self.kind is ErrorKind.EXHAUSTED and self.timed_out:
            return _CATEGORIES[ErrorKind.NAVIGATION_TIMEOUT]
        return _CATEGORIES[self.kind]

    @property
    def status_code(self) -> int:
        """HTTP-equivalent status for handlers that surface this error."""
        if self.kind is ErrorKind.INVALID_INPUT:
            return 400
        if self.timed_out:
            return 504
        return 503

    def to_dict(self) -> Dict[str, Any]:
        """Public error payload. Internal messages are only exposed for input errors."""
        if self.kind is ErrorKind.INVALID_INPUT:
            error = f"{_PUBLIC_MESSAGES[self.kind]}: {self.message}"
        else:
            error = _PUBLIC_MESSAGES[self.kind]
        return {"error": error, "retryable": self.retryable, "category": self.category}


def invalid_input(message: str) -> RenderError:
    return RenderError(ErrorKind.INVALID_INPUT, message, stage="template")


def invalid_output(message: str) -> RenderError:
    return RenderError(ErrorKind.INVALID_OUTPUT, message, stage="validate")


def classify_exception(exc: BaseException, stage: str) -> RenderError:
    """Map a raw exception raised inside `stage` into the error taxonomy."""
    if isinstance(exc, RenderError):
        return exc

    timed_out = isinstance(exc, (asyncio.TimeoutError, PlaywrightTimeoutError))
    if timed_out:
        kind = ErrorKind.EXPORT_TIMEOUT if stage == "export" else ErrorKind.NAVIGATION_TIMEOUT
        return RenderError(kind, f"{stage} exceeded its time limit", stage=stage, cause=exc)

    if stage == "validate":
        return RenderError(ErrorKind.INVALID_OUTPUT, _describe(exc), stage=stage, cause=exc)

    # A browser that crashed or disconnected mid-render is as unusable as one that never launched
    message = _describe(exc)
    if isinstance(exc, PlaywrightError) and stage != "launch":
        message = f"browser error: {message}"
    return RenderError(ErrorKind.BROWSER_LAUNCH_FAILED, message, stage=stage, cause=exc)


def _describe(exc: BaseException) -> str:
    # Some driver exceptions do not have a usable string representation
    try:
        details = str(exc)
    except Exception:
        details = ""
    first_line = details.strip().splitlines()[0] if details.strip() else ""
    return f"{type(exc).__name__}: {first_line}" if first_line else type(exc).__name__


T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or a RenderError, never both."""

    value: Optional[T] = None
    error: Optional[RenderError] = None

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, error: RenderError) -> "Result[T]":
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value
