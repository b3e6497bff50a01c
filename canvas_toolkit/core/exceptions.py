from __future__ import annotations

"""Exception classes for the Canvas Toolkit core.

Structural edits never raise for routine failures (missing ids, rejected
moves); they return an unsuccessful OperationResult instead. Exceptions are
reserved for malformed external input and programming errors.
"""

from typing import List, Optional


class CanvasToolkitError(Exception):
    """Base exception for all toolkit errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.cause = cause


class UnknownElementTypeError(CanvasToolkitError):
    """Raised when an element type is not part of the element registry."""

    def __init__(self, element_type: str) -> None:
        super().__init__(f"Unknown element type '{element_type}'.")
        self.element_type = element_type


class ImportValidationError(CanvasToolkitError):
    """Raised when an imported document payload is malformed.

    The store never applies any part of a payload that fails validation;
    ``validation_errors`` lists every problem found so the UI can show them.
    """

    def __init__(self, message: str, validation_errors: Optional[List[str]] = None,
                 cause: Optional[Exception] = None) -> None:
        super().__init__(message, cause)
        self.validation_errors = validation_errors or []

    def __str__(self) -> str:
        base = super().__str__()
        if self.validation_errors:
            return f"{base} ({'; '.join(self.validation_errors)})"
        return base
