"""Exception hierarchy for the BMS log pipeline.

Only *structural* problems are raised: a call that is not given text, an
input file that cannot be read, or a configuration that cannot be used.
Problems inside the data (a malformed block, an out-of-range reading, a
degenerate time interval) are recovered where they occur and reported as
counts, never as exceptions.
"""

from __future__ import annotations

from typing import Any


class BmsLogError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class StructuralInputError(BmsLogError):
    """The input could not be read as text at all; fatal to the whole run."""


class ParseError(StructuralInputError):
    """The parser was called with something that is not a string."""


class InputFileError(StructuralInputError):
    """The log file is missing, too large, of the wrong type, or unreadable."""

    def __init__(self, message: str, file_path: str | None = None, **kwargs: Any) -> None:
        details = kwargs.pop("details", None) or {}
        if file_path:
            details["file_path"] = file_path
        super().__init__(message, details=details)


class ConfigError(BmsLogError):
    """A configuration value is missing, of the wrong type, or out of range."""
