"""
Result types and error hierarchy for repotree.

This module provides:
1. Result[T, E] type for explicit error handling
2. The repotree exception hierarchy
3. Helper functions for Result operations

Two kinds of failure exist. Infrastructure faults (git exiting non-zero,
git output of an unexpected shape) are raised and abort the operation.
Working tree write failures are recoverable and come back as ``Err``.

Usage:
    from repotree.core.result import Err, Ok, Result, WorkingTreeError

    match await accessor.write_working_tree_path("notes.txt", "hello"):
        case Ok(_):
            ...
        case Err(err):
            print(err.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E", bound=Exception)
F = TypeVar("F", bound=Exception)


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Represents a successful result containing a value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Return the contained value."""
        return self.value

    def map_err(self, fn: Callable[[E], F]) -> Ok[T]:
        return self

    def and_then(self, fn: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """Chain operations that may fail."""
        return fn(self.value)


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Represents a failed result containing an error."""

    error: E

    def is_ok(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Raise the contained error."""
        raise self.error

    def map_err(self, fn: Callable[[E], F]) -> Err[F]:
        """Apply a function to the contained error."""
        return Err(fn(self.error))

    def and_then(self, fn: Callable[[T], Result[U, E]]) -> Err[E]:
        """Short-circuit for Err - returns self unchanged."""
        return self


Result = Ok[T] | Err[E]


# ---------------------------------------------------------------------------
# Error hierarchy
# ---------------------------------------------------------------------------


class RepoTreeError(Exception):
    """Base exception for all repotree errors."""

    def __init__(self, message: str, *, context: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{ctx_str}]"
        return self.message


class InfrastructureFault(RepoTreeError):
    """Raised when the repository or the git executable misbehaves.

    Faults are never returned as values and never retried. Callers that
    want to keep the process alive catch this class, log, and halt the
    current editing session.
    """


class GitFault(InfrastructureFault):
    """Raised when git cannot be launched or exits with a non-zero status.

    The context carries the argument list, return code and captured
    output for diagnostics.
    """


class InvalidOutputError(InfrastructureFault):
    """Raised when git output does not have the expected shape."""


class PathMismatchError(InfrastructureFault):
    """Raised when a tree listing names a path outside the queried directory."""


class WorkingTreeError(RepoTreeError):
    """Recoverable failure while writing into the working tree.

    Examples:
    - Permission denied creating a directory
    - Target path is an existing directory
    - Path escapes the repository root
    """


class ConfigurationError(RepoTreeError):
    """Raised for configuration issues.

    Examples:
    - Config file parse errors
    - Invalid config values
    """


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def try_result(fn: Callable[[], T], error_type: type[E] = RepoTreeError) -> Result[T, E]:
    """Execute a function and wrap the result in Ok/Err.

    Args:
        fn: Function to execute
        error_type: Exception type to catch (default: RepoTreeError)

    Returns:
        Ok(value) on success, Err(exception) on failure
    """
    try:
        return Ok(fn())
    except error_type as exc:
        return Err(exc)


__all__ = [
    "Ok",
    "Err",
    "Result",
    "RepoTreeError",
    "InfrastructureFault",
    "GitFault",
    "InvalidOutputError",
    "PathMismatchError",
    "WorkingTreeError",
    "ConfigurationError",
    "try_result",
]
