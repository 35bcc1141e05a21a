"""versolve exception hierarchy.

All public exceptions inherit from VersolveError, giving callers a single
base class to catch when they want to handle any versolve-specific failure
without swallowing unrelated errors.

Every class carries a ``user_facing`` marker. Parse and resolution faults
describe problems in the caller's input and can be shown to an end user
verbatim; invariant violations are bugs and should crash loudly.
"""

from __future__ import annotations


class VersolveError(Exception):
    """Base exception for all versolve errors."""

    user_facing = False


class ParseError(VersolveError):
    """Raised when a version string, constraint string or catalog file is malformed.

    Parse faults are detected eagerly, before any search starts. When several
    problems are found at once, ``messages`` lists each of them.
    """

    user_facing = True

    def __init__(self, message: str, messages: list[str] | None = None) -> None:
        super().__init__(message)
        self.messages = list(messages) if messages else [message]


class ResolutionError(VersolveError):
    """Raised when no assignment of versions satisfies every constraint.

    Carries a human-readable explanation of one representative conflict and
    the name of the package most implicated in it.
    """

    user_facing = True

    def __init__(self, message: str, package: str | None = None) -> None:
        super().__init__(message)
        self.package = package


class SolverInvariantError(VersolveError):
    """Raised when an internal invariant of the solver is violated.

    Covers duplicate or out-of-order catalog registration, satisfaction
    checks against the wrong package, and choices made outside the surviving
    candidate set. These are programmer errors, never retryable.
    """


class SearchExhaustedError(SolverInvariantError):
    """Raised when the search space ran out without recording any conflict."""
