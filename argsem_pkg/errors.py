from __future__ import annotations


class ArgumentationError(Exception):
    """Base class for everything the reasoning core raises on purpose."""


class MalformedFrameworkError(ArgumentationError, ValueError):
    """A framework or theory references something it does not own."""


class NonFlatTheoryError(ArgumentationError):
    """The ABA -> Dung reduction is only sound for flat theories."""


class OracleTimeoutError(ArgumentationError, TimeoutError):
    """An external decision procedure ran past its time bound."""

    def __init__(self, timeout: float, calls: int = 0):
        super().__init__(f"oracle exceeded {timeout}s after {calls} solver calls")
        self.timeout = timeout
        self.calls = calls


class CanceledError(ArgumentationError):
    """Enumeration stopped by a cancellation request; no result is returned."""

    def __init__(self, visited: int = 0):
        super().__init__(f"enumeration canceled after {visited} candidates")
        self.visited = visited


class UnsupportedSemanticsError(ArgumentationError, ValueError):
    """The semantics has no meaning for the given kind of framework."""
