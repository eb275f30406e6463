"""Error types shared across the query pipeline."""

from __future__ import annotations


class SearchParseError(ValueError):
    """Raised when a query string cannot be turned into an expression tree.

    Fatal to the current query: no partial tree is returned.
    """


class SearchConfigError(ValueError):
    """Raised for missing or inconsistent search configuration."""


class EngineError(RuntimeError):
    """Raised when one search engine invocation fails.

    Attributes:
        engine: Engine kind (e.g. "notmuch").
        exit_status: Process exit status or protocol status, if known.
        detail: Captured stderr or protocol message.
    """

    def __init__(self, engine: str, message: str, *, exit_status: int | str | None = None, detail: str = "") -> None:
        super().__init__(message)
        self.engine = engine
        self.exit_status = exit_status
        self.detail = detail

    def __str__(self) -> str:
        base = super().__str__()
        if self.exit_status is not None:
            base = f"{base} (status={self.exit_status})"
        if self.detail:
            base = f"{base}: {self.detail}"
        return base
