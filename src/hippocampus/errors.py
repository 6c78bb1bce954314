"""Exception types shared across the import core."""

from __future__ import annotations


class HippocampusError(Exception):
    """Base class for errors raised by the import core."""


class StoreError(HippocampusError):
    """A failed read or write against an episode store.

    Every backend reports failures with a string ``code``. PostgreSQL
    SQLSTATE values are used as the common vocabulary, so ``"23505"``
    always means a unique-constraint violation.
    """

    def __init__(self, message: str, code: str = ""):
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"StoreError(code={self.code!r}, message={self.message!r})"


class TaxonomyConfigError(HippocampusError, LookupError):
    """A pattern key has no entry in the taxonomy tables."""
