"""Error types raised while declaring pipeline parameters."""

from __future__ import annotations


class ReservedNameError(ValueError):
    """A parameter was declared under a name reserved for an implicit input."""

    def __init__(self, name: str, message: str) -> None:
        super().__init__(message)
        self.name = name
