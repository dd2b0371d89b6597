"""Domain-specific exception hierarchy for stmkit."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass
class StmError(Exception):
    """Base exception for stmkit errors with optional remediation text."""

    message: str
    remediation: str | None = None

    def __post_init__(self) -> None:  # pragma: no cover - dataclass validation hook
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class InputValidationError(StmError):
    """Raised when the CLI, a criteria profile or a code table holds invalid input."""


class IdentityResolutionError(StmError):
    """Raised when a user id cannot be turned into a security identifier."""


__all__ = [
    "StmError",
    "InputValidationError",
    "IdentityResolutionError",
]
