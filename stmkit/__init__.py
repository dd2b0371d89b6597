"""Scheduled task diagnostics: result code decoding and event log XPath filters."""
from __future__ import annotations

from .errors import IdentityResolutionError, InputValidationError, StmError

__all__ = (
    "__version__",
    "StmError",
    "InputValidationError",
    "IdentityResolutionError",
)

__version__ = "0.1.0"
