"""Utility helpers for stmkit."""

from __future__ import annotations

from .io import (
    LoadedDocument,
    format_display_path,
    iter_code_tokens,
    load_text_document,
    normalize_newlines,
)

__all__ = [
    "LoadedDocument",
    "format_display_path",
    "iter_code_tokens",
    "load_text_document",
    "normalize_newlines",
]
