"""System message lookup for Win32 error codes."""
from __future__ import annotations

import logging

# Third-party imports
try:
    import pywintypes
    import win32api

    PYWIN32_AVAILABLE = True
except ImportError:
    PYWIN32_AVAILABLE = False
    pywintypes = None
    win32api = None

logger = logging.getLogger("stmkit.resultcodes.win32")


def format_win32_message(code: int) -> str | None:
    """Return the system message text for a Win32 error *code*, if the host has one.

    Returns ``None`` on hosts without pywin32 and for codes the system message
    table does not describe.
    """

    if not PYWIN32_AVAILABLE:
        return None

    try:
        text = win32api.FormatMessage(int(code))
    except pywintypes.error:
        logger.debug("No system message for Win32 code", extra={"win32_code": code})
        return None

    text = (text or "").strip()
    return text or None


__all__ = ["PYWIN32_AVAILABLE", "format_win32_message"]
