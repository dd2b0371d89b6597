"""Reporting helpers for stmkit CLI output."""
from __future__ import annotations

from .renderer import ReportEnvelope, ReportRenderOptions, render_result_codes

__all__ = [
    "ReportEnvelope",
    "ReportRenderOptions",
    "render_result_codes",
]
