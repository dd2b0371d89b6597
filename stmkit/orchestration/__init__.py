"""Orchestration layer for stmkit."""
from __future__ import annotations

from .diagnostics import HealthCheck, HealthReport, collect_health_report
from .runner import ExecutionOutcome, handle_domain_error, run_decode, run_filter

__all__ = [
    "ExecutionOutcome",
    "HealthCheck",
    "HealthReport",
    "collect_health_report",
    "handle_domain_error",
    "run_decode",
    "run_filter",
]
