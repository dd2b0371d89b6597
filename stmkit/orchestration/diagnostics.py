"""Offline diagnostics helpers for the stmkit CLI."""
from __future__ import annotations

import os
import platform
import sys
from dataclasses import dataclass
from typing import Tuple

from stmkit.configuration import CODE_TABLES_ENV_VAR, load_code_tables
from stmkit.errors import InputValidationError
from stmkit.eventfilter import identity
from stmkit.resultcodes import ResultCodeTablesDetails
from stmkit.resultcodes import win32 as win32_messages


@dataclass(frozen=True)
class HealthCheck:
    """Represents the outcome of an individual health validation."""

    name: str
    status: str
    detail: str
    remediation: str | None = None


@dataclass(frozen=True)
class HealthReport:
    """Aggregated health diagnostics for the stmkit CLI."""

    python_version: str
    platform_name: str
    table_details: ResultCodeTablesDetails | None
    checks: Tuple[HealthCheck, ...]

    @property
    def overall_status(self) -> str:
        """Summarise overall readiness based on individual checks."""

        return "PASS" if all(check.status == "PASS" for check in self.checks) else "FAIL"


def collect_health_report() -> HealthReport:
    """Gather offline diagnostics without touching event logs or task stores."""

    table_check, details = _check_code_tables()
    checks = (
        check_python_version(),
        _check_message_lookup(),
        _check_account_resolution(),
        table_check,
    )
    return HealthReport(
        python_version=format_python_version(),
        platform_name=platform.system() or "unknown",
        table_details=details,
        checks=checks,
    )


def check_python_version() -> HealthCheck:
    version = format_python_version()
    if sys.version_info >= (3, 10):
        detail = f"Detected Python {version}; compatible with stmkit requirements."
        return HealthCheck(name="Python runtime", status="PASS", detail=detail)

    return HealthCheck(
        name="Python runtime",
        status="FAIL",
        detail=f"Detected Python {version}; stmkit requires 3.10 or newer.",
        remediation="Install Python 3.10+ and recreate the virtual environment.",
    )


def _check_message_lookup() -> HealthCheck:
    if win32_messages.PYWIN32_AVAILABLE:
        return HealthCheck(
            name="Win32 message lookup",
            status="PASS",
            detail="pywin32 available; Win32 codes resolve to system messages.",
        )
    return HealthCheck(
        name="Win32 message lookup",
        status="FAIL",
        detail="pywin32 is not available; only built-in and YAML code tables are used.",
        remediation="On Windows, install pywin32 ('pip install pywin32').",
    )


def _check_account_resolution() -> HealthCheck:
    if identity.PYWIN32_AVAILABLE:
        return HealthCheck(
            name="Account resolution",
            status="PASS",
            detail="Account names in --user-id resolve to SIDs through the local LSA.",
        )
    return HealthCheck(
        name="Account resolution",
        status="FAIL",
        detail="Account names cannot be resolved on this host; pass SIDs to --user-id.",
        remediation="Run on Windows with pywin32 installed to resolve DOMAIN\\user names.",
    )


def _check_code_tables() -> tuple[HealthCheck, ResultCodeTablesDetails | None]:
    configured = os.getenv(CODE_TABLES_ENV_VAR, "")
    try:
        details = load_code_tables().details()
    except InputValidationError as exc:
        return (
            HealthCheck(
                name="Result code tables",
                status="FAIL",
                detail=f"{CODE_TABLES_ENV_VAR} is set but could not be loaded: {exc.message}",
                remediation=exc.remediation,
            ),
            None,
        )

    detail = (
        f"{details.task_scheduler_count} Task Scheduler and {details.common_count} common "
        "codes loaded"
    )
    if configured:
        detail += f" (extra tables: {', '.join(str(path) for path in details.sources)})"
    return HealthCheck(name="Result code tables", status="PASS", detail=detail + "."), details


def format_python_version() -> str:
    return f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"


__all__ = [
    "HealthCheck",
    "HealthReport",
    "check_python_version",
    "collect_health_report",
    "format_python_version",
]
