"""Execution orchestrator for stmkit CLI commands."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Sequence

from stmkit.configuration import load_code_tables
from stmkit.errors import IdentityResolutionError, InputValidationError, StmError
from stmkit.eventfilter import FilterCriteria, build_xpath_filter, resolve_account_sid
from stmkit.exit_codes import ExitCode
from stmkit.reporting import ReportEnvelope, ReportRenderOptions
from stmkit.resultcodes import (
    SOURCE_UNKNOWN,
    ResultCodeInfo,
    decode_result_codes,
    format_win32_message,
)
from stmkit.utils import iter_code_tokens, load_text_document

logger = logging.getLogger("stmkit.orchestration.runner")


@dataclass(frozen=True)
class ExecutionOutcome:
    """Result of invoking a CLI workflow."""

    exit_code: ExitCode
    status: str
    message: str | None = None
    remediation: str | None = None
    report: ReportEnvelope | None = None
    output: str | None = None


_ERROR_MAPPINGS: tuple[
    tuple[type[StmError], ExitCode, str, str | None],
    ...,
] = (
    (
        InputValidationError,
        ExitCode.INVALID_INPUT,
        "Input validation failed.",
        "Check the command options, code tables and criteria profile.",
    ),
    (
        IdentityResolutionError,
        ExitCode.IDENTITY_ERROR,
        "A user id could not be resolved to a security identifier.",
        "Pass SIDs directly or run on a Windows host that can resolve the account.",
    ),
)


def run_decode(
    codes: Sequence[str],
    *,
    code_file: Path | None = None,
    table_paths: Sequence[Path] | None = None,
    quiet: bool = False,
    wide: bool = False,
) -> ExecutionOutcome:
    """Decode result codes from the command line and/or a code list file."""

    try:
        results, tables_summary = _perform_decode(
            codes=codes,
            code_file=code_file,
            table_paths=table_paths,
        )
    except StmError as error:
        return handle_domain_error(error)
    except Exception as error:  # pragma: no cover - unexpected failures
        return _unexpected_outcome(error)

    failures = sum(1 for info in results if not info.is_success)
    unknown = sum(1 for info in results if info.source == SOURCE_UNKNOWN)
    message = (
        f"Decoded {len(results)} result code(s): {failures} failure(s), "
        f"{unknown} without a known meaning ({tables_summary})."
    )

    return ExecutionOutcome(
        exit_code=ExitCode.SUCCESS,
        status="success",
        message=message,
        report=ReportEnvelope(
            results=results,
            render_options=ReportRenderOptions(quiet=quiet, wide=wide),
        ),
    )


def run_filter(
    criteria: FilterCriteria,
    *,
    now: datetime | None = None,
) -> ExecutionOutcome:
    """Build the XPath filter for *criteria*."""

    try:
        query = build_xpath_filter(criteria, now=now, sid_resolver=resolve_account_sid)
    except StmError as error:
        return handle_domain_error(error)
    except Exception as error:  # pragma: no cover - unexpected failures
        return _unexpected_outcome(error)

    if not query:
        message = "No criteria supplied; the filter is empty and matches every event."
    else:
        message = f"Built XPath filter ({len(query)} characters)."
    logger.info(message, extra={"xpath": query})

    return ExecutionOutcome(
        exit_code=ExitCode.SUCCESS,
        status="success",
        message=message,
        output=query,
    )


def _perform_decode(
    *,
    codes: Sequence[str],
    code_file: Path | None,
    table_paths: Sequence[Path] | None,
) -> tuple[tuple[ResultCodeInfo, ...], str]:
    tables = load_code_tables(table_paths)
    details = tables.details()

    tokens = list(codes)
    if code_file is not None:
        document = load_text_document(code_file, "code list")
        file_tokens = list(iter_code_tokens(document.text))
        logger.info(
            "Loaded code list",
            extra={
                "code_file": document.display_name,
                "code_file_encoding": document.display_encoding,
                "code_count": len(file_tokens),
            },
        )
        tokens.extend(file_tokens)

    if not any(token.strip() for token in tokens):
        raise InputValidationError(
            message="No result codes supplied.",
            remediation="Pass codes as arguments (e.g. 0x8004131F 267009) or use --from-file.",
        )

    results = tuple(
        decode_result_codes(tokens, message_lookup=format_win32_message, tables=tables)
    )
    summary = (
        f"{details.task_scheduler_count} Task Scheduler and {details.common_count} "
        "common table entries"
    )
    if details.sources:
        summary += f"; extra tables: {', '.join(path.name for path in details.sources)}"
    return results, summary


def handle_domain_error(error: StmError) -> ExecutionOutcome:
    """Log *error* with its remediation and turn it into a failed outcome.

    The error's own text wins; the mapping table only fills in blanks.
    """

    exit_code, fallback_message, fallback_remediation = _map_error(error)
    outcome = ExecutionOutcome(
        exit_code=exit_code,
        status="failure",
        message=error.message or fallback_message,
        remediation=error.remediation or fallback_remediation,
    )

    logger.error(
        outcome.message,
        extra={"exit_code": int(exit_code), "error_type": type(error).__name__},
    )
    if outcome.remediation:
        logger.error("Remediation: %s", outcome.remediation)
    return outcome


def _map_error(error: StmError) -> tuple[ExitCode, str, str | None]:
    mapped = next(
        (entry[1:] for entry in _ERROR_MAPPINGS if isinstance(error, entry[0])),
        None,
    )
    if mapped is not None:
        return mapped
    return (
        ExitCode.UNEXPECTED_ERROR,
        "An unexpected error occurred.",
        "Re-run without --quiet to see the full log and report the failing input.",
    )


def _unexpected_outcome(error: Exception) -> ExecutionOutcome:
    logger.exception("Unexpected error occurred during orchestration.")
    return ExecutionOutcome(
        exit_code=ExitCode.UNEXPECTED_ERROR,
        status="failure",
        message=str(error) or "An unexpected error occurred.",
        remediation="Re-run without --quiet and inspect the logs for details before retrying.",
    )


__all__ = ["ExecutionOutcome", "handle_domain_error", "run_decode", "run_filter"]
