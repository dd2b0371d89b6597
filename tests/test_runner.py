from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from stmkit.configuration import CODE_TABLES_ENV_VAR
from stmkit.errors import IdentityResolutionError, StmError
from stmkit.eventfilter import FilterCriteria
from stmkit.exit_codes import ExitCode
from stmkit.orchestration import handle_domain_error, run_decode, run_filter


@pytest.fixture(autouse=True)
def isolate_host(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("stmkit.orchestration.runner.format_win32_message", lambda code: None)
    monkeypatch.delenv(CODE_TABLES_ENV_VAR, raising=False)


def test_run_decode_combines_arguments_and_file(tmp_path: Path) -> None:
    code_file = tmp_path / "codes.txt"
    code_file.write_text("0x41303\n", encoding="utf-8")

    outcome = run_decode(["267008", " "], code_file=code_file, wide=True)

    assert outcome.exit_code == ExitCode.SUCCESS
    assert outcome.report is not None
    assert [info.constant_name for info in outcome.report.results] == [
        "SCHED_S_TASK_READY",
        "SCHED_S_TASK_HAS_NOT_RUN",
    ]
    assert outcome.report.render_options.wide is True
    assert outcome.message is not None and outcome.message.startswith("Decoded 2 result code(s)")


def test_run_decode_maps_validation_errors(tmp_path: Path) -> None:
    outcome = run_decode([], code_file=None)

    assert outcome.exit_code == ExitCode.INVALID_INPUT
    assert outcome.status == "failure"
    assert outcome.message == "No result codes supplied."
    assert outcome.remediation is not None


def test_run_filter_returns_query() -> None:
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    outcome = run_filter(FilterCriteria(start_time=now - timedelta(minutes=5)), now=now)

    assert outcome.exit_code == ExitCode.SUCCESS
    assert outcome.output == "*[System[TimeCreated[timediff(@SystemTime) <= 300000]]]"
    assert outcome.message == f"Built XPath filter ({len(outcome.output)} characters)."


def test_run_filter_maps_identity_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    def _resolver(account: str) -> str:
        raise IdentityResolutionError(f"Account '{account}' could not be resolved to a SID.")

    monkeypatch.setattr("stmkit.orchestration.runner.resolve_account_sid", _resolver)

    outcome = run_filter(FilterCriteria(user_id=["CONTOSO\\ghost"]))

    assert outcome.exit_code == ExitCode.IDENTITY_ERROR
    assert outcome.output is None
    assert outcome.message == "Account 'CONTOSO\\ghost' could not be resolved to a SID."
    assert outcome.remediation == (
        "Pass SIDs directly or run on a Windows host that can resolve the account."
    )


def test_handle_domain_error_defaults_for_base_errors() -> None:
    outcome = handle_domain_error(StmError(""))

    assert outcome.exit_code == ExitCode.UNEXPECTED_ERROR
    assert outcome.message == "An unexpected error occurred."
