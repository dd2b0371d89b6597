from __future__ import annotations

import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

from stmkit import __version__
from stmkit.cli import ExitCode, app, configure_logging
from stmkit.configuration import CODE_TABLES_ENV_VAR

runner = CliRunner()


@pytest.fixture(autouse=True)
def reset_logging_state() -> None:
    """Ensure each test runs with a clean logging configuration."""

    configure_logging._configured = False  # type: ignore[attr-defined]
    configure_logging._level = logging.INFO  # type: ignore[attr-defined]
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)
    yield
    root.handlers.clear()
    root.setLevel(logging.NOTSET)
    configure_logging._configured = False  # type: ignore[attr-defined]
    configure_logging._level = logging.INFO  # type: ignore[attr-defined]


@pytest.fixture(autouse=True)
def stub_host_lookups(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep CLI tests independent of the host message table and account database."""

    def _fake_message(code: int) -> str | None:
        return {5: "Access is denied."}.get(code)

    def _fake_resolver(account: str) -> str:
        if account.upper() == "CONTOSO\\SVC-BACKUP":
            return "S-1-5-21-1-2-3-1107"
        raise LookupError(account)

    monkeypatch.setattr("stmkit.orchestration.runner.format_win32_message", _fake_message)
    monkeypatch.setattr("stmkit.orchestration.runner.resolve_account_sid", _fake_resolver)
    monkeypatch.delenv(CODE_TABLES_ENV_VAR, raising=False)


def _normalize(output: str) -> str:
    """Collapse whitespace to simplify assertions across Rich formatting."""

    return " ".join(output.split())


def test_root_help_lists_commands() -> None:
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == int(ExitCode.SUCCESS)
    normalized = _normalize(result.output)
    assert "decode" in normalized
    assert "xpath" in normalized
    assert "--quiet" in normalized


def test_version_flag_prints_version() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == int(ExitCode.SUCCESS)
    assert result.output.strip() == __version__


def test_decode_renders_report() -> None:
    result = runner.invoke(app, ["decode", "0x8004131F", "267008"], catch_exceptions=False)

    assert result.exit_code == int(ExitCode.SUCCESS)
    output = result.output
    assert "Result Code Report" in output
    assert "SCHED_E_ALREADY_RUNNING" in output
    assert "SCHED_S_TASK_READY" in output
    assert "Decoded 2 result code(s): 1 failure(s), 0 without a known meaning" in _normalize(output)


def test_decode_never_fails_on_unparseable_codes() -> None:
    result = runner.invoke(app, ["decode", "not-a-code"], catch_exceptions=False)

    assert result.exit_code == int(ExitCode.SUCCESS)
    assert "Unable to parse result code" in result.output
    assert "1 without a known meaning" in _normalize(result.output)


def test_decode_wide_lists_win32_message() -> None:
    result = runner.invoke(app, ["decode", "--wide", "0x80070005"], catch_exceptions=False)

    assert result.exit_code == int(ExitCode.SUCCESS)
    assert "[Win32] E_ACCESSDENIED: General access denied error." in result.output
    assert "[Win32]: Access is denied." in result.output


def test_decode_reads_codes_from_file(tmp_path: Path) -> None:
    codes = tmp_path / "last run results.txt"
    codes.write_bytes("# Get-ScheduledTaskInfo export\r\n267009\r\n0x80041326\r\n".encode("utf-16"))

    result = runner.invoke(
        app, ["decode", "--from-file", str(codes)], catch_exceptions=False
    )

    assert result.exit_code == int(ExitCode.SUCCESS)
    assert "SCHED_S_TASK_RUNNING" in result.output
    assert "0x80041326" in result.output


def test_decode_merges_extra_table(tmp_path: Path) -> None:
    table = tmp_path / "site.yaml"
    table.write_text(
        "task_scheduler:\n  0x80041399:\n    name: SCHED_E_SITE_SPECIFIC\n    message: Site failure.\n",
        encoding="utf-8",
    )

    result = runner.invoke(
        app, ["decode", "--table", str(table), "0x80041399"], catch_exceptions=False
    )

    assert result.exit_code == int(ExitCode.SUCCESS)
    assert "SCHED_E_SITE_SPECIFIC" in result.output


def test_decode_rejects_invalid_table(tmp_path: Path) -> None:
    table = tmp_path / "broken.yaml"
    table.write_text("other: {}\n", encoding="utf-8")

    result = runner.invoke(
        app, ["decode", "--table", str(table), "0x1"], catch_exceptions=False
    )

    assert result.exit_code == int(ExitCode.INVALID_INPUT)
    assert "unknown sections" in _normalize(result.output)


def test_decode_requires_codes() -> None:
    result = runner.invoke(app, ["decode"], catch_exceptions=False)

    assert result.exit_code == int(ExitCode.INVALID_INPUT)
    assert "No result codes supplied." in result.output


def test_quiet_decode_prints_only_the_table() -> None:
    result = runner.invoke(app, ["--quiet", "decode", "267008"], catch_exceptions=False)

    assert result.exit_code == int(ExitCode.SUCCESS)
    assert "Result Code Report" not in result.output
    assert "Decoded 1 result code(s)" not in result.output
    assert result.output.splitlines()[0].startswith("CODE")
    assert getattr(configure_logging, "_level", logging.INFO) == logging.WARNING


def test_xpath_prints_filter() -> None:
    result = runner.invoke(
        app,
        ["--quiet", "xpath", "--id", "4624", "--id", "4625", "--level", "Critical"],
        catch_exceptions=False,
    )

    assert result.exit_code == int(ExitCode.SUCCESS)
    assert result.output.strip() == (
        "*[System[((EventID=4624) or (EventID=4625)) and (Level=1)]]"
    )


def test_xpath_named_data_options() -> None:
    result = runner.invoke(
        app,
        [
            "--quiet",
            "xpath",
            "--named-data",
            "TargetUserName=alice",
            "--named-data",
            "TargetUserName=bob",
            "--named-data",
            "LogonType",
            "--named-data-exclude",
            "IpAddress=-",
        ],
        catch_exceptions=False,
    )

    assert result.exit_code == int(ExitCode.SUCCESS)
    assert result.output.strip() == (
        "(*[EventData[(Data[@Name='TargetUserName'] = 'alice' or "
        "Data[@Name='TargetUserName'] = 'bob') and (Data[@Name='LogonType'])]]) and "
        "(*[EventData[Data[@Name='IpAddress'] != '-']])"
    )


def test_xpath_resolves_account_names() -> None:
    result = runner.invoke(
        app,
        ["--quiet", "xpath", "--user-id", "CONTOSO\\svc-backup", "--user-id", "S-1-5-18"],
        catch_exceptions=False,
    )

    assert result.exit_code == int(ExitCode.SUCCESS)
    assert result.output.strip() == (
        "*[System[Security[@UserID='S-1-5-21-1-2-3-1107' or @UserID='S-1-5-18']]]"
    )


def test_xpath_reports_unresolvable_user() -> None:
    result = runner.invoke(app, ["xpath", "--user-id", "not-a-sid"], catch_exceptions=False)

    assert result.exit_code == int(ExitCode.IDENTITY_ERROR)
    combined = _normalize(result.output)
    assert "Error: User id 'not-a-sid' is not a valid SID and could not be resolved." in combined
    assert "Remediation:" in combined


def test_xpath_rejects_unknown_level() -> None:
    result = runner.invoke(app, ["xpath", "--level", "Fatal"], catch_exceptions=False)

    assert result.exit_code == int(ExitCode.INVALID_INPUT)
    assert "Unknown event level 'Fatal'." in _normalize(result.output)


def test_xpath_rejects_named_data_without_field() -> None:
    result = runner.invoke(app, ["xpath", "--named-data", "=value"], catch_exceptions=False)

    assert result.exit_code == int(ExitCode.INVALID_INPUT)
    assert "has no field name" in _normalize(result.output)


def test_xpath_without_criteria_is_empty() -> None:
    result = runner.invoke(app, ["xpath"], catch_exceptions=False)

    assert result.exit_code == int(ExitCode.SUCCESS)
    assert "the filter is empty and matches every event" in _normalize(result.output)
    assert "*[" not in result.output


def test_xpath_options_override_profile(tmp_path: Path) -> None:
    profile = tmp_path / "profile.yaml"
    profile.write_text("id: [101]\nprovider_name: Microsoft-Windows-TaskScheduler\n", encoding="utf-8")

    result = runner.invoke(
        app,
        ["--quiet", "xpath", "--criteria", str(profile), "--id", "201"],
        catch_exceptions=False,
    )

    assert result.exit_code == int(ExitCode.SUCCESS)
    assert result.output.strip() == (
        "*[System[(EventID=201) and (Provider[@Name='Microsoft-Windows-TaskScheduler'])]]"
    )


def test_xpath_reports_bad_profile(tmp_path: Path) -> None:
    profile = tmp_path / "profile.yaml"
    profile.write_text("eventid: [101]\n", encoding="utf-8")

    result = runner.invoke(app, ["xpath", "--criteria", str(profile)], catch_exceptions=False)

    assert result.exit_code == int(ExitCode.INVALID_INPUT)
    assert "unknown keys: eventid" in _normalize(result.output)


def test_health_flag_reports_status(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("stmkit.resultcodes.win32.PYWIN32_AVAILABLE", False)
    monkeypatch.setattr("stmkit.eventfilter.identity.PYWIN32_AVAILABLE", False)

    result = runner.invoke(app, ["--health"], catch_exceptions=False)

    assert result.exit_code == int(ExitCode.SUCCESS)
    combined = _normalize(result.output)
    assert "stmkit environment diagnostics" in combined
    assert "[PASS] Python runtime" in combined
    assert "[FAIL] Win32 message lookup" in combined
    assert "Remediation" in combined
    assert "Overall status: FAIL" in combined
