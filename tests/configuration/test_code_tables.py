from __future__ import annotations

import os
from pathlib import Path

import pytest

from stmkit.configuration import (
    CODE_TABLES_ENV_VAR,
    load_code_tables,
    table_paths_from_environment,
)
from stmkit.errors import InputValidationError
from stmkit.resultcodes import DEFAULT_TABLES, decode_result_code


@pytest.fixture(autouse=True)
def clear_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CODE_TABLES_ENV_VAR, raising=False)


def _write(path: Path, content: str) -> Path:
    path.write_text(content, encoding="utf-8")
    return path


def test_defaults_returned_without_extra_tables() -> None:
    assert load_code_tables() is DEFAULT_TABLES


def test_site_table_adds_codes(tmp_path: Path) -> None:
    table = _write(
        tmp_path / "site.yaml",
        """
task_scheduler:
  0x80041399:
    name: SCHED_E_SITE_SPECIFIC
    message: >
      Site specific
      failure.
common:
  "0x8007052E":
    name: ERROR_LOGON_FAILURE
    message: The user name or password is incorrect.
""",
    )

    tables = load_code_tables([table])

    assert tables.task_scheduler[0x80041399].message == "Site specific failure."
    assert tables.common[0x8007052E].name == "ERROR_LOGON_FAILURE"
    assert tables.details().sources == (table.resolve(),)
    assert tables.details().task_scheduler_count == len(DEFAULT_TABLES.task_scheduler) + 1

    info = decode_result_code(0x8007052E, message_lookup=None, tables=tables)
    assert info is not None
    assert info.constant_name == "ERROR_LOGON_FAILURE"


def test_negative_codes_are_stored_as_unsigned(tmp_path: Path) -> None:
    table = _write(
        tmp_path / "signed.yaml",
        "common:\n  -2147024891:\n    name: E_ACCESSDENIED\n    message: Access is denied.\n",
    )

    tables = load_code_tables([table])

    assert tables.common[0x80070005].message == "Access is denied."


def test_message_override_keeps_builtin_name(tmp_path: Path) -> None:
    table = _write(
        tmp_path / "override.yaml",
        "task_scheduler:\n  0x41300:\n    name: SCHED_S_TASK_READY\n    message: Ready.\n",
    )

    tables = load_code_tables([table])

    assert tables.task_scheduler[0x41300].message == "Ready."
    assert DEFAULT_TABLES.task_scheduler[0x41300].message != "Ready."


def test_renaming_builtin_code_is_rejected(tmp_path: Path) -> None:
    table = _write(
        tmp_path / "rename.yaml",
        "task_scheduler:\n  0x41300:\n    name: SCHED_S_READY\n    message: Ready.\n",
    )

    with pytest.raises(InputValidationError) as exc:
        load_code_tables([table])

    assert "SCHED_S_TASK_READY" in exc.value.message


def test_reusing_constant_name_is_rejected(tmp_path: Path) -> None:
    table = _write(
        tmp_path / "dupe.yaml",
        "common:\n  0x80070099:\n    name: E_ACCESSDENIED\n    message: Again.\n",
    )

    with pytest.raises(InputValidationError) as exc:
        load_code_tables([table])

    assert "already identifies 0x80070005" in exc.value.message


@pytest.mark.parametrize(
    "content",
    [
        "extra: {}\n",
        "- not a mapping\n",
        "common:\n  banana:\n    name: X\n    message: Y\n",
        "common:\n  0x1:\n    name: X\n",
        "common: [1, 2]\n",
        "common: {0x1: {name: X, message: Y}\n",
    ],
)
def test_malformed_tables_raise(tmp_path: Path, content: str) -> None:
    table = _write(tmp_path / "bad.yaml", content)

    with pytest.raises(InputValidationError):
        load_code_tables([table])


def test_missing_table_raises(tmp_path: Path) -> None:
    with pytest.raises(InputValidationError) as exc:
        load_code_tables([tmp_path / "absent.yaml"])

    assert CODE_TABLES_ENV_VAR in (exc.value.remediation or "")


def test_environment_tables_are_merged(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    first = _write(tmp_path / "a.yaml", "common:\n  0x80070020:\n    name: E_A\n    message: A.\n")
    second = _write(tmp_path / "b.yaml", "common:\n  0x80070021:\n    name: E_B\n    message: B.\n")
    monkeypatch.setenv(CODE_TABLES_ENV_VAR, os.pathsep.join([str(first), "", str(second)]))

    assert table_paths_from_environment() == (first, second)

    tables = load_code_tables()
    assert {0x80070020, 0x80070021} <= set(tables.common)
    assert load_code_tables(include_environment=False) is DEFAULT_TABLES
