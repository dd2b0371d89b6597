"""Loading of site-specific result code tables from YAML."""
from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from types import MappingProxyType

import yaml

from stmkit.errors import InputValidationError
from stmkit.resultcodes.tables import DEFAULT_TABLES, ResultCodeEntry, ResultCodeTables

logger = logging.getLogger("stmkit.configuration.code_tables")

CODE_TABLES_ENV_VAR = "STMKIT_RESULT_CODES"

_SECTIONS = ("task_scheduler", "common")
_BUILT_IN_LABEL = "built-in table"
_UINT32_MASK = 0xFFFFFFFF


def table_paths_from_environment() -> tuple[Path, ...]:
    """Return extra table paths listed in ``STMKIT_RESULT_CODES``."""

    raw = os.getenv(CODE_TABLES_ENV_VAR, "")
    return tuple(Path(item) for item in raw.split(os.pathsep) if item.strip())


def load_code_tables(
    extra_paths: Sequence[Path] | None = None,
    *,
    include_environment: bool = True,
) -> ResultCodeTables:
    """Merge YAML code tables over the built-in tables.

    Files from ``STMKIT_RESULT_CODES`` are merged first, then *extra_paths*. A file
    may override the message of a known code but not rename it, and a constant
    name may only identify one code per section.
    """

    candidate_paths: list[Path] = []
    if include_environment:
        candidate_paths.extend(table_paths_from_environment())
    if extra_paths:
        candidate_paths.extend(extra_paths)

    if not candidate_paths:
        return DEFAULT_TABLES

    sections: dict[str, dict[int, ResultCodeEntry]] = {
        "task_scheduler": dict(DEFAULT_TABLES.task_scheduler),
        "common": dict(DEFAULT_TABLES.common),
    }
    code_registry: dict[str, dict[int, tuple[str, str]]] = {
        section: {code: (entry.name, _BUILT_IN_LABEL) for code, entry in table.items()}
        for section, table in sections.items()
    }
    name_registry: dict[str, dict[str, tuple[int, str]]] = {
        section: {entry.name: (code, _BUILT_IN_LABEL) for code, entry in table.items()}
        for section, table in sections.items()
    }
    resolved_sources: list[Path] = []

    for path in candidate_paths:
        resolved = _resolve_path(path)
        payload = _load_yaml(resolved)
        unknown = sorted(str(key) for key in payload if key not in _SECTIONS)
        if unknown:
            raise InputValidationError(
                message=f"Code table {resolved} has unknown sections: {', '.join(unknown)}.",
                remediation="Use only the 'task_scheduler' and 'common' sections.",
            )
        for section in _SECTIONS:
            _apply_section(
                payload.get(section),
                section,
                sections[section],
                code_registry[section],
                name_registry[section],
                resolved,
            )
        resolved_sources.append(resolved)

    tables = ResultCodeTables(
        task_scheduler=MappingProxyType(sections["task_scheduler"]),
        common=MappingProxyType(sections["common"]),
        sources=tuple(resolved_sources),
    )
    details = tables.details()
    logger.info(
        "Loaded result code tables",
        extra={
            "code_table_sources": [str(source) for source in details.sources],
            "task_scheduler_codes": details.task_scheduler_count,
            "common_codes": details.common_count,
        },
    )
    return tables


def _resolve_path(path: Path) -> Path:
    candidate = path.expanduser()
    try:
        resolved = candidate.resolve()
    except OSError:
        resolved = candidate

    if not resolved.exists() or not resolved.is_file():
        raise InputValidationError(
            message=f"Code table file {resolved} does not exist or is not a file.",
            remediation=(
                f"Verify the path, or remove it from --table / {CODE_TABLES_ENV_VAR}."
            ),
        )
    return resolved


def _load_yaml(path: Path) -> dict:
    try:
        raw_text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise InputValidationError(
            message=f"Unable to read code table file {path}.",
            remediation="Check file permissions and save the file as UTF-8.",
        ) from exc

    try:
        loaded = yaml.safe_load(raw_text) or {}
    except yaml.YAMLError as exc:
        raise InputValidationError(
            message=f"Code table file {path} contains invalid YAML.",
            remediation="Ensure the file follows the documented schema.",
        ) from exc

    if not isinstance(loaded, dict):
        raise InputValidationError(
            message=f"Code table file {path} must define a mapping at the root level.",
            remediation="Provide 'task_scheduler' and/or 'common' mappings.",
        )
    return loaded


def _apply_section(
    data: object,
    section: str,
    table: dict[int, ResultCodeEntry],
    code_registry: dict[int, tuple[str, str]],
    name_registry: dict[str, tuple[int, str]],
    source: Path,
) -> None:
    if data is None:
        return
    if not isinstance(data, Mapping):
        raise InputValidationError(
            message=f"Section '{section}' in {source} must map codes to entries.",
            remediation="Example: 0x80041399: {name: SCHED_E_EXAMPLE, message: ...}.",
        )

    for raw_code, raw_entry in data.items():
        code = _normalize_code(raw_code, section, source)
        entry = _normalize_entry(raw_entry, code, section, source)

        existing = code_registry.get(code)
        if existing and existing[0] != entry.name:
            previous, previous_source = existing
            raise InputValidationError(
                message=(
                    f"Code 0x{code:08X} in {source} is named '{entry.name}' but was "
                    f"previously defined as '{previous}' in {previous_source}."
                ),
                remediation="Reuse the existing constant name or remove the duplicate entry.",
            )

        claimed = name_registry.get(entry.name)
        if claimed and claimed[0] != code:
            previous_code, previous_source = claimed
            raise InputValidationError(
                message=(
                    f"Constant '{entry.name}' in {source} is assigned to 0x{code:08X} but "
                    f"already identifies 0x{previous_code:08X} in {previous_source}."
                ),
                remediation="Give each code a distinct constant name.",
            )

        code_registry[code] = (entry.name, str(source))
        name_registry[entry.name] = (code, str(source))
        table[code] = entry


def _normalize_code(value: object, section: str, source: Path) -> int:
    code: int | None = None
    if isinstance(value, int) and not isinstance(value, bool):
        code = value
    elif isinstance(value, str):
        try:
            code = int(value.strip(), 0)
        except ValueError:
            code = None

    if code is None or not -0x80000000 <= code <= _UINT32_MASK:
        raise InputValidationError(
            message=f"Code {value!r} in section '{section}' of {source} is not a 32-bit code.",
            remediation="Write codes as decimal or 0x-prefixed hexadecimal integers.",
        )
    return code & _UINT32_MASK


def _normalize_entry(value: object, code: int, section: str, source: Path) -> ResultCodeEntry:
    if not isinstance(value, Mapping):
        raise InputValidationError(
            message=(
                f"Entry for 0x{code:08X} in section '{section}' of {source} must provide "
                "'name' and 'message'."
            ),
            remediation="Example: 0x80041399: {name: SCHED_E_EXAMPLE, message: ...}.",
        )

    name = value.get("name")
    message = value.get("message")
    if not isinstance(name, str) or not name.strip():
        raise InputValidationError(
            message=f"Entry for 0x{code:08X} in {source} has no constant name.",
            remediation="Add a non-empty 'name' value.",
        )
    if not isinstance(message, str) or not message.strip():
        raise InputValidationError(
            message=f"Entry for 0x{code:08X} in {source} has no message.",
            remediation="Add a non-empty 'message' value.",
        )
    return ResultCodeEntry(name=name.strip(), message=" ".join(message.split()))


__all__ = [
    "CODE_TABLES_ENV_VAR",
    "load_code_tables",
    "table_paths_from_environment",
]
