"""Classification of task result codes, HRESULTs and Win32 error codes.

A code is read as a 64-bit signed integer, its low 32 bits are split into the
HRESULT severity bit and facility field, and the known-code tables plus an
optional system message lookup supply the human-readable meanings.
"""
from __future__ import annotations

import logging
import math
import numbers
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Callable, Iterable, Iterator, Literal, Tuple

from stmkit.resultcodes.tables import (
    DEFAULT_TABLES,
    FACILITY_WIN32,
    ResultCodeEntry,
    ResultCodeTables,
    facility_name,
)
from stmkit.resultcodes.win32 import format_win32_message

logger = logging.getLogger("stmkit.resultcodes.decoder")

ResultSource = Literal["TaskScheduler", "Win32", "Unknown"]
Win32MessageLookup = Callable[[int], "str | None"]

SOURCE_TASK_SCHEDULER: ResultSource = "TaskScheduler"
SOURCE_WIN32: ResultSource = "Win32"
SOURCE_UNKNOWN: ResultSource = "Unknown"

UNPARSEABLE_MESSAGE = "Unable to parse result code"

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_UINT32_MASK = 0xFFFFFFFF
_UINT64_MASK = 0xFFFFFFFFFFFFFFFF
_INT32_MIN = -0x80000000
_LEGACY_CODE_LIMIT = 0x10000
_MAX_HEX_DIGITS = 16

_HEX_PATTERN = re.compile(r"^0[xX]([0-9A-Fa-f]+)$")
_DECIMAL_PATTERN = re.compile(r"^[+-]?[0-9]+$")


@dataclass(frozen=True)
class ResultMeaning:
    """One applicable interpretation of a result code."""

    source: ResultSource
    constant_name: str | None
    message: str


@dataclass(frozen=True)
class ResultCodeInfo:
    """Structured description of a decoded result code."""

    result_code: int
    hex_code: str
    facility: str
    facility_code: int
    is_success: bool
    constant_name: str | None
    message: str
    source: ResultSource
    meanings: Tuple[ResultMeaning, ...]

    def __post_init__(self) -> None:  # pragma: no cover - simple normalization
        object.__setattr__(self, "meanings", tuple(self.meanings))

    @property
    def severity(self) -> int:
        """Return the HRESULT severity bit (1 = failure) of the low 32 bits."""

        return (self.result_code & _UINT32_MASK) >> 31


def decode_result_code(
    code: object,
    *,
    message_lookup: Win32MessageLookup | None = format_win32_message,
    tables: ResultCodeTables = DEFAULT_TABLES,
) -> ResultCodeInfo | None:
    """Decode *code* into a :class:`ResultCodeInfo`.

    ``None``, empty and whitespace-only strings return ``None``. Input that cannot
    be read as a 64-bit integer yields an ``Unknown`` result instead of raising.
    Pass ``message_lookup=None`` to skip the Win32 message tier.
    """

    if code is None or (isinstance(code, str) and not code.strip()):
        return None

    value = _coerce_code(code)
    if value is None:
        logger.debug("Unable to parse result code", extra={"result_code_input": repr(code)})
        return _unparseable_result()

    return _decode_value(value, message_lookup=message_lookup, tables=tables)


def decode_result_codes(
    codes: Iterable[object],
    *,
    message_lookup: Win32MessageLookup | None = format_win32_message,
    tables: ResultCodeTables = DEFAULT_TABLES,
) -> Iterator[ResultCodeInfo]:
    """Decode each code in order, skipping null and blank inputs."""

    for code in codes:
        info = decode_result_code(code, message_lookup=message_lookup, tables=tables)
        if info is not None:
            yield info


def _coerce_code(code: object) -> int | None:
    # bool is Integral, so True decodes as 1.
    if isinstance(code, numbers.Integral):
        return _from_integral(int(code))
    if isinstance(code, Decimal):
        return _from_decimal(code)
    if isinstance(code, numbers.Real):
        return _from_float(float(code))
    if isinstance(code, str):
        return _from_text(code)
    return None


def _from_integral(value: int) -> int | None:
    if _INT64_MIN <= value <= _INT64_MAX:
        return value
    return None


def _from_decimal(value: Decimal) -> int | None:
    if not value.is_finite():
        return None
    return _from_integral(int(value.to_integral_value(rounding=ROUND_HALF_EVEN)))


def _from_float(value: float) -> int | None:
    if not math.isfinite(value):
        return None
    return _from_integral(round(value))


def _from_text(text: str) -> int | None:
    candidate = text.strip()

    hex_match = _HEX_PATTERN.match(candidate)
    if hex_match:
        digits = hex_match.group(1).lstrip("0") or "0"
        if len(digits) > _MAX_HEX_DIGITS:
            return None
        value = int(digits, 16)
        # Sixteen digits form a 64-bit two's-complement pattern.
        if value > _INT64_MAX:
            value -= 1 << 64
        return value

    if _DECIMAL_PATTERN.match(candidate):
        return _from_integral(int(candidate))

    return None


def _format_hex(value: int) -> str:
    if _INT32_MIN <= value <= _UINT32_MASK:
        return f"0x{value & _UINT32_MASK:08X}"
    return f"0x{value & _UINT64_MASK:016X}"


def _is_legacy_code(value: int) -> bool:
    return 0 <= value < _LEGACY_CODE_LIMIT


def _decode_value(
    value: int,
    *,
    message_lookup: Win32MessageLookup | None,
    tables: ResultCodeTables,
) -> ResultCodeInfo:
    pattern = value & _UINT32_MASK
    facility_code = (pattern >> 16) & 0x7FF
    severity = pattern >> 31
    legacy = _is_legacy_code(value)
    hex_code = _format_hex(value)

    meanings: list[ResultMeaning] = []
    table_key = pattern if _INT32_MIN <= value <= _UINT32_MASK else value

    scheduler_entry = tables.task_scheduler.get(table_key)
    if scheduler_entry is not None:
        _append_meaning(meanings, _from_entry(SOURCE_TASK_SCHEDULER, scheduler_entry))

    common_entry = tables.common.get(table_key)
    if common_entry is not None:
        _append_meaning(meanings, _from_entry(SOURCE_WIN32, common_entry))

    if message_lookup is not None:
        lookup_code: int | None = None
        if legacy:
            lookup_code = value
        elif facility_code == FACILITY_WIN32:
            lookup_code = pattern & 0xFFFF
        if lookup_code is not None:
            text = _lookup_message(message_lookup, lookup_code)
            if text:
                _append_meaning(meanings, ResultMeaning(SOURCE_WIN32, None, text))

    if not meanings:
        meanings.append(
            ResultMeaning(SOURCE_UNKNOWN, None, f"Unknown result code: {hex_code}")
        )

    primary = meanings[0]
    info = ResultCodeInfo(
        result_code=value,
        hex_code=hex_code,
        facility=facility_name(facility_code),
        facility_code=facility_code,
        is_success=value == 0 if legacy else severity == 0,
        constant_name=primary.constant_name,
        message=primary.message,
        source=primary.source,
        meanings=tuple(meanings),
    )
    logger.debug(
        "Decoded result code",
        extra={
            "result_code": value,
            "hex_code": hex_code,
            "facility": info.facility,
            "meaning_count": len(meanings),
        },
    )
    return info


def _from_entry(source: ResultSource, entry: ResultCodeEntry) -> ResultMeaning:
    return ResultMeaning(source=source, constant_name=entry.name, message=entry.message)


def _append_meaning(meanings: list[ResultMeaning], meaning: ResultMeaning) -> None:
    if any(existing.message == meaning.message for existing in meanings):
        return
    meanings.append(meaning)


def _lookup_message(message_lookup: Win32MessageLookup, code: int) -> str | None:
    try:
        text = message_lookup(code)
    except Exception:
        logger.warning("Win32 message lookup failed", exc_info=True, extra={"win32_code": code})
        return None
    if not text:
        return None
    return str(text).strip() or None


def _unparseable_result() -> ResultCodeInfo:
    meaning = ResultMeaning(SOURCE_UNKNOWN, None, UNPARSEABLE_MESSAGE)
    return ResultCodeInfo(
        result_code=0,
        hex_code=_format_hex(0),
        facility=facility_name(0),
        facility_code=0,
        is_success=False,
        constant_name=None,
        message=UNPARSEABLE_MESSAGE,
        source=SOURCE_UNKNOWN,
        meanings=(meaning,),
    )


__all__ = [
    "ResultCodeInfo",
    "ResultMeaning",
    "ResultSource",
    "SOURCE_TASK_SCHEDULER",
    "SOURCE_UNKNOWN",
    "SOURCE_WIN32",
    "UNPARSEABLE_MESSAGE",
    "Win32MessageLookup",
    "decode_result_code",
    "decode_result_codes",
]
