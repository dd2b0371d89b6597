"""Result code decoding for scheduled task diagnostics."""
from __future__ import annotations

from .decoder import (
    SOURCE_TASK_SCHEDULER,
    SOURCE_UNKNOWN,
    SOURCE_WIN32,
    UNPARSEABLE_MESSAGE,
    ResultCodeInfo,
    ResultMeaning,
    ResultSource,
    Win32MessageLookup,
    decode_result_code,
    decode_result_codes,
)
from .tables import (
    COMMON_HRESULT_CODES,
    DEFAULT_TABLES,
    TASK_SCHEDULER_CODES,
    ResultCodeEntry,
    ResultCodeTables,
    ResultCodeTablesDetails,
    facility_name,
)
from .win32 import PYWIN32_AVAILABLE, format_win32_message

__all__ = [
    "COMMON_HRESULT_CODES",
    "DEFAULT_TABLES",
    "PYWIN32_AVAILABLE",
    "ResultCodeEntry",
    "ResultCodeInfo",
    "ResultCodeTables",
    "ResultCodeTablesDetails",
    "ResultMeaning",
    "ResultSource",
    "SOURCE_TASK_SCHEDULER",
    "SOURCE_UNKNOWN",
    "SOURCE_WIN32",
    "TASK_SCHEDULER_CODES",
    "UNPARSEABLE_MESSAGE",
    "Win32MessageLookup",
    "decode_result_code",
    "decode_result_codes",
    "facility_name",
    "format_win32_message",
]
