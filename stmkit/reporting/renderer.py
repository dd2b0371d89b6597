"""Rendering utilities for decoded result code reports."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from rich.cells import cell_len

from stmkit.resultcodes import ResultCodeInfo

_CODE_WIDTH = 18
_DECIMAL_WIDTH = 20
_STATUS_WIDTH = 7
_FACILITY_WIDTH = 17
_CONSTANT_WIDTH = 35
_MESSAGE_WIDTH = 60
_WIDE_MESSAGE_WIDTH = 90
_TITLE = "Result Code Report"
_PLACEHOLDER = "-- no result codes supplied --"
_MEANING_INDENT = "    "


@dataclass(frozen=True)
class ReportRenderOptions:
    """Layout switches: `quiet` drops the title and hint, `wide` lists every meaning."""

    quiet: bool = False
    wide: bool = False


@dataclass(frozen=True)
class ReportEnvelope:
    """Structured data needed to render the result code table."""

    results: tuple[ResultCodeInfo, ...]
    render_options: ReportRenderOptions

    @property
    def has_results(self) -> bool:
        """Return True when at least one code was decoded."""

        return bool(self.results)


def render_result_codes(envelope: ReportEnvelope) -> str:
    """Render decoded result codes as a fixed-width table."""

    options = envelope.render_options
    columns = _table_columns(wide=options.wide)

    lines: list[str] = []
    if not options.quiet:
        lines.append(_TITLE)
        lines.append("")
    lines.append(_format_header(columns))
    lines.append(_format_separator(columns))

    if not envelope.results:
        lines.append(_PLACEHOLDER)

    for info in envelope.results:
        lines.append(_format_row(info, columns))
        if options.wide:
            lines.extend(_meaning_lines(info))

    if not options.wide and not options.quiet and _has_hidden_meanings(envelope.results):
        lines.append("")
        lines.append("Tip: re-run with --wide to list every known meaning.")

    return "\n".join(lines)


def _table_columns(*, wide: bool) -> Sequence[tuple[str, int, str]]:
    message_width = _WIDE_MESSAGE_WIDTH if wide else _MESSAGE_WIDTH
    return (
        ("Code", _CODE_WIDTH, "left"),
        ("Decimal", _DECIMAL_WIDTH, "right"),
        ("Status", _STATUS_WIDTH, "left"),
        ("Facility", _FACILITY_WIDTH, "left"),
        ("Constant", _CONSTANT_WIDTH, "left"),
        ("Message", message_width, "left"),
    )


def _format_header(columns: Sequence[tuple[str, int, str]]) -> str:
    return " | ".join(_pad_text(title.upper(), width) for title, width, _ in columns).rstrip()


def _format_separator(columns: Sequence[tuple[str, int, str]]) -> str:
    return "-+-".join("-" * width for _, width, _ in columns)


def _format_row(info: ResultCodeInfo, columns: Sequence[tuple[str, int, str]]) -> str:
    column_map = {
        "Code": info.hex_code,
        "Decimal": str(info.result_code),
        "Status": "OK" if info.is_success else "FAIL",
        "Facility": info.facility,
        "Constant": info.constant_name or "--",
        "Message": info.message,
    }
    items = [
        _pad_text(column_map.get(title, ""), width, align=alignment)
        for title, width, alignment in columns
    ]
    return " | ".join(items).rstrip()


def _meaning_lines(info: ResultCodeInfo) -> list[str]:
    lines = []
    for meaning in info.meanings:
        label = f"[{meaning.source}]"
        if meaning.constant_name:
            label = f"{label} {meaning.constant_name}"
        lines.append(f"{_MEANING_INDENT}{label}: {_single_line(meaning.message)}")
    return lines


def _has_hidden_meanings(results: Sequence[ResultCodeInfo]) -> bool:
    return any(len(info.meanings) > 1 for info in results)


def _pad_text(value: str, width: int, *, align: str = "left") -> str:
    text = _single_line(value)
    if cell_len(text) > width:
        text = _crop(text, width - 3) + "..." if width > 3 else _crop(text, width)
    padding = " " * max(width - cell_len(text), 0)
    return padding + text if align == "right" else text + padding


def _crop(text: str, width: int) -> str:
    """Keep the longest prefix of *text* that fits in *width* terminal cells."""

    used = 0
    for index, char in enumerate(text):
        used += cell_len(char)
        if used > width:
            return text[:index]
    return text


def _single_line(value: str) -> str:
    # Win32 messages come in the host language; only whitespace is collapsed.
    return " ".join(str(value).split())


__all__ = [
    "ReportEnvelope",
    "ReportRenderOptions",
    "render_result_codes",
]
