"""Reading code-list files exported by Windows tooling."""

from __future__ import annotations

import codecs
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from stmkit.errors import InputValidationError

# PowerShell 5 `Out-File` and `>` write UTF-16 LE with a BOM.
_UTF16_BOMS: tuple[bytes, ...] = (codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)
_FALLBACK_ENCODINGS: tuple[str, ...] = ("utf-8-sig", "cp1252")
_ENCODING_NAMES: dict[str, str] = {
    "utf-16": "UTF-16",
    "utf-8-sig": "UTF-8 (with BOM)",
    "utf-8": "UTF-8",
    "cp1252": "Windows-1252",
}
_TOKEN_SEPARATORS = re.compile(r"[\s,;]+")
_LINE_BREAKS = re.compile(r"\r\r\n|\r\n|\r")


@dataclass(frozen=True)
class LoadedDocument:
    """Decoded text of a file, with the codec that produced it."""

    path: Path
    text: str
    encoding: str

    @property
    def display_name(self) -> str:
        return format_display_path(self.path)

    @property
    def display_encoding(self) -> str:
        return _ENCODING_NAMES.get(self.encoding, self.encoding)


def normalize_newlines(text: str) -> str:
    """Rewrite CRLF, lone CR and the doubled ``\\r\\r\\n`` of text-mode writes as LF."""

    return _LINE_BREAKS.sub("\n", text)


def format_display_path(path: Path) -> str:
    """Return the bare file name, quoted when it contains spaces."""

    return f'"{path.name}"' if " " in path.name else path.name


def load_text_document(path: Path, description: str) -> LoadedDocument:
    """Decode *path* as UTF-16 when it carries a UTF-16 BOM, else UTF-8 then Windows-1252.

    Raises:
        InputValidationError: If the file cannot be read or decoded.
    """

    shown = format_display_path(path)
    try:
        raw = path.read_bytes()
    except OSError as exc:  # pragma: no cover - permission and locking failures
        raise InputValidationError(
            message=f"Cannot open the {description} file {shown}.",
            remediation="Check that the file exists, is readable and is not held open by another program.",
        ) from exc

    candidates = ("utf-16",) if raw.startswith(_UTF16_BOMS) else _FALLBACK_ENCODINGS
    failure: UnicodeDecodeError | None = None
    for encoding in candidates:
        try:
            decoded = raw.decode(encoding)
        except UnicodeDecodeError as exc:
            failure = exc
        else:
            return LoadedDocument(path=path, text=normalize_newlines(decoded), encoding=encoding)

    tried = ", ".join(_ENCODING_NAMES[encoding] for encoding in candidates)
    raise InputValidationError(
        message=f"The {description} file {shown} could not be decoded as {tried}.",
        remediation="Save the file as UTF-8 or UTF-16 and try again.",
    ) from failure


def iter_code_tokens(text: str) -> Iterator[str]:
    """Yield code tokens separated by whitespace, commas or semicolons.

    Everything after ``#`` on a line is a comment.
    """

    for line in text.splitlines():
        content, _, _comment = line.partition("#")
        yield from filter(None, _TOKEN_SEPARATORS.split(content))


__all__ = [
    "LoadedDocument",
    "format_display_path",
    "iter_code_tokens",
    "load_text_document",
    "normalize_newlines",
]
