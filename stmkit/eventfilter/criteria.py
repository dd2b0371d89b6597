"""Dataclasses describing event log selection criteria."""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, fields
from datetime import date, datetime, time
from enum import IntEnum
from types import MappingProxyType
from typing import Tuple

from stmkit.errors import InputValidationError

NamedDataGroup = Mapping[str, "Tuple[str, ...] | None"]

_UINT64_MAX = (1 << 64) - 1


class EventLevel(IntEnum):
    """Numeric event severity levels used in the System/Level element."""

    LOG_ALWAYS = 0
    CRITICAL = 1
    ERROR = 2
    WARNING = 3
    INFORMATIONAL = 4
    VERBOSE = 5


class StandardEventKeywords(IntEnum):
    """Reserved keyword bits shared by all event providers."""

    NONE = 0
    RESPONSE_TIME = 0x0001000000000000
    WDI_CONTEXT = 0x0002000000000000
    WDI_DIAGNOSTIC = 0x0004000000000000
    SQM = 0x0008000000000000
    AUDIT_FAILURE = 0x0010000000000000
    CORRELATION_HINT = 0x0010000000000000
    AUDIT_SUCCESS = 0x0020000000000000
    EVENT_LOG_CLASSIC = 0x0080000000000000


def _name_key(value: str) -> str:
    return value.strip().replace("_", "").casefold()


_LEVEL_NAMES = {_name_key(member.name): member for member in EventLevel}
_KEYWORD_NAMES = {_name_key(name): member for name, member in StandardEventKeywords.__members__.items()}


@dataclass(frozen=True)
class FilterCriteria:
    """Optional, independent constraints combined into one XPath filter.

    Every field accepts a scalar or a sequence; values are normalised to tuples so
    an empty tuple always means "no constraint of that kind".
    """

    id: Tuple[int, ...] = ()
    exclude_id: Tuple[int, ...] = ()
    start_time: datetime | None = None
    end_time: datetime | None = None
    data: Tuple[str, ...] = ()
    provider_name: Tuple[str, ...] = ()
    level: Tuple[EventLevel, ...] = ()
    keywords: Tuple[int, ...] = ()
    user_id: Tuple[str, ...] = ()
    named_data: Tuple[NamedDataGroup, ...] = ()
    named_data_exclude: Tuple[NamedDataGroup, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", _int_tuple(self.id, "id"))
        object.__setattr__(self, "exclude_id", _int_tuple(self.exclude_id, "exclude_id"))
        object.__setattr__(self, "start_time", _as_datetime(self.start_time, "start_time"))
        object.__setattr__(self, "end_time", _as_datetime(self.end_time, "end_time"))
        object.__setattr__(self, "data", _text_tuple(self.data))
        object.__setattr__(self, "provider_name", _text_tuple(self.provider_name))
        object.__setattr__(self, "level", tuple(parse_level(item) for item in _as_tuple(self.level)))
        object.__setattr__(
            self, "keywords", tuple(parse_keyword(item) for item in _as_tuple(self.keywords))
        )
        object.__setattr__(self, "user_id", _text_tuple(self.user_id))
        object.__setattr__(self, "named_data", _named_data_groups(self.named_data, "named_data"))
        object.__setattr__(
            self,
            "named_data_exclude",
            _named_data_groups(self.named_data_exclude, "named_data_exclude"),
        )

    @property
    def is_empty(self) -> bool:
        """Return True when no field constrains the selection."""

        return not any(getattr(self, field.name) for field in fields(self))


def parse_level(value: object) -> EventLevel:
    """Map a level name (case-insensitive) or number to :class:`EventLevel`."""

    if isinstance(value, EventLevel):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return EventLevel(value)
        except ValueError:
            pass
    elif isinstance(value, str):
        candidate = value.strip()
        if candidate.isdigit():
            return parse_level(int(candidate))
        level = _LEVEL_NAMES.get(_name_key(candidate))
        if level is not None:
            return level

    choices = ", ".join(_display_name(member.name) for member in EventLevel)
    raise InputValidationError(
        message=f"Unknown event level {value!r}.",
        remediation=f"Use one of: {choices}.",
    )


def parse_keyword(value: object) -> int:
    """Map a standard keyword name or a 64-bit keyword mask to an integer."""

    if isinstance(value, int) and not isinstance(value, bool):
        if 0 <= value <= _UINT64_MAX:
            return int(value)
    elif isinstance(value, str):
        candidate = value.strip()
        if candidate.lower().startswith("0x"):
            try:
                return parse_keyword(int(candidate, 16))
            except ValueError:
                pass
        elif candidate.isdigit():
            return parse_keyword(int(candidate))
        keyword = _KEYWORD_NAMES.get(_name_key(candidate))
        if keyword is not None:
            return int(keyword)

    raise InputValidationError(
        message=f"Invalid event keyword {value!r}.",
        remediation=(
            "Pass an unsigned 64-bit mask or a standard keyword name such as AuditFailure."
        ),
    )


def _display_name(name: str) -> str:
    return "".join(part.capitalize() for part in name.split("_"))


def _as_tuple(value: object) -> tuple:
    if value is None:
        return ()
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        return (value,)
    return tuple(value)


def _int_tuple(value: object, field_name: str) -> Tuple[int, ...]:
    result: list[int] = []
    for item in _as_tuple(value):
        if isinstance(item, int) and not isinstance(item, bool):
            result.append(int(item))
            continue
        if isinstance(item, str) and item.strip().lstrip("-").isdigit():
            result.append(int(item.strip()))
            continue
        raise InputValidationError(
            message=f"Event ids in '{field_name}' must be integers; got {item!r}.",
            remediation="Pass numeric event ids such as 4624.",
        )
    return tuple(result)


def _text_tuple(value: object) -> Tuple[str, ...]:
    return tuple(str(item) for item in _as_tuple(value))


def _as_datetime(value: object, field_name: str) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        # YAML reads a bare 2024-05-01 as a date; treat it as local midnight.
        return datetime.combine(value, time())
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError as exc:
            raise InputValidationError(
                message=f"'{field_name}' value {value!r} is not an ISO 8601 timestamp.",
                remediation="Use a timestamp such as 2024-05-01T08:30:00.",
            ) from exc
    raise InputValidationError(
        message=f"'{field_name}' must be a datetime; got {type(value).__name__}.",
        remediation="Use a timestamp such as 2024-05-01T08:30:00.",
    )


def _named_data_groups(value: object, field_name: str) -> Tuple[NamedDataGroup, ...]:
    if value is None:
        return ()
    groups = (value,) if isinstance(value, Mapping) else _as_tuple(value)

    normalized: list[NamedDataGroup] = []
    for group in groups:
        if not isinstance(group, Mapping):
            raise InputValidationError(
                message=f"Each '{field_name}' entry must map field names to values.",
                remediation="Example: {'TargetUserName': ['alice', 'bob'], 'LogonType': None}.",
            )
        entries: dict[str, Tuple[str, ...] | None] = {}
        for name, values in group.items():
            if not isinstance(name, str) or not name.strip():
                raise InputValidationError(
                    message=f"Field names in '{field_name}' must be non-empty strings.",
                    remediation="Remove blank or non-text field names.",
                )
            items = _text_tuple(values)
            entries[name.strip()] = items or None
        if entries:
            normalized.append(MappingProxyType(entries))
    return tuple(normalized)


__all__ = [
    "EventLevel",
    "FilterCriteria",
    "NamedDataGroup",
    "StandardEventKeywords",
    "parse_keyword",
    "parse_level",
]
