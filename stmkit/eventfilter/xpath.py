"""Composition of Windows Event Log XPath queries from filter criteria."""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from functools import reduce
from operator import or_
from typing import Iterable, Sequence

from stmkit.eventfilter import identity
from stmkit.eventfilter.criteria import EventLevel, FilterCriteria, NamedDataGroup
from stmkit.eventfilter.identity import SidResolver, resolve_user_ids

logger = logging.getLogger("stmkit.eventfilter.xpath")

_LOGIC_VALUES = ("and", "or")
_ONE_MILLISECOND = timedelta(milliseconds=1)


def join_clause(
    new_clause: str,
    existing_filter: str = "",
    logic: str = "and",
    no_parenthesis: bool = False,
) -> str:
    """Append *new_clause* to *existing_filter* with an XPath boolean operator.

    Both operands are parenthesised unless *no_parenthesis* is set, so repeated
    joins keep their left-to-right grouping. *logic* is case-sensitive.
    """

    if logic not in _LOGIC_VALUES:
        raise ValueError(f"logic must be 'and' or 'or', not {logic!r}")
    if not existing_filter:
        return new_clause
    if no_parenthesis:
        return f"{existing_filter} {logic} {new_clause}"
    return f"({existing_filter}) {logic} ({new_clause})"


def fold_clauses(
    clauses: Iterable[str],
    logic: str = "or",
    *,
    no_parenthesis: bool = False,
) -> str:
    """Join *clauses* left to right with :func:`join_clause`; empty input gives ``""``."""

    return reduce(
        lambda existing, clause: join_clause(clause, existing, logic, no_parenthesis),
        clauses,
        "",
    )


def build_xpath_filter(
    criteria: FilterCriteria | None = None,
    *,
    now: datetime | None = None,
    sid_resolver: SidResolver | None = None,
    **fields: object,
) -> str:
    """Build an event log XPath filter from *criteria* and/or keyword fields.

    Keyword fields use :class:`FilterCriteria` names and override the matching
    fields of *criteria*. *now* anchors ``start_time``/``end_time`` deltas and
    defaults to the current time. Account names in ``user_id`` go through
    *sid_resolver* (the local account lookup by default).

    Returns an empty string when no criteria are supplied.

    Raises:
        IdentityResolutionError: If a user id is neither a SID nor resolvable.
    """

    if criteria is None:
        criteria = FilterCriteria(**fields)
    elif fields:
        criteria = replace(criteria, **fields)

    if criteria.is_empty:
        return ""

    if now is None:
        now = datetime.now().astimezone()
    resolver = sid_resolver or identity.resolve_account_sid
    user_sids = resolve_user_ids(criteria.user_id, resolver)

    system_clauses = [
        clause
        for clause in (
            _event_id_clause(criteria.id, "="),
            _event_id_clause(criteria.exclude_id, "!="),
            _time_clause(criteria.start_time, "<=", now),
            _time_clause(criteria.end_time, ">=", now),
            _provider_clause(criteria.provider_name),
            _level_clause(criteria.level),
            _security_clause(user_sids),
        )
        if clause
    ]

    groups: list[str] = []
    if system_clauses:
        groups.append(f"*[System[{fold_clauses(system_clauses, 'and')}]]")
    if criteria.data:
        data_clause = fold_clauses(f"Data='{value}'" for value in criteria.data)
        groups.append(f"*[EventData[{data_clause}]]")
    if criteria.named_data:
        groups.append(f"*[EventData[{_named_data_clause(criteria.named_data, '=')}]]")
    if criteria.named_data_exclude:
        groups.append(
            f"*[EventData[{_named_data_clause(criteria.named_data_exclude, '!=')}]]"
        )
    if criteria.keywords:
        mask = reduce(or_, criteria.keywords)
        groups.append(f"*[System[band(Keywords,{mask})]]")

    query = fold_clauses(groups, "and")
    logger.debug("Built XPath filter", extra={"xpath_groups": len(groups), "xpath": query})
    return query


def _event_id_clause(ids: Sequence[int], operator: str) -> str:
    return fold_clauses(f"EventID{operator}{event_id}" for event_id in ids)


def _time_clause(moment: datetime | None, operator: str, now: datetime) -> str:
    if moment is None:
        return ""
    return f"TimeCreated[timediff(@SystemTime) {operator} {_milliseconds_before(moment, now)}]"


def _milliseconds_before(moment: datetime, now: datetime) -> int:
    reference = now
    if (reference.tzinfo is None) != (moment.tzinfo is None):
        # Naive values are local wall-clock time.
        reference = reference.astimezone()
        moment = moment.astimezone()
    return round((reference - moment) / _ONE_MILLISECOND)


def _provider_clause(names: Sequence[str]) -> str:
    return fold_clauses(f"Provider[@Name='{name}']" for name in names)


def _level_clause(levels: Sequence[EventLevel]) -> str:
    return fold_clauses(f"Level={int(level)}" for level in levels)


def _security_clause(sids: Sequence[str]) -> str:
    if not sids:
        return ""
    user_ids = fold_clauses((f"@UserID='{sid}'" for sid in sids), no_parenthesis=True)
    return f"Security[{user_ids}]"


def _named_data_clause(groups: Sequence[NamedDataGroup], operator: str) -> str:
    return fold_clauses(_named_data_group(group, operator) for group in groups)


def _named_data_group(group: NamedDataGroup, operator: str) -> str:
    field_clauses = []
    for name, values in group.items():
        if values is None:
            field_clauses.append(f"Data[@Name='{name}']")
            continue
        field_clauses.append(
            fold_clauses(
                (f"Data[@Name='{name}'] {operator} '{value}'" for value in values),
                no_parenthesis=True,
            )
        )
    return fold_clauses(field_clauses, "and")


__all__ = ["build_xpath_filter", "fold_clauses", "join_clause"]
