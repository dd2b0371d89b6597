"""Event log XPath filter composition."""
from __future__ import annotations

from .criteria import (
    EventLevel,
    FilterCriteria,
    NamedDataGroup,
    StandardEventKeywords,
    parse_keyword,
    parse_level,
)
from .identity import SidResolver, is_sid, resolve_account_sid, resolve_user_ids
from .xpath import build_xpath_filter, fold_clauses, join_clause

__all__ = [
    "EventLevel",
    "FilterCriteria",
    "NamedDataGroup",
    "SidResolver",
    "StandardEventKeywords",
    "build_xpath_filter",
    "fold_clauses",
    "is_sid",
    "join_clause",
    "parse_keyword",
    "parse_level",
    "resolve_account_sid",
    "resolve_user_ids",
]
