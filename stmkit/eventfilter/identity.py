"""Security identifier checks and account name resolution."""
from __future__ import annotations

import logging
import re
from typing import Callable, Iterable, Tuple

from stmkit.errors import IdentityResolutionError, StmError

# Third-party imports
try:
    import pywintypes
    import win32security

    PYWIN32_AVAILABLE = True
except ImportError:
    PYWIN32_AVAILABLE = False
    pywintypes = None
    win32security = None

logger = logging.getLogger("stmkit.eventfilter.identity")

SidResolver = Callable[[str], str]

_SID_PATTERN = re.compile(r"^S-1-[0-9]+(-[0-9]+)*$", re.IGNORECASE)


def is_sid(value: str) -> bool:
    """Return True when *value* is a string-form security identifier."""

    return bool(_SID_PATTERN.match(value.strip()))


def resolve_account_sid(account: str) -> str:
    """Resolve a ``DOMAIN\\user`` account name to its string SID via the local LSA."""

    if not PYWIN32_AVAILABLE:
        raise IdentityResolutionError(
            message=f"Cannot resolve account '{account}' to a SID on this host.",
            remediation=(
                "Pass the user id as a SID (for example S-1-5-18), or run on Windows "
                "with pywin32 installed."
            ),
        )

    try:
        sid, domain, _account_type = win32security.LookupAccountName(None, account)
    except pywintypes.error as exc:
        raise IdentityResolutionError(
            message=f"Account '{account}' could not be resolved to a SID.",
            remediation="Check the account name (DOMAIN\\user) and that the domain is reachable.",
        ) from exc

    resolved = win32security.ConvertSidToStringSid(sid)
    logger.debug("Resolved account", extra={"account": account, "domain": domain, "sid": resolved})
    return resolved


def resolve_user_ids(values: Iterable[str], resolver: SidResolver) -> Tuple[str, ...]:
    """Return SIDs for *values*, passing non-SID entries through *resolver*.

    Raises:
        IdentityResolutionError: If an entry is neither a SID nor resolvable.
    """

    resolved: list[str] = []
    for value in values:
        candidate = value.strip()
        if candidate and is_sid(candidate):
            resolved.append(candidate)
            continue

        try:
            sid = resolver(candidate)
        except StmError:
            raise
        except Exception as exc:
            raise IdentityResolutionError(
                message=f"User id '{value}' is not a valid SID and could not be resolved.",
                remediation="Pass a SID such as S-1-5-18 or an existing DOMAIN\\user account.",
            ) from exc

        if not isinstance(sid, str) or not is_sid(sid):
            raise IdentityResolutionError(
                message=f"User id '{value}' did not resolve to a valid SID.",
                remediation="Pass a SID such as S-1-5-18 or an existing DOMAIN\\user account.",
            )
        resolved.append(sid.strip())
    return tuple(resolved)


__all__ = [
    "PYWIN32_AVAILABLE",
    "SidResolver",
    "is_sid",
    "resolve_account_sid",
    "resolve_user_ids",
]
