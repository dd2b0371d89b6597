from __future__ import annotations

import pytest

from stmkit.errors import IdentityResolutionError
from stmkit.eventfilter import is_sid, resolve_account_sid, resolve_user_ids


@pytest.mark.parametrize("value", ["S-1-5-18", "s-1-5-21-1-2-3-500", " S-1-0-0 "])
def test_is_sid_accepts_string_sids(value: str) -> None:
    assert is_sid(value)


@pytest.mark.parametrize("value", ["not-a-sid", "S-1", "S-1-5-", "CONTOSO\\alice", ""])
def test_is_sid_rejects_other_text(value: str) -> None:
    assert not is_sid(value)


def test_resolve_user_ids_passes_sids_through() -> None:
    def _resolver(account: str) -> str:
        raise AssertionError("resolver should not run for SIDs")

    assert resolve_user_ids(["S-1-5-18", " S-1-5-19 "], _resolver) == ("S-1-5-18", "S-1-5-19")


def test_resolve_user_ids_uses_resolver_for_accounts() -> None:
    assert resolve_user_ids(["BUILTIN\\Administrators"], lambda account: "S-1-5-32-544") == (
        "S-1-5-32-544",
    )


def test_resolver_errors_are_wrapped() -> None:
    def _resolver(account: str) -> str:
        raise OSError("lookup failed")

    with pytest.raises(IdentityResolutionError) as exc:
        resolve_user_ids(["CONTOSO\\ghost"], _resolver)

    assert isinstance(exc.value.__cause__, OSError)


def test_non_sid_resolution_result_is_rejected() -> None:
    with pytest.raises(IdentityResolutionError) as exc:
        resolve_user_ids(["CONTOSO\\alice"], lambda account: "alice")

    assert "did not resolve" in exc.value.message


def test_resolve_account_sid_requires_pywin32(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("stmkit.eventfilter.identity.PYWIN32_AVAILABLE", False)

    with pytest.raises(IdentityResolutionError) as exc:
        resolve_account_sid("CONTOSO\\alice")

    assert "S-1-5-18" in (exc.value.remediation or "")
