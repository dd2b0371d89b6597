"""YAML profiles holding reusable event filter criteria."""
from __future__ import annotations

from dataclasses import fields
from pathlib import Path

import yaml

from stmkit.errors import InputValidationError
from stmkit.eventfilter import FilterCriteria

_FIELD_NAMES = tuple(field.name for field in fields(FilterCriteria))


def load_filter_criteria(path: Path) -> FilterCriteria:
    """Read a criteria profile; keys mirror :class:`FilterCriteria` fields."""

    candidate = path.expanduser()
    try:
        raw_text = candidate.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise InputValidationError(
            message=f"Unable to read criteria profile {candidate}.",
            remediation="Check the path and file permissions, and save the file as UTF-8.",
        ) from exc

    try:
        loaded = yaml.safe_load(raw_text) or {}
    except yaml.YAMLError as exc:
        raise InputValidationError(
            message=f"Criteria profile {candidate} contains invalid YAML.",
            remediation="Ensure the profile is a mapping of criteria names to values.",
        ) from exc

    if not isinstance(loaded, dict):
        raise InputValidationError(
            message=f"Criteria profile {candidate} must define a mapping at the root level.",
            remediation=f"Use keys such as: {', '.join(_FIELD_NAMES)}.",
        )

    normalized = {str(key).strip().replace("-", "_").lower(): value for key, value in loaded.items()}
    unknown = sorted(key for key in normalized if key not in _FIELD_NAMES)
    if unknown:
        raise InputValidationError(
            message=f"Criteria profile {candidate} has unknown keys: {', '.join(unknown)}.",
            remediation=f"Supported keys: {', '.join(_FIELD_NAMES)}.",
        )

    return FilterCriteria(**normalized)


__all__ = ["load_filter_criteria"]
