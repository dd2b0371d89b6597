"""Configuration utilities for stmkit."""
from __future__ import annotations

from .code_tables import CODE_TABLES_ENV_VAR, load_code_tables, table_paths_from_environment
from .filter_profile import load_filter_criteria

__all__ = [
    "CODE_TABLES_ENV_VAR",
    "load_code_tables",
    "load_filter_criteria",
    "table_paths_from_environment",
]
