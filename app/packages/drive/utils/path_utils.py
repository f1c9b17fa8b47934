"""Path utilities for materialized entry paths.

Stored paths always start with '/'. Root-level entries live directly under '/'.
"""

from __future__ import annotations

ROOT_PATH = "/"
SEPARATOR = "/"


def join_path(parent_path: str | None, name: str) -> str:
    """Append ``name`` to ``parent_path`` with exactly one separator between them."""
    base = parent_path or ROOT_PATH
    if base.endswith(SEPARATOR):
        return base + name
    return base + SEPARATOR + name
