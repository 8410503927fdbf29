"""
core/normalize.py -- Input normalization shared by the auth and profile services.

Every email that reaches the store passes through normalize_email(), so the
UNIQUE(email) constraint compares like with like.
"""

from __future__ import annotations

from typing import Any


def normalize_email(email: str | None) -> str:
    """Lowercase and trim an email address. None becomes ""."""
    return (email or "").strip().lower()


def clean(value: str | None) -> str:
    """Trim a free-text field. None becomes ""."""
    return (value or "").strip()


def normalize_subjects(subjects: Any) -> list[str]:
    """Coerce a faculty subjects value into a list.

    A list is kept in order, a bare non-empty scalar becomes a one-element
    list, and None / "" become [].
    """
    if isinstance(subjects, (list, tuple)):
        return [str(s) for s in subjects]
    if subjects is None:
        return []
    value = str(subjects).strip()
    return [value] if value else []
