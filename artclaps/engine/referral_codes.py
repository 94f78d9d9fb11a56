"""
artclaps.engine.referral_codes — Referral Code Candidates
==========================================================

Generates candidates in the format ``HANDLE-XXXX``:

- ``"ALICE-X7K9"`` from username ``alice``
- ``"CLAPS-A3B2"`` when the handle has fewer than two usable characters

Uniqueness is the caller's job; this module only produces candidates.
"""

from __future__ import annotations

import secrets
from collections.abc import Callable

FALLBACK_BASE = "CLAPS"
SUFFIX_LENGTH = 4
# No I, O, 0 or 1: codes get read aloud and typed from screenshots
SUFFIX_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def code_base(username: str | None) -> str:
    """Uppercase alphanumeric prefix (max 6 chars) derived from *username*."""
    base = "".join(c for c in (username or "") if c.isascii() and c.isalnum())
    base = base.upper()[:6]
    if len(base) < 2:
        return FALLBACK_BASE
    return base


def generate_referral_code(
    username: str | None,
    choice: Callable[[str], str] = secrets.choice,
) -> str:
    """Return one candidate code for *username*.

    *choice* picks a single suffix character; tests pass a deterministic
    picker to force collisions.
    """
    suffix = "".join(choice(SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"{code_base(username)}-{suffix}"
