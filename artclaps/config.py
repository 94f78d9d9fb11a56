"""
artclaps.config — YAML Configuration Loader
============================================

Reads ``config.yaml`` for the deployment-specific knobs: who the
administrators are, referral-code limits and where the Farcaster indexer
lives.  Secrets (``DATABASE_URL``, ``NEYNAR_API_KEY``) stay in ``.env``.

Usage::

    from artclaps.config import load_config

    cfg = load_config()            # reads ./config.yaml by default
    print(cfg.app_name)            # "Art Claps"
    print(cfg.admin_fids)          # frozenset({7418})
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_FARCASTER_API_URL = "https://api.neynar.com"


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ArtClapsConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    app_name: str

    # Admin / Hardened Access
    admin_fids: frozenset[int] = field(default_factory=frozenset)

    # Referral workflow
    max_unused_referral_codes: int = 10
    referral_code_attempts: int = 10
    approval_seed_codes: int = 3

    # Farcaster indexer used by /sync-farcaster
    farcaster_api_url: str = DEFAULT_FARCASTER_API_URL


def _parse_fids(raw: object) -> frozenset[int]:
    """Accept a YAML list or a comma-separated string of fids."""
    if raw is None or raw == "":
        return frozenset()
    if isinstance(raw, str):
        return frozenset(int(part) for part in raw.split(",") if part.strip())
    if isinstance(raw, int):
        return frozenset({raw})
    return frozenset(int(fid) for fid in raw)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path | None = None) -> ArtClapsConfig:
    """Read *path* and return an :class:`ArtClapsConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.  Defaults to the
        ``ARTCLAPS_CONFIG`` env var, then ``config.yaml`` in the current
        working directory.

    ``ARTCLAPS_ADMIN_FIDS`` (comma-separated) overrides ``admin_fids`` so
    the administrator set can be rotated without editing the file.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    if path is None:
        path = os.getenv("ARTCLAPS_CONFIG", "config.yaml")
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    env_admins = os.getenv("ARTCLAPS_ADMIN_FIDS", "").strip()
    admin_fids = _parse_fids(env_admins) if env_admins else _parse_fids(raw.get("admin_fids"))

    return ArtClapsConfig(
        app_name=raw["app_name"],
        admin_fids=admin_fids,
        max_unused_referral_codes=int(raw.get("max_unused_referral_codes", 10)),
        referral_code_attempts=int(raw.get("referral_code_attempts", 10)),
        approval_seed_codes=int(raw.get("approval_seed_codes", 3)),
        farcaster_api_url=str(
            raw.get("farcaster_api_url") or DEFAULT_FARCASTER_API_URL
        ).rstrip("/"),
    )
