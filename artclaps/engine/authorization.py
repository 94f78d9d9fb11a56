"""
artclaps.engine.authorization — Privileged Identity Policy
===========================================================

Who counts as an administrator comes from configuration
(``admin_fids``), never from a literal in a route.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from artclaps.database.models import ArtistStatus

if TYPE_CHECKING:
    from artclaps.config import ArtClapsConfig
    from artclaps.database.models import User


@dataclass(frozen=True, slots=True)
class AdminPolicy:
    admin_fids: frozenset[int]

    @classmethod
    def from_config(cls, cfg: ArtClapsConfig) -> AdminPolicy:
        return cls(admin_fids=frozenset(cfg.admin_fids))

    def is_admin(self, fid: int | None) -> bool:
        return fid is not None and fid in self.admin_fids

    def can_refer(self, user: User) -> bool:
        """Verified artists and administrators may mint and vouch with codes."""
        return (
            user.artist_status == ArtistStatus.VERIFIED_ARTIST.value
            or self.is_admin(user.fid)
        )
