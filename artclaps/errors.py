"""
artclaps.errors — Service-Layer Exceptions
===========================================

Services raise these; :mod:`artclaps.api.errors` maps each one to an HTTP
status and the ``{"success": false, "error": ...}`` envelope.  Every
business-rule check raises before the first write of a workflow.
"""

from __future__ import annotations


class ArtClapsError(Exception):
    """Base class for all expected, user-facing failures."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(ArtClapsError):
    """Missing or malformed input."""

    status_code = 400


class Forbidden(ArtClapsError):
    """Caller lacks the privileged identity the operation needs."""

    status_code = 403


class NotFound(ArtClapsError):
    """Referenced user, artist or code is absent or in the wrong state."""

    status_code = 404


class Conflict(ArtClapsError):
    """Duplicate clap, duplicate keyed activity, already-used code."""

    status_code = 409


class ReferralCodeGenerationError(ArtClapsError):
    """No unique referral code could be found within the attempt budget."""

    status_code = 500


class UpstreamUnavailable(ArtClapsError):
    """The Farcaster indexer could not be reached or answered badly."""

    status_code = 502


class NotConfigured(ArtClapsError):
    """A feature was called without the settings it needs."""

    status_code = 503
