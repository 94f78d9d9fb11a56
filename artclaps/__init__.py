"""
Art Claps — Social Rewards for Artists on Farcaster
====================================================
Supporters follow and clap for artists, earn points for social actions
and climb the leaderboard.  An administrator reviews artist
applications; verified artists hand out single-use referral codes that
verify newcomers instantly.

Package layout::

    artclaps/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Page sizes, avatar fallback
    ├── errors.py          # Service-layer exceptions (status-coded)
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + session helpers
    │   └── models.py      # ORM models (6 tables)
    ├── engine/
    │   ├── points.py      # Activity type → point value table
    │   ├── calendar.py    # UTC day boundaries
    │   ├── referral_codes.py  # HANDLE-XXXX code candidates
    │   └── authorization.py   # Configurable admin policy
    ├── services/
    │   ├── points_service.py      # Ledger, accountant, connection graph
    │   ├── clap_service.py        # Daily clap workflow
    │   ├── follow_service.py      # Follow toggle + counters
    │   ├── referral_service.py    # Applications, code minting/redemption
    │   ├── admin_service.py       # Review queue with audit log
    │   ├── leaderboard_service.py # Ranked projections
    │   ├── artist_service.py      # Artist directory
    │   ├── user_service.py        # Profiles, stats, profile editor
    │   └── farcaster_sync.py      # Profile refresh via httpx
    └── api/
        ├── main.py        # FastAPI app
        ├── errors.py      # Exception → JSON envelope
        └── routes/        # REST endpoints under /api
"""

__version__ = "0.1.0"
