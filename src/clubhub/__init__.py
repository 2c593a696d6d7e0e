"""ClubHub: multi-tenant club management platform core."""

__version__ = "0.1.0"
