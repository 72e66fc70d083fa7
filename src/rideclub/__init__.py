"""RideClub: community, event and follow backend for motorcycle riders."""

__version__ = "0.1.0"
