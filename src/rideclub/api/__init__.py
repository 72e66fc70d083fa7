"""HTTP API for RideClub."""
