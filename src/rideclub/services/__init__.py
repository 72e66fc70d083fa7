# src/rideclub/services/__init__.py
"""Business logic services for the RideClub application."""

from .follows import FollowService
from .membership import MembershipService
from .participation import ParticipationService
from .reconciler import FollowTruth, GroundTruth, Reconciler, ReconcileReport

__all__ = [
    "FollowService",
    "FollowTruth",
    "GroundTruth",
    "MembershipService",
    "ParticipationService",
    "ReconcileReport",
    "Reconciler",
]
