"""Repair drift between the two sides of memberships, participations and follows.

Run out of band, never on the request path::

    python -m rideclub.scripts.reconcile --scope memberships --dry-run
    python -m rideclub.scripts.reconcile --scope all --ground-truth groups --json
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence

from rideclub.core.settings import settings
from rideclub.db.session import SessionLocal
from rideclub.services.reconciler import FollowTruth, GroundTruth, Reconciler, ReconcileReport

SCOPES = ("memberships", "participations", "follows")

logger = logging.getLogger("rideclub.reconcile")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Detect and repair relationship drift")
    parser.add_argument(
        "--scope",
        choices=(*SCOPES, "all"),
        default="memberships",
        help="Which relationship to reconcile (default: memberships).",
    )
    parser.add_argument(
        "--ground-truth",
        choices=[g.value for g in GroundTruth],
        default=None,
        help="Side trusted for memberships and participations "
        f"(default: {settings.reconcile_membership_truth}).",
    )
    parser.add_argument(
        "--follow-truth",
        choices=[f.value for f in FollowTruth],
        default=None,
        help=f"Side trusted for the follow graph (default: {settings.reconcile_follow_truth}).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report drift without writing anything.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full report as JSON instead of a summary.",
    )
    return parser


def format_summary(report: ReconcileReport) -> list[str]:
    lines = [
        f"[reconcile] {report.scope} (truth={report.ground_truth}, dry_run={report.dry_run}): "
        f"checked={report.checked} drifted={report.drifted} "
        f"rewritten={report.rewritten} failed={report.failed}"
    ]
    for item in report.items:
        if not item.drifted and item.error is None:
            continue
        status = "FAILED" if item.error else ("fixed" if item.rewritten else "drift")
        lines.append(
            f"  {item.kind} {item.item_id}: {status}; "
            f"missing in members={item.missing_in_members} "
            f"missing in users={item.missing_in_users} count={item.count}"
            + (" OVER CAPACITY" if item.over_capacity else "")
        )
    return lines


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    scopes = SCOPES if args.scope == "all" else (args.scope,)

    db = SessionLocal()
    try:
        reconciler = Reconciler(
            db,
            membership_truth=args.ground_truth,
            follow_truth=args.follow_truth,
            dry_run=args.dry_run,
        )
        reports = reconciler.run(scopes)
    finally:
        db.close()

    if args.json:
        print(json.dumps([r.as_dict() for r in reports], indent=2))
    else:
        for report in reports:
            for line in format_summary(report):
                print(line)

    failed = sum(r.failed for r in reports)
    if failed:
        logger.error("%d item(s) could not be reconciled", failed)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
