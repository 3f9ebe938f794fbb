from __future__ import annotations

import argparse

from weigh8_journey.core import AllocationNotFound, configure_logging, load_settings
from weigh8_journey.engine import BoardView, build_board, journey_milestones, resolve_plate
from weigh8_journey.fetch import DashboardClient, fetch_snapshot


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Fetch a live snapshot from the dashboard API and print board counts."
    )
    parser.add_argument(
        "--plate",
        action="append",
        default=[],
        help="Plate to resolve against the live allocations (repeatable)",
    )
    args = parser.parse_args()

    s = load_settings()
    configure_logging(level=s.log_level, fmt=s.log_format)
    print(f"Using API: {s.api_base_url}")

    with DashboardClient(s) as client:
        snap = fetch_snapshot(client)

    print(
        f"\n-- snapshot @ {snap.fetched_at_utc} ({snap.duration_ms} ms) --\n"
        f"allocations: {len(snap.allocations)}"
    )
    for f in snap.failures:
        print(f"site {f.site_id} unavailable: {f.error}")

    for view in BoardView:
        board = build_board(
            snap.allocations,
            snap.journeys,
            view,
            lions_site_id=s.lions_site_id,
            bulk_site_id=s.bulk_site_id,
        )
        print(f"\n-- {view.value} board --")
        for col, n in board.counts().items():
            print(f"{col:>16}: {n}")
        if board.terminal:
            print(f"{'cancelled':>16}: {len(board.terminal)}")

    print("\n-- journey milestones --")
    milestones = journey_milestones(
        snap.allocations,
        snap.journeys,
        lions_site_id=s.lions_site_id,
        bulk_site_id=s.bulk_site_id,
    )
    for name, n in milestones.items():
        print(f"{name:>20}: {n}")

    rc = 0
    for plate in args.plate:
        try:
            res = resolve_plate(plate, snap.allocations, "entry")
        except AllocationNotFound as e:
            print(f"\n{e}")
            rc = 1
            continue
        print(f"\n{plate}: {res.summary()} (status={res.allocation.status})")

    return rc


if __name__ == "__main__":
    raise SystemExit(main())
