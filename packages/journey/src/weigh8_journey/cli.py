from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from weigh8_journey.core import (
    AllocationNotFound,
    Settings,
    bind,
    clear_bindings,
    configure_logging,
    format_local,
    get_logger,
    load_settings,
    parse_timestamp,
    read_json,
    stable_json_dumps,
)
from weigh8_journey.engine import (
    Board,
    BoardView,
    GateAction,
    JourneyIndex,
    active_at_site,
    build_board,
    build_timeline,
    distinct_names,
    find_entity,
    gate_advisory,
    gate_journey_payload,
    journey_milestones,
    resolve_plate,
)
from weigh8_journey.fetch import BoardPoller, DashboardClient, Snapshot, fetch_snapshot
from weigh8_journey.fetch.client import parse_records
from weigh8_journey.models import Allocation, CanonicalEntity, JourneyEvent

console = Console()

_COLUMN_TITLES: dict[str, str] = {
    "staging": "Staging",
    "pending_arrival": "Pending Arrival",
    "checked_in": "Checked In",
    "departed": "Departed",
}


@dataclass(slots=True)
class _Data:
    """Facts for one command, from the live API or a JSON snapshot file."""

    allocations: list[Allocation]
    events: list[JourneyEvent]
    transporters: list[CanonicalEntity] = field(default_factory=list)
    journeys: JourneyIndex | None = None

    def index(self) -> JourneyIndex:
        return self.journeys or JourneyIndex.from_events(self.events)


def _load_snapshot(path: Path) -> _Data:
    raw = read_json(path)
    if not isinstance(raw, dict):
        raise SystemExit(f"{path}: snapshot must be a JSON object")
    return _Data(
        allocations=parse_records(raw.get("allocations") or [], Allocation, path=str(path)),
        events=parse_records(raw.get("journey") or [], JourneyEvent, path=str(path)),
        transporters=parse_records(
            raw.get("transporters") or [], CanonicalEntity, path=str(path)
        ),
    )


def _add_source_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--snapshot",
        type=Path,
        default=None,
        help="Read allocations/journey/transporters from a JSON file instead of the API.",
    )


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="weigh8-journey")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("board", help="Render the loading board once")
    _add_source_args(sp)
    sp.add_argument("--view", choices=[v.value for v in BoardView], default="two-site")
    sp.add_argument("--transporter", default=None, help="Only this transporter")
    sp.add_argument("--json", action="store_true", help="Print the board as JSON")

    sp = sub.add_parser("watch", help="Poll the API and re-render the board")
    sp.add_argument("--view", choices=[v.value for v in BoardView], default="two-site")
    sp.add_argument("--transporter", default=None)
    sp.add_argument("--interval", type=float, default=None, help="Seconds between polls")
    sp.add_argument("--max-ticks", type=int, default=None)

    sp = sub.add_parser("resolve", help="Resolve a plate for a manual gate action")
    _add_source_args(sp)
    sp.add_argument("plate")
    sp.add_argument(
        "--action", choices=[a.value for a in GateAction], default=GateAction.entry.value
    )
    sp.add_argument("--now", default=None, help="Reference time (ISO-8601)")
    sp.add_argument(
        "--site", type=int, default=None, help="Gate site id (default: Bulk Connections)"
    )
    sp.add_argument(
        "--payload",
        action="store_true",
        help="Print the journey entry the gate action would record",
    )

    sp = sub.add_parser("timeline", help="Show the journey timeline of an allocation")
    _add_source_args(sp)
    sp.add_argument("allocation_id", type=int)

    sp = sub.add_parser("match", help="Match a transporter name to master data")
    _add_source_args(sp)
    sp.add_argument("name")

    return p


def _render_board(board: Board, *, title: str | None = None) -> None:
    tbl = Table(title=title or f"Loading board ({board.view.value})", show_header=True)
    for col in board.columns:
        tbl.add_column(f"{_COLUMN_TITLES.get(col, col)} ({len(board.columns[col])})")

    depth = max((len(c) for c in board.columns.values()), default=0)
    for i in range(depth):
        row: list[str] = []
        for cards in board.columns.values():
            if i < len(cards):
                c = cards[i]
                row.append(
                    f"{c.allocation.vehicle_reg}\n"
                    f"{c.allocation.transporter or 'Unknown'}\n"
                    f"{format_local(c.derived.display_timestamp)}"
                )
            else:
                row.append("")
        tbl.add_row(*row)
    console.print(tbl)

    if board.terminal:
        console.print(f"[dim]cancelled (not shown): {len(board.terminal)}[/dim]")
    if board.is_partial:
        console.print(
            f"[yellow]partial data: no journey events for site(s) "
            f"{', '.join(str(s) for s in board.missing_sites)}[/yellow]"
        )


def _live_data(s: Settings, *, with_transporters: bool = False) -> _Data:
    with DashboardClient(s) as client:
        snap: Snapshot = fetch_snapshot(client)
        transporters = client.list_transporters() if with_transporters else []
    return _Data(
        allocations=list(snap.allocations),
        events=[],
        transporters=transporters,
        journeys=snap.journeys,
    )


def _cmd_board(args: argparse.Namespace, s: Settings) -> int:
    data = _load_snapshot(args.snapshot) if args.snapshot else _live_data(s)
    board = build_board(
        data.allocations,
        data.index(),
        args.view,
        transporter=args.transporter,
        lions_site_id=s.lions_site_id,
        bulk_site_id=s.bulk_site_id,
    )
    shown = [c.allocation for cards in board.columns.values() for c in cards]
    shown += [c.allocation for c in board.terminal]
    milestones = journey_milestones(
        shown, data.index(), lions_site_id=s.lions_site_id, bulk_site_id=s.bulk_site_id
    )
    if args.json:
        # plain print: rich would re-wrap and highlight the JSON
        print(stable_json_dumps({**board.to_dict(), "milestones": milestones}))
    else:
        _render_board(board)
        console.print(
            "milestones: " + ", ".join(f"{k}={v}" for k, v in milestones.items())
        )
    return 0


def _cmd_watch(args: argparse.Namespace, s: Settings) -> int:
    def _show(board: Board, snap: Snapshot) -> None:
        console.clear()
        _render_board(board, title=f"Loading board ({board.view.value}) @ {snap.fetched_at_utc}")

    with DashboardClient(s) as client:
        poller = BoardPoller(
            client=client,
            on_board=_show,
            view=BoardView(args.view),
            interval_s=args.interval,
            transporter=args.transporter,
        )
        try:
            poller.run(max_ticks=args.max_ticks)
        except KeyboardInterrupt:
            poller.stop()
    return 0


def _cmd_resolve(args: argparse.Namespace, s: Settings) -> int:
    data = (
        _load_snapshot(args.snapshot)
        if args.snapshot
        else _live_data(s, with_transporters=True)
    )
    now = parse_timestamp(args.now) if args.now else None
    try:
        res = resolve_plate(args.plate, data.allocations, args.action, now=now)
    except AllocationNotFound as e:
        console.print(f"[red]{e}[/red]")
        return 2

    a = res.allocation
    site_id = args.site if args.site is not None else s.bulk_site_id
    tbl = Table(title=f"Gate {args.action}: {args.plate}", show_header=False, box=None)
    tbl.add_row("site", s.site_name(site_id))
    tbl.add_row("selected", str(a.id))
    tbl.add_row("matches", res.summary())
    tbl.add_row("status", a.status)
    tbl.add_row("driver", a.driver_name or "N/A")
    tbl.add_row("scheduled", format_local(a.scheduled_date))
    entity = find_entity(a.transporter, data.transporters)
    tbl.add_row(
        "transporter",
        f"{entity.name} ({entity.code or '-'})" if entity else (a.transporter or "Unknown"),
    )
    console.print(tbl)

    advisory = gate_advisory(a, args.action)
    if advisory:
        console.print(f"[yellow]{advisory}[/yellow]")
    if args.payload:
        print(stable_json_dumps(gate_journey_payload(a, args.action, site_id=site_id)))
    return 0


def _cmd_timeline(args: argparse.Namespace, s: Settings) -> int:
    if args.snapshot:
        data = _load_snapshot(args.snapshot)
        events = data.events
        allocations = data.allocations
    else:
        with DashboardClient(s) as client:
            allocations = client.list_allocations()
            events = client.journey_history(args.allocation_id)

    alloc = next((a for a in allocations if a.id == args.allocation_id), None)
    if alloc is None:
        console.print(f"[red]Allocation {args.allocation_id} not found[/red]")
        return 2

    entries = build_timeline(alloc, events, site_names=s.site_names)
    if not entries:
        console.print("[dim]No events yet[/dim]")
        return 0
    tbl = Table(title=f"Journey {alloc.vehicle_reg} (#{alloc.id})", show_header=True)
    tbl.add_column("When")
    tbl.add_column("Milestone")
    for e in entries:
        tbl.add_row(format_local(e.timestamp), e.label)
    console.print(tbl)
    for site_id in s.site_names:
        if any(ev.allocation_id == alloc.id for ev in active_at_site(events, site_id)):
            console.print(f"On site now: {s.site_name(site_id)}")
    return 0


def _cmd_match(args: argparse.Namespace, s: Settings) -> int:
    if args.snapshot:
        data = _load_snapshot(args.snapshot)
    else:
        with DashboardClient(s) as client:
            data = _Data(
                allocations=client.list_allocations(),
                events=[],
                transporters=client.list_transporters(),
            )

    entity = find_entity(args.name, data.transporters)
    if entity is None:
        known = distinct_names(a.transporter for a in data.allocations)
        console.print(f"[yellow]No transporter matches {args.name!r}[/yellow]")
        if known:
            console.print("Known on allocations: " + ", ".join(known))
        return 1
    console.print(
        Panel.fit(
            Text(f"{entity.name}\ncode={entity.code or '-'}\nphone={entity.phone or '-'}"),
            title=f"#{entity.id}",
        )
    )
    return 0


_COMMANDS: dict[str, Callable[[argparse.Namespace, Settings], int]] = {
    "board": _cmd_board,
    "watch": _cmd_watch,
    "resolve": _cmd_resolve,
    "timeline": _cmd_timeline,
    "match": _cmd_match,
}


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    s = load_settings()
    configure_logging(level=s.log_level, fmt=s.log_format)
    log = get_logger("weigh8_journey")
    bind(command=args.cmd)

    meta: dict[str, Any] = {k: v for k, v in vars(args).items() if k != "cmd"}
    log.debug("cli.start", **{k: str(v) for k, v in meta.items()})

    try:
        return int(_COMMANDS[args.cmd](args, s))
    finally:
        clear_bindings()


if __name__ == "__main__":
    raise SystemExit(main())
