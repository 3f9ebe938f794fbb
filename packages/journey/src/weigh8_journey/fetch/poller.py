from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

import structlog

from weigh8_journey.core.config import Settings
from weigh8_journey.core.errors import PartialData
from weigh8_journey.core.time import monotonic_ms, utc_now_iso
from weigh8_journey.engine.board import Board, BoardView, build_board
from weigh8_journey.engine.journey import JourneyIndex
from weigh8_journey.models import Allocation, JourneyEvent

from .client import DashboardClient

log = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Snapshot:
    """One tick's worth of facts: allocations plus per-site journey events."""

    allocations: tuple[Allocation, ...]
    journeys: JourneyIndex
    fetched_at_utc: str
    duration_ms: int = 0

    @property
    def failures(self) -> tuple[PartialData, ...]:
        return self.journeys.missing_sites


def fetch_snapshot(
    client: DashboardClient,
    *,
    site_ids: Sequence[int] | None = None,
    allocation_site_id: int | None = None,
) -> Snapshot:
    """
    Fetch allocations and each site's latest journey events in parallel.

    A failed journey fetch is recorded as PartialData and the site reads as
    having no events. A failed allocation fetch propagates.
    """
    s = client.settings
    sites = list(site_ids) if site_ids is not None else [s.lions_site_id, s.bulk_site_id]
    t0 = monotonic_ms()

    with ThreadPoolExecutor(max_workers=len(sites) + 1) as pool:
        alloc_fut = pool.submit(client.list_allocations, site_id=allocation_site_id)
        site_futs: dict[int, Future[list[JourneyEvent]]] = {
            sid: pool.submit(client.latest_journey, sid) for sid in sites
        }

        per_site: dict[int, list[JourneyEvent]] = {}
        failures: list[PartialData] = []
        for sid, fut in site_futs.items():
            try:
                per_site[sid] = fut.result()
            except Exception as e:
                log.warning("journey.fetch.failed", site_id=sid, error=repr(e))
                failures.append(PartialData.from_exc(sid, e))

        allocations = alloc_fut.result()

    snap = Snapshot(
        allocations=tuple(allocations),
        journeys=JourneyIndex.build(per_site, failures=failures),
        fetched_at_utc=utc_now_iso(),
        duration_ms=monotonic_ms() - t0,
    )
    log.debug(
        "snapshot.fetched",
        allocations=len(snap.allocations),
        sites=sites,
        failed_sites=[f.site_id for f in failures],
        duration_ms=snap.duration_ms,
    )
    return snap


@dataclass(slots=True)
class BoardPoller:
    """
    Re-fetches a snapshot every `interval_s` and hands a freshly built board
    to `on_board`. Nothing is cached between ticks.
    """

    client: DashboardClient
    on_board: Callable[[Board, Snapshot], None]
    view: BoardView = BoardView.two_site
    interval_s: Optional[float] = None
    transporter: Optional[str] = None
    stop_event: threading.Event = field(default_factory=threading.Event)
    ticks: int = 0
    failed_ticks: int = 0

    def _site_ids(self) -> list[int]:
        s: Settings = self.client.settings
        if self.view is BoardView.lions:
            return [s.lions_site_id]
        return [s.lions_site_id, s.bulk_site_id]

    def tick(self) -> Optional[Board]:
        s = self.client.settings
        self.ticks += 1
        try:
            snap = fetch_snapshot(self.client, site_ids=self._site_ids())
        except Exception as e:
            self.failed_ticks += 1
            log.error("poller.tick.failed", tick=self.ticks, error=repr(e))
            return None

        board = build_board(
            snap.allocations,
            snap.journeys,
            self.view,
            transporter=self.transporter,
            lions_site_id=s.lions_site_id,
            bulk_site_id=s.bulk_site_id,
        )
        self.on_board(board, snap)
        return board

    def run(self, *, max_ticks: Optional[int] = None) -> int:
        interval = self.interval_s or self.client.settings.poll_interval_s
        log.info("poller.start", view=self.view.value, interval_s=interval)
        while not self.stop_event.is_set():
            self.tick()
            if max_ticks is not None and self.ticks >= max_ticks:
                break
            self.stop_event.wait(interval)
        log.info("poller.stop", ticks=self.ticks, failed_ticks=self.failed_ticks)
        return self.ticks

    def stop(self) -> None:
        self.stop_event.set()
