from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Sequence

from weigh8_journey.core.errors import PartialData
from weigh8_journey.models import JourneyEvent, JourneyStatus


def _is_later(candidate: JourneyEvent, current: JourneyEvent) -> bool:
    # events without a timestamp never displace a timestamped one
    if candidate.timestamp is None:
        return current.timestamp is None
    if current.timestamp is None:
        return True
    return candidate.timestamp >= current.timestamp


def latest_event(events: Iterable[JourneyEvent] | None) -> Optional[JourneyEvent]:
    """
    The event with the greatest timestamp. Ties go to the event supplied
    last; untimestamped events only win when none carries a timestamp.
    """
    best: Optional[JourneyEvent] = None
    for ev in events or ():
        if best is None or _is_later(ev, best):
            best = ev
    return best


def latest_by_allocation(
    events: Iterable[JourneyEvent], *, site_id: int | None = None
) -> dict[int, JourneyEvent]:
    """
    Reduce an event history to one current event per allocation, optionally
    restricted to one site.
    """
    out: dict[int, JourneyEvent] = {}
    for ev in events:
        if site_id is not None and ev.site_id != site_id:
            continue
        cur = out.get(ev.allocation_id)
        if cur is None or _is_later(ev, cur):
            out[ev.allocation_id] = ev
    return out


def active_at_site(events: Iterable[JourneyEvent], site_id: int) -> list[JourneyEvent]:
    """Latest events at the site whose status is still arrived."""
    latest = latest_by_allocation(events, site_id=site_id)
    return [ev for ev in latest.values() if ev.status == JourneyStatus.arrived.value]


@dataclass(frozen=True, slots=True)
class JourneyIndex:
    """
    Journey events grouped per site and allocation.

    A site listed in `missing_sites` failed to load and reads exactly like a
    site with no events.
    """

    by_site: Mapping[int, Mapping[int, tuple[JourneyEvent, ...]]] = field(
        default_factory=dict
    )
    missing_sites: tuple[PartialData, ...] = ()

    @classmethod
    def build(
        cls,
        per_site: Mapping[int, Sequence[JourneyEvent]],
        *,
        failures: Sequence[PartialData] = (),
    ) -> "JourneyIndex":
        failed = {f.site_id for f in failures}
        grouped: dict[int, dict[int, list[JourneyEvent]]] = defaultdict(
            lambda: defaultdict(list)
        )
        for events in per_site.values():
            for ev in events:
                # an event's own site id wins over the bucket it was fetched in
                if ev.site_id in failed:
                    continue
                grouped[ev.site_id][ev.allocation_id].append(ev)

        by_site = {
            site_id: {a: tuple(evs) for a, evs in allocs.items()}
            for site_id, allocs in grouped.items()
        }
        return cls(by_site=by_site, missing_sites=tuple(failures))

    @classmethod
    def from_events(cls, events: Iterable[JourneyEvent]) -> "JourneyIndex":
        per_site: dict[int, list[JourneyEvent]] = defaultdict(list)
        for ev in events:
            per_site[ev.site_id].append(ev)
        return cls.build(per_site)

    def events(self, site_id: int, allocation_id: int) -> tuple[JourneyEvent, ...]:
        return tuple(self.by_site.get(site_id, {}).get(allocation_id, ()))

    def latest(self, site_id: int, allocation_id: int) -> Optional[JourneyEvent]:
        return latest_event(self.events(site_id, allocation_id))

    def has_events(self, site_id: int, allocation_id: int) -> bool:
        return bool(self.events(site_id, allocation_id))
