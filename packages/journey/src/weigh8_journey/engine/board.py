from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Optional, Sequence

import structlog

from weigh8_journey.core.config import BULK_CONNECTIONS_SITE_ID, LIONS_PARK_SITE_ID
from weigh8_journey.models import Allocation

from .journey import JourneyIndex
from .matcher import name_contains
from .stages import (
    ACTIVE_STAGES,
    LIONS_STAGES,
    DerivedStage,
    lions_stage,
    resolve_allocation_stage,
)

log = structlog.get_logger(__name__)


class BoardView(StrEnum):
    two_site = "two-site"
    lions = "lions"


@dataclass(frozen=True, slots=True)
class TruckCard:
    allocation: Allocation
    derived: DerivedStage
    column: str


@dataclass(slots=True)
class Board:
    view: BoardView
    columns: dict[str, list[TruckCard]]
    terminal: list[TruckCard] = field(default_factory=list)
    missing_sites: tuple[int, ...] = ()

    @property
    def is_partial(self) -> bool:
        return bool(self.missing_sites)

    def counts(self) -> dict[str, int]:
        return {col: len(cards) for col, cards in self.columns.items()}

    def active_count(self) -> int:
        return sum(len(cards) for cards in self.columns.values())

    def to_dict(self) -> dict[str, Any]:
        def card(c: TruckCard) -> dict[str, Any]:
            return {
                "id": c.allocation.id,
                "vehicleReg": c.allocation.vehicle_reg,
                "transporter": c.allocation.transporter,
                "stage": c.derived.stage.value,
                "displayStatus": c.derived.display_status,
                "displayTimestamp": c.derived.display_timestamp,
            }

        return {
            "view": self.view.value,
            "columns": {col: [card(c) for c in cards] for col, cards in self.columns.items()},
            "terminal": [card(c) for c in self.terminal],
            "missingSites": list(self.missing_sites),
        }


def visible_on_two_site_board(
    allocation: Allocation,
    journeys: JourneyIndex,
    *,
    lions_site_id: int = LIONS_PARK_SITE_ID,
    bulk_site_id: int = BULK_CONNECTIONS_SITE_ID,
) -> bool:
    # Bulk-bound, seen at either site, or not yet assigned to a site
    return (
        allocation.site_id is None
        or allocation.site_id == bulk_site_id
        or journeys.has_events(lions_site_id, allocation.id)
        or journeys.has_events(bulk_site_id, allocation.id)
    )


def visible_on_lions_board(
    allocation: Allocation,
    journeys: JourneyIndex,
    *,
    lions_site_id: int = LIONS_PARK_SITE_ID,
) -> bool:
    return allocation.site_id == lions_site_id or journeys.has_events(
        lions_site_id, allocation.id
    )


def build_board(
    allocations: Sequence[Allocation],
    journeys: JourneyIndex,
    view: BoardView | str = BoardView.two_site,
    *,
    transporter: Optional[str] = None,
    lions_site_id: int = LIONS_PARK_SITE_ID,
    bulk_site_id: int = BULK_CONNECTIONS_SITE_ID,
) -> Board:
    """
    Place every visible allocation in its board column.

    Two-site view: staging / pending_arrival / checked_in / departed, with
    cancelled allocations kept aside in `terminal`. Lions view: the
    three-stage re-map, where cancelled shows as departed.
    """
    view = BoardView(view)
    column_ids = (
        [s.value for s in ACTIVE_STAGES]
        if view is BoardView.two_site
        else [s.value for s in LIONS_STAGES]
    )
    board = Board(
        view=view,
        columns={c: [] for c in column_ids},
        missing_sites=tuple(p.site_id for p in journeys.missing_sites),
    )

    for p in journeys.missing_sites:
        log.warning("journey.partial", site_id=p.site_id, error=p.error, view=view.value)

    for alloc in allocations:
        if view is BoardView.two_site:
            visible = visible_on_two_site_board(
                alloc, journeys, lions_site_id=lions_site_id, bulk_site_id=bulk_site_id
            )
        else:
            visible = visible_on_lions_board(alloc, journeys, lions_site_id=lions_site_id)
        if not visible:
            continue
        if transporter and not name_contains(alloc.transporter, transporter):
            continue

        derived = resolve_allocation_stage(
            alloc, journeys, lions_site_id=lions_site_id, bulk_site_id=bulk_site_id
        )
        for issue in derived.issues:
            log.warning("data_quality.warning", **issue.to_dict())

        if view is BoardView.lions:
            column = lions_stage(derived).value
        else:
            column = derived.stage.value

        card = TruckCard(allocation=alloc, derived=derived, column=column)
        if column in board.columns:
            board.columns[column].append(card)
        else:
            board.terminal.append(card)

    log.debug(
        "board.built",
        view=view.value,
        counts=board.counts(),
        terminal=len(board.terminal),
        partial=board.is_partial,
    )
    return board
