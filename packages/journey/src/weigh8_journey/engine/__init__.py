from .board import (
    Board,
    BoardView,
    TruckCard,
    build_board,
    visible_on_lions_board,
    visible_on_two_site_board,
)
from .gate import gate_advisory, gate_journey_payload
from .journey import JourneyIndex, active_at_site, latest_by_allocation, latest_event
from .matcher import distinct_names, find_entity, matches_name, name_contains
from .milestones import MILESTONES, journey_milestones
from .resolver import (
    GateAction,
    Resolution,
    candidates_for_plate,
    is_active_for,
    resolve_plate,
)
from .stages import (
    ACTIVE_STAGES,
    LIONS_STAGES,
    DerivedStage,
    LionsStage,
    Stage,
    StageBasis,
    lions_stage,
    resolve_allocation_stage,
    resolve_stage,
)
from .text import normalize_name, normalize_plate
from .timeline import TimelineEntry, TimelineKind, build_timeline

__all__ = [
    "Board",
    "BoardView",
    "TruckCard",
    "build_board",
    "visible_on_lions_board",
    "visible_on_two_site_board",
    "gate_advisory",
    "gate_journey_payload",
    "JourneyIndex",
    "active_at_site",
    "latest_by_allocation",
    "latest_event",
    "distinct_names",
    "find_entity",
    "matches_name",
    "name_contains",
    "MILESTONES",
    "journey_milestones",
    "GateAction",
    "Resolution",
    "candidates_for_plate",
    "is_active_for",
    "resolve_plate",
    "ACTIVE_STAGES",
    "LIONS_STAGES",
    "DerivedStage",
    "LionsStage",
    "Stage",
    "StageBasis",
    "lions_stage",
    "resolve_allocation_stage",
    "resolve_stage",
    "normalize_name",
    "normalize_plate",
    "TimelineEntry",
    "TimelineKind",
    "build_timeline",
]
