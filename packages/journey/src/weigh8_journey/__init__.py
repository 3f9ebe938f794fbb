from .core import AllocationNotFound, DataQualityIssue, PartialData, Settings, load_settings
from .engine import (
    Board,
    BoardView,
    DerivedStage,
    GateAction,
    JourneyIndex,
    LionsStage,
    Resolution,
    Stage,
    TimelineEntry,
    build_board,
    build_timeline,
    find_entity,
    lions_stage,
    normalize_name,
    normalize_plate,
    resolve_plate,
    resolve_stage,
)
from .models import Allocation, CanonicalEntity, JourneyEvent

__version__ = "0.1.0"

__all__ = [
    "AllocationNotFound",
    "DataQualityIssue",
    "PartialData",
    "Settings",
    "load_settings",
    "Board",
    "BoardView",
    "DerivedStage",
    "GateAction",
    "JourneyIndex",
    "LionsStage",
    "Resolution",
    "Stage",
    "TimelineEntry",
    "build_board",
    "build_timeline",
    "find_entity",
    "lions_stage",
    "normalize_name",
    "normalize_plate",
    "resolve_plate",
    "resolve_stage",
    "Allocation",
    "CanonicalEntity",
    "JourneyEvent",
]
