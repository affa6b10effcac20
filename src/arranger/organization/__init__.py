"""Collection reorganization: diff planning, application and animation."""

from .animation import AnimationOrchestrator, AnimationPhase, AnimationState
from .client import ReorganizeClient
from .errors import ReorganizationApplyError, ReorganizationError, ReorganizationRequestError
from .executor import ReorganizationExecutor
from .models import (
    ApplyResult,
    DocumentMove,
    Operations,
    ProposedStructure,
    Reorganization,
    ReorganizationDiff,
    ReorganizationPlan,
    ReorganizeResponse,
)
from .planner import ReorganizationPlanner, build_operations, placeholder_key
from .service import FAILURE_MESSAGE, ReorganizationReport, ReorganizationService

__all__ = [
    "AnimationOrchestrator",
    "AnimationPhase",
    "AnimationState",
    "ReorganizeClient",
    "ReorganizationError",
    "ReorganizationApplyError",
    "ReorganizationRequestError",
    "ReorganizationExecutor",
    "ApplyResult",
    "DocumentMove",
    "Operations",
    "ProposedStructure",
    "Reorganization",
    "ReorganizationDiff",
    "ReorganizationPlan",
    "ReorganizeResponse",
    "ReorganizationPlanner",
    "build_operations",
    "placeholder_key",
    "FAILURE_MESSAGE",
    "ReorganizationReport",
    "ReorganizationService",
]
