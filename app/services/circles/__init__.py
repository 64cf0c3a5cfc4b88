"""Circle formation and lifecycle engines."""

from app.services.circles.formation import CircleFormationEngine
from app.services.circles.lifecycle import (
    CircleLifecycleManager,
    InvalidTransitionError,
    classify_health,
)
from app.services.circles.types import (
    CircleSnapshot,
    FormationResult,
    MembershipSnapshot,
    RotationPlan,
)

__all__ = [
    "CircleFormationEngine",
    "CircleLifecycleManager",
    "CircleSnapshot",
    "FormationResult",
    "InvalidTransitionError",
    "MembershipSnapshot",
    "RotationPlan",
    "classify_health",
]
