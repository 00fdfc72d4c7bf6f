from .cluster import (
    DEFAULT_MAX_RESTARTS,
    Candidate,
    ClusterGrower,
    GrowthPhase,
    GrowthResult,
    Score,
    grow,
    score,
)

__all__ = [
    "DEFAULT_MAX_RESTARTS",
    "Candidate",
    "ClusterGrower",
    "GrowthPhase",
    "GrowthResult",
    "Score",
    "grow",
    "score",
]
