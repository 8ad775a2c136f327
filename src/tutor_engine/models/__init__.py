from .placement import (
    CEFRLevel,
    Completed,
    DimensionScores,
    EvaluatorNotes,
    PlacementSession,
    PlacementSummary,
    Question,
    Stage,
    TurnFeedback,
    TurnRecord,
)
from .review import ReviewState, ReviewSubmission

__all__ = [
    "CEFRLevel",
    "Completed",
    "DimensionScores",
    "EvaluatorNotes",
    "PlacementSession",
    "PlacementSummary",
    "Question",
    "ReviewState",
    "ReviewSubmission",
    "Stage",
    "TurnFeedback",
    "TurnRecord",
]
