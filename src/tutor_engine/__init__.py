"""Spaced-repetition scheduling and CEFR placement estimation for a language tutor."""

from .errors import (
    ConcurrentUpdateError,
    InvalidQualityError,
    InvalidScoresError,
    SessionCompletedError,
    SessionExistsError,
    SessionInProgressError,
    SessionNotFoundError,
    TutorEngineError,
    VersionConflictError,
)
from .models import (
    CEFRLevel,
    Completed,
    DimensionScores,
    PlacementSession,
    PlacementSummary,
    Question,
    ReviewState,
    ReviewSubmission,
    Stage,
    TurnRecord,
)
from .placement import advance, estimate_level, next_topic, record_turn, score_turn, start_session, summarize
from .srs import accuracy, apply_review, is_due, select_due
from .validation import ScoresAccepted, ScoresRejected, validate_dimension_scores

__version__ = "0.1.0"

__all__ = [
    "CEFRLevel",
    "Completed",
    "ConcurrentUpdateError",
    "DimensionScores",
    "InvalidQualityError",
    "InvalidScoresError",
    "PlacementSession",
    "PlacementSummary",
    "Question",
    "ReviewState",
    "ReviewSubmission",
    "ScoresAccepted",
    "ScoresRejected",
    "SessionCompletedError",
    "SessionExistsError",
    "SessionInProgressError",
    "SessionNotFoundError",
    "Stage",
    "TurnRecord",
    "TutorEngineError",
    "VersionConflictError",
    "accuracy",
    "advance",
    "apply_review",
    "estimate_level",
    "is_due",
    "next_topic",
    "record_turn",
    "score_turn",
    "select_due",
    "start_session",
    "summarize",
    "validate_dimension_scores",
]
