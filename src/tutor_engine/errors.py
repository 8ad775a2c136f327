"""Exception hierarchy shared by the scheduler, the estimator and the services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover
    from .validation import ScoresRejected


class TutorEngineError(Exception):
    """Base class for every error raised by tutor_engine."""


class InvalidQualityError(TutorEngineError, ValueError):
    """Review quality outside the integer range 0..5.

    クランプはしない。呼び出し側のバグを隠して ease/interval を壊すため、
    契約違反としてそのまま呼び出し側へ返す。
    """

    def __init__(self, quality: Any) -> None:
        self.quality = quality
        super().__init__(f"quality must be an integer in [0, 5], got {quality!r}")


class InvalidScoresError(TutorEngineError, ValueError):
    """The evaluator returned a payload that is not a valid dimension-score record."""

    def __init__(self, rejection: "ScoresRejected") -> None:
        self.rejection = rejection
        super().__init__("invalid dimension scores: " + "; ".join(rejection.errors))


class SessionCompletedError(TutorEngineError):
    """A completed placement session cannot be scored again."""


class SessionInProgressError(TutorEngineError):
    """The placement session has not reached DONE yet."""


class SessionExistsError(TutorEngineError):
    """A placement session with this id has already been started."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"placement session already exists: {session_id}")


class SessionNotFoundError(TutorEngineError, LookupError):
    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"placement session not found: {session_id}")


class VersionConflictError(TutorEngineError):
    """The stored document changed between read and write."""

    def __init__(self, key: str, expected: int | None, actual: int | None) -> None:
        self.key = key
        self.expected = expected
        self.actual = actual
        super().__init__(f"version conflict on {key}: expected {expected}, found {actual}")


class ConcurrentUpdateError(TutorEngineError):
    """Retries were exhausted while other writers kept updating the same key."""
