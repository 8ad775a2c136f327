from __future__ import annotations

from enum import Enum, IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, computed_field


class Stage(str, Enum):
    """Interview stages in their fixed order."""

    WARMUP = "WARMUP"
    DESCRIBE = "DESCRIBE"
    OPINION = "OPINION"
    PROBLEM_SOLUTION = "PROBLEM_SOLUTION"
    REPHRASE = "REPHRASE"
    ABSTRACT = "ABSTRACT"
    CHALLENGE = "CHALLENGE"
    WRAPUP = "WRAPUP"
    DONE = "DONE"


# 質問ステージ（DONE を除く）。index + 1 が turn 番号になる。
QUESTION_STAGES: tuple[Stage, ...] = tuple(s for s in Stage if s is not Stage.DONE)
TOTAL_TURNS = len(QUESTION_STAGES)

TOPIC_CATALOG: tuple[str, ...] = (
    "daily life",
    "work",
    "travel",
    "family",
    "technology",
    "hobbies",
    "food",
    "health",
    "education",
    "environment",
    "social media",
    "culture",
    "sports",
    "entertainment",
    "future plans",
)


class CEFRLevel(IntEnum):
    A1 = 1
    A2 = 2
    B1 = 3
    B2 = 4
    C1 = 5
    C2 = 6

    @classmethod
    def from_estimate(cls, estimate: float) -> "CEFRLevel":
        """Round a numeric estimate to the nearest level, clamped to A1..C2."""

        return cls(max(1, min(6, int(estimate + 0.5))))


DEFAULT_ESTIMATE = int(CEFRLevel.B1)


class DimensionScores(BaseModel):
    """Per-turn evaluation on the five CEFR dimensions (0..5 each).

    LLM 応答には cefr_guess や feedback も含まれるが、推定に使うのは5次元のみ。
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    comprehension: StrictInt = Field(ge=0, le=5)
    task_response: StrictInt = Field(ge=0, le=5)
    grammar_accuracy: StrictInt = Field(ge=0, le=5)
    lexical_range: StrictInt = Field(ge=0, le=5)
    fluency_coherence: StrictInt = Field(ge=0, le=5)


DIMENSIONS: tuple[str, ...] = tuple(DimensionScores.model_fields)


class EvaluatorNotes(BaseModel):
    """Optional free-text fields the evaluator returns next to the scores.

    推定には使わないが、結果画面の設問ごとのフィードバックに使う。
    """

    model_config = ConfigDict(frozen=True)

    feedback: str | None = None
    cefr_guess: str | None = None
    corrected: str | None = None


class TurnRecord(BaseModel):
    """One scored turn, kept so the result screen can replay question and answer."""

    model_config = ConfigDict(frozen=True)

    stage: Stage
    scores: DimensionScores
    weighted_score: int = Field(ge=0, le=35)
    level: int = Field(ge=1, le=6)
    topic: str | None = None
    question: str | None = None
    answer: str | None = None
    notes: EvaluatorNotes = EvaluatorNotes()


class PlacementSession(BaseModel):
    """In-progress placement interview.

    stage は turn から固定表で導出する。turn は advance のたびに1ずつ増え、
    WRAPUP(8) の次は Completed になる。
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    session_id: str = Field(min_length=1)
    turn: int = Field(default=1, ge=1, le=TOTAL_TURNS)
    estimate: int = Field(default=DEFAULT_ESTIMATE, ge=1, le=6)
    used_topics: tuple[str, ...] = ()
    current_topic: str | None = None
    current_question: str | None = None
    per_turn_scores: tuple[TurnRecord, ...] = ()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def stage(self) -> Stage:
        return QUESTION_STAGES[self.turn - 1]

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class Completed(BaseModel):
    """Terminal result of a placement interview."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    session_id: str = Field(min_length=1)
    estimate: int = Field(ge=1, le=6)
    used_topics: tuple[str, ...] = ()
    per_turn_scores: tuple[TurnRecord, ...] = ()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def stage(self) -> Stage:
        return Stage.DONE

    @property
    def level(self) -> CEFRLevel:
        return CEFRLevel(self.estimate)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


def session_from_document(document: dict[str, Any]) -> PlacementSession | Completed:
    """Restore a persisted session; a DONE document restores as Completed."""

    if document.get("stage") == Stage.DONE.value:
        return Completed.model_validate(document)
    return PlacementSession.model_validate(document)


class Question(BaseModel):
    text: str = Field(min_length=1)
    topic: str = Field(min_length=1)


class TurnFeedback(BaseModel):
    turn: int = Field(ge=1, le=TOTAL_TURNS)
    stage: Stage
    question: str | None = None
    answer: str | None = None
    corrected: str | None = None
    feedback: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def needs_correction(self) -> bool:
        return bool(self.corrected) and self.corrected != self.answer


class PlacementSummary(BaseModel):
    """Final result shown to the learner.

    - dimension_averages: 各次元の平均（小数2桁、四捨五入）
    - description / next_step: レベルごとの説明文と次の学習ステップ
    - turn_feedback: 設問ごとの回答と訂正
    """

    session_id: str
    level: int = Field(ge=1, le=6)
    label: str
    description: str
    next_step: str
    turns_scored: int = Field(ge=0)
    dimension_averages: dict[str, float]
    turn_feedback: tuple[TurnFeedback, ...] = ()
