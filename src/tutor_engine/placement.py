"""Adaptive CEFR placement estimator.

8ターン固定のインタビューの進行と、ターンごとの5次元スコアから CEFR レベル
(1=A1..6=C2) を推定する。ステージ遷移は固定表でスコアに依存しない。
スコアによって変わるのは次の質問の内容/難易度だけで、それは外部の質問生成に任せる。
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence

from .errors import SessionCompletedError
from .models.placement import (
    DIMENSIONS,
    QUESTION_STAGES,
    TOPIC_CATALOG,
    CEFRLevel,
    Completed,
    DimensionScores,
    EvaluatorNotes,
    PlacementSession,
    PlacementSummary,
    Stage,
    TurnFeedback,
    TurnRecord,
)

OPENING_QUESTION = (
    "Hello! I'm your English level examiner. I'll conduct a short conversation to assess "
    "your CEFR level (A1-C2). Please answer naturally. Let's begin: Tell me about your typical day."
)
OPENING_TOPIC = "daily life"

# (inclusive lower bound of the weighted score, level), highest first
LEVEL_THRESHOLDS: tuple[tuple[int, int], ...] = (
    (29, CEFRLevel.C2),
    (26, CEFRLevel.C1),
    (22, CEFRLevel.B2),
    (18, CEFRLevel.B1),
    (12, CEFRLevel.A2),
)
GATING_MINIMUM = 3

NEXT_STAGE: dict[Stage, Stage] = {
    stage: (QUESTION_STAGES[i + 1] if i + 1 < len(QUESTION_STAGES) else Stage.DONE)
    for i, stage in enumerate(QUESTION_STAGES)
}

LEVEL_DESCRIPTIONS: dict[CEFRLevel, str] = {
    CEFRLevel.A1: "You understand basic phrases and can introduce yourself.",
    CEFRLevel.A2: "You can communicate in simple tasks and describe your background.",
    CEFRLevel.B1: "You can express opinions on familiar topics and handle most situations.",
    CEFRLevel.B2: "You can express yourself clearly and handle abstract discussions.",
    CEFRLevel.C1: "You can use language flexibly for social, academic, and professional purposes.",
    CEFRLevel.C2: "You can express yourself spontaneously and precisely in complex situations.",
}

# A1..B1 は文法と語彙、B2 は C1 への橋渡し、C1 以上は維持
NEXT_STEPS: dict[CEFRLevel, str] = {
    **dict.fromkeys(
        (CEFRLevel.A1, CEFRLevel.A2, CEFRLevel.B1),
        "Next step: practice grammar and expand your vocabulary.",
    ),
    CEFRLevel.B2: "Next step: practice complex grammar and idioms to reach C1.",
    **dict.fromkeys(
        (CEFRLevel.C1, CEFRLevel.C2),
        "Continue practicing to maintain and enhance your fluency.",
    ),
}

__all__ = [
    "LEVEL_DESCRIPTIONS",
    "LEVEL_THRESHOLDS",
    "NEXT_STEPS",
    "NEXT_STAGE",
    "OPENING_TOPIC",
    "OPENING_QUESTION",
    "TOPIC_CATALOG",
    "advance",
    "assign_topic",
    "cefr_label",
    "estimate_level",
    "next_topic",
    "record_turn",
    "score_turn",
    "start_session",
    "summarize",
]


def score_turn(scores: DimensionScores) -> int:
    """Weighted sum in 0..35; grammar and lexical range count double."""

    return (
        scores.comprehension
        + scores.task_response
        + 2 * scores.grammar_accuracy
        + 2 * scores.lexical_range
        + scores.fluency_coherence
    )


def estimate_level(weighted_score: int, grammar: int, lexical: int) -> int:
    """Map one turn's weighted score to a CEFR level (1..6).

    grammar か lexical が 3 未満なら、合計点が高くても1段階下げる（下限 A1）。
    直前ターンの推定値は参照しない（平滑化なし）。
    """

    level = int(CEFRLevel.A1)
    for lower_bound, threshold_level in LEVEL_THRESHOLDS:
        if weighted_score >= lower_bound:
            level = int(threshold_level)
            break
    if grammar < GATING_MINIMUM or lexical < GATING_MINIMUM:
        level = max(int(CEFRLevel.A1), level - 1)
    return level


def cefr_label(level: float) -> str:
    return CEFRLevel.from_estimate(level).name


def next_topic(used_topics: Iterable[str], catalog: Sequence[str] = TOPIC_CATALOG) -> str | None:
    """Return the first catalog topic not yet used.

    None means the catalog is exhausted and the caller must synthesise a novel
    topic. No fallback topic is chosen here.
    """

    used = set(used_topics)
    for topic in catalog:
        if topic not in used:
            return topic
    return None


def start_session(session_id: str | None = None) -> PlacementSession:
    """New interview at WARMUP with the B1 prior; the opening question covers daily life."""

    return PlacementSession(
        session_id=session_id or uuid.uuid4().hex,
        used_topics=(OPENING_TOPIC,),
        current_topic=OPENING_TOPIC,
        current_question=OPENING_QUESTION,
    )


def _with_topic(used_topics: tuple[str, ...], topic: str | None) -> tuple[str, ...]:
    if topic and topic not in used_topics:
        return used_topics + (topic,)
    return used_topics


def assign_topic(
    session: PlacementSession,
    topic: str,
    *,
    question: str | None = None,
) -> PlacementSession:
    """Mark ``topic`` (and the question text, if given) as asked at the current turn."""

    return session.model_copy(
        update={
            "current_topic": topic,
            "current_question": question,
            "used_topics": _with_topic(session.used_topics, topic),
        }
    )


def record_turn(
    session: PlacementSession | Completed,
    scores: DimensionScores,
    *,
    topic: str | None = None,
    answer: str | None = None,
    notes: EvaluatorNotes | None = None,
) -> PlacementSession:
    """Score the current turn and replace the estimate with this turn's level.

    topic を省略した場合は session.current_topic を記録する。質問文は
    session.current_question をそのまま残す。
    Completed を渡すと SessionCompletedError。完了後の再採点は許さない。
    """

    if isinstance(session, Completed):
        raise SessionCompletedError(f"placement session {session.session_id} is already completed")

    topic = topic if topic is not None else session.current_topic
    weighted = score_turn(scores)
    level = estimate_level(weighted, scores.grammar_accuracy, scores.lexical_range)
    record = TurnRecord(
        stage=session.stage,
        scores=scores,
        weighted_score=weighted,
        level=level,
        topic=topic,
        question=session.current_question,
        answer=answer,
        notes=notes or EvaluatorNotes(),
    )
    return session.model_copy(
        update={
            "estimate": level,
            "used_topics": _with_topic(session.used_topics, topic),
            "per_turn_scores": session.per_turn_scores + (record,),
        }
    )


def advance(session: PlacementSession | Completed) -> PlacementSession | Completed:
    """Move to the next stage; after WRAPUP the result is Completed.

    Completed を渡した場合はそのまま返す（冪等、再採点しない、例外も出さない）。
    """

    if isinstance(session, Completed):
        return session
    if NEXT_STAGE[session.stage] is Stage.DONE:
        return Completed(
            session_id=session.session_id,
            estimate=session.estimate,
            used_topics=session.used_topics,
            per_turn_scores=session.per_turn_scores,
        )
    return session.model_copy(update={"turn": session.turn + 1})


def _mean_hundredths(values: Sequence[int]) -> float:
    """Mean rounded half up to two decimals (4.125 -> 4.13), like the review interval."""

    if not values:
        return 0.0
    count = len(values)
    return ((200 * sum(values) + count) // (2 * count)) / 100


def summarize(completed: Completed) -> PlacementSummary:
    records = completed.per_turn_scores
    averages = {
        dimension: _mean_hundredths([getattr(record.scores, dimension) for record in records])
        for dimension in DIMENSIONS
    }
    feedback = tuple(
        TurnFeedback(
            turn=index,
            stage=record.stage,
            question=record.question,
            answer=record.answer,
            corrected=record.notes.corrected,
            feedback=record.notes.feedback,
        )
        for index, record in enumerate(records, start=1)
    )
    level = completed.level
    return PlacementSummary(
        session_id=completed.session_id,
        level=level,
        label=level.name,
        description=LEVEL_DESCRIPTIONS[level],
        next_step=NEXT_STEPS[level],
        turns_scored=len(records),
        dimension_averages=averages,
        turn_feedback=feedback,
    )
