"""Read-compute-write orchestration around the pure scheduler and estimator.

純粋関数（srs / placement）の前後で状態を読込・保存する薄いサービス層。
同一キーへの同時更新はストアのバージョン比較で検出し、復習は再読込して
再計算、プレースメントは二重採点を避けるため競合をそのまま呼び出し側へ返す。
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from urllib.parse import quote, unquote

from structlog import contextvars as structlog_contextvars

from .config import settings
from .errors import (
    ConcurrentUpdateError,
    InvalidScoresError,
    SessionExistsError,
    SessionInProgressError,
    SessionNotFoundError,
    VersionConflictError,
)
from .logging import logger
from .models.placement import (
    Completed,
    PlacementSession,
    PlacementSummary,
    Question,
    TurnRecord,
    session_from_document,
)
from .models.review import ReviewState, ReviewSubmission
from .placement import (
    OPENING_QUESTION,
    OPENING_TOPIC,
    advance,
    assign_topic,
    cefr_label,
    next_topic,
    record_turn,
    start_session,
    summarize,
)
from .providers import AnswerEvaluator, QuestionGenerator, StaticQuestionGenerator
from .srs import apply_review, select_due, validate_quality
from .store import KeyValueStore
from .validation import ScoresRejected, validate_dimension_scores


def _key_part(value: str) -> str:
    # ":" は区切り文字なので各要素をパーセントエンコードする
    return quote(value, safe="")


def review_key(user_id: str, item_id: str) -> str:
    """Store key for one (user, item); distinct pairs never share a key."""

    return f"review:{_key_part(user_id)}:{_key_part(item_id)}"


def _review_prefix(user_id: str) -> str:
    return f"review:{_key_part(user_id)}:"


def session_key(session_id: str) -> str:
    return f"placement:{_key_part(session_id)}"


class ReviewService:
    """Apply review outcomes to stored ReviewState documents."""

    def __init__(self, store: KeyValueStore, *, max_retries: int | None = None) -> None:
        self._store = store
        self._max_retries = settings.review_max_retries if max_retries is None else max_retries

    def get(self, user_id: str, item_id: str) -> ReviewState | None:
        stored = self._store.get(review_key(user_id, item_id))
        if stored is None:
            return None
        return ReviewState.from_document(stored.document)

    def submit(
        self,
        user_id: str,
        item_id: str,
        quality: int,
        *,
        now: datetime | None = None,
    ) -> ReviewState:
        """Apply one review, retrying the read-compute-write on version conflicts.

        競合時は最新の状態を読み直して再計算するため、同時に届いた2件の
        レビューのどちらかが黙って失われることはない。
        """

        validate_quality(quality)
        reviewed_at = now or datetime.now(UTC)
        key = review_key(user_id, item_id)
        attempt = 0
        while True:
            stored = self._store.get(key)
            prior = None if stored is None else ReviewState.from_document(stored.document)
            updated = apply_review(prior, quality, now=reviewed_at)
            try:
                self._store.put(
                    key,
                    updated.to_document(),
                    expected_version=None if stored is None else stored.version,
                )
            except VersionConflictError as exc:
                if attempt >= self._max_retries:
                    logger.warning(
                        "review_retries_exhausted",
                        user_id=user_id,
                        item_id=item_id,
                        attempts=attempt + 1,
                    )
                    raise ConcurrentUpdateError(
                        f"gave up updating {key} after {attempt + 1} attempts"
                    ) from exc
                attempt += 1
                logger.info(
                    "review_version_conflict",
                    user_id=user_id,
                    item_id=item_id,
                    expected=exc.expected,
                    actual=exc.actual,
                    attempt=attempt,
                )
                continue

            logger.info(
                "review_applied",
                user_id=user_id,
                item_id=item_id,
                quality=quality,
                interval=updated.interval,
                ease=updated.ease,
                streak=updated.streak,
                new_item=prior is None,
            )
            return updated

    def submit_payload(self, payload: Mapping[str, Any]) -> ReviewState:
        """Validate a raw submission (pydantic ValidationError on bad input) and apply it."""

        submission = ReviewSubmission.model_validate(payload)
        return self.submit(
            submission.user_id,
            submission.item_id,
            submission.quality,
            now=submission.reviewed_at,
        )

    def due_items(self, user_id: str, *, now: datetime | None = None, limit: int | None = None) -> list[str]:
        """Return item ids due for ``user_id``, oldest due first."""

        prefix = _review_prefix(user_id)
        states: dict[str, ReviewState] = {}
        for key in self._store.keys(prefix):
            stored = self._store.get(key)
            if stored is None:
                continue
            states[unquote(key[len(prefix):])] = ReviewState.from_document(stored.document)
        return select_due(
            states,
            now or datetime.now(UTC),
            settings.srs_max_today if limit is None else limit,
        )


@dataclass(frozen=True)
class TurnOutcome:
    session: PlacementSession | Completed
    record: TurnRecord | None
    question: Question | None

    @property
    def completed(self) -> bool:
        return isinstance(self.session, Completed)


class PlacementService:
    """Drive an 8-turn placement interview through the evaluator and question generator."""

    def __init__(
        self,
        store: KeyValueStore,
        evaluator: AnswerEvaluator,
        questions: QuestionGenerator | None = None,
        *,
        catalog: Sequence[str] | None = None,
    ) -> None:
        self._store = store
        self._evaluator = evaluator
        self._questions = questions or StaticQuestionGenerator()
        self._catalog = tuple(settings.placement_topic_catalog if catalog is None else catalog)

    def start(self, session_id: str | None = None) -> tuple[PlacementSession, Question]:
        session = start_session(session_id)
        try:
            self._store.put(session_key(session.session_id), session.to_document(), expected_version=None)
        except VersionConflictError as exc:
            raise SessionExistsError(session.session_id) from exc
        logger.info("placement_started", session_id=session.session_id, estimate=session.estimate)
        return session, Question(text=OPENING_QUESTION, topic=OPENING_TOPIC)

    def load(self, session_id: str) -> PlacementSession | Completed:
        stored = self._store.get(session_key(session_id))
        if stored is None:
            raise SessionNotFoundError(session_id)
        return session_from_document(stored.document)

    def answer(self, session_id: str, text: str) -> TurnOutcome:
        """Evaluate one answer, update the estimate and move to the next stage.

        - 完了済みセッションは評価し直さず保存済みの結果を返す（リトライ対策）
        - 評価結果がスキーマに合わない場合は InvalidScoresError
        """

        key = session_key(session_id)
        with structlog_contextvars.bound_contextvars(session_id=session_id):
            stored = self._store.get(key)
            if stored is None:
                raise SessionNotFoundError(session_id)
            session = session_from_document(stored.document)
            if isinstance(session, Completed):
                logger.info("placement_already_completed", estimate=session.estimate)
                return TurnOutcome(session=session, record=None, question=None)

            payload = self._evaluator.evaluate(
                text,
                {
                    "stage": session.stage.value,
                    "turn": session.turn,
                    "estimate": session.estimate,
                    "level": cefr_label(session.estimate),
                    "topic": session.current_topic,
                },
            )
            validation = validate_dimension_scores(payload)
            if isinstance(validation, ScoresRejected):
                logger.warning(
                    "placement_scores_rejected",
                    stage=session.stage.value,
                    errors=list(validation.errors),
                )
                raise InvalidScoresError(validation)

            scored = record_turn(session, validation.scores, answer=text, notes=validation.notes)
            record = scored.per_turn_scores[-1]
            logger.info(
                "placement_turn_scored",
                stage=record.stage.value,
                turn=session.turn,
                weighted_score=record.weighted_score,
                level=record.level,
            )

            following = advance(scored)
            question: Question | None = None
            if isinstance(following, PlacementSession):
                topic = next_topic(following.used_topics, self._catalog)
                question = self._questions.generate(following.stage, following.estimate, topic)
                following = assign_topic(following, question.topic, question=question.text)
            else:
                logger.info(
                    "placement_completed",
                    estimate=following.estimate,
                    label=cefr_label(following.estimate),
                )

            self._store.put(key, following.to_document(), expected_version=stored.version)
            return TurnOutcome(session=following, record=record, question=question)

    def result(self, session_id: str) -> PlacementSummary:
        session = self.load(session_id)
        if not isinstance(session, Completed):
            raise SessionInProgressError(
                f"placement session {session_id} is at {session.stage.value}, not DONE"
            )
        return summarize(session)
