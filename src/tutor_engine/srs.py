"""SM-2 style spaced-repetition scheduler.

レビュー結果（quality 0..5）と直前の状態から、次回間隔・易度係数・期日・連続正解数
などを計算する純粋関数群。I/O や共有状態を持たないため、複数学習者のレビューを
並行に処理しても調整は不要。読込→計算→書込の排他はサービス層で行う。
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime, timedelta

from .errors import InvalidQualityError
from .models.review import DEFAULT_EASE, MIN_EASE, ReviewState

PASSING_QUALITY = 3


def validate_quality(quality: object) -> int:
    """Return quality unchanged if it is an int in 0..5, otherwise raise.

    bool は int のサブクラスだが採点値としては受け付けない。
    """

    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQualityError(quality)
    if not 0 <= quality <= 5:
        raise InvalidQualityError(quality)
    return quality


def next_ease(ease: int, quality: int) -> int:
    """SM-2 ease update in integer hundredths, floored at MIN_EASE.

    100 * (0.1 - d*(0.08 + d*0.02)) == 10 - d*(8 + 2d) with d = 5 - quality,
    i.e. +10, 0, -14, -32, -54, -80 for quality 5..0.
    """

    d = 5 - quality
    return max(MIN_EASE, ease + 10 - d * (8 + 2 * d))


def next_interval(interval: int, ease: int, quality: int) -> int:
    if quality < PASSING_QUALITY:
        return 0
    if interval == 0:
        return 1
    if interval == 1:
        return 6
    # round(interval * ease / 100), half-up
    return (interval * ease + 50) // 100


def apply_review(
    state: ReviewState | None,
    quality: int,
    *,
    now: datetime | None = None,
) -> ReviewState:
    """Apply one review outcome and return the next scheduling state.

    - state が None の場合は新規項目として interval=0, ease=250 から計算する
    - quality < 3 は失敗: interval=0, streak=0, lapses+1
    - 戻り値は常に last_review_at <= due_at を満たす（interval >= 0 のため）
    """

    quality = validate_quality(quality)
    reviewed_at = now if now is not None else datetime.now(UTC)
    if reviewed_at.tzinfo is None:
        raise ValueError("now must be timezone-aware")

    if state is None:
        interval, ease = 0, DEFAULT_EASE
        streak = lapses = total = correct = 0
    else:
        interval, ease = state.interval, state.ease
        streak = state.streak
        lapses = state.lapses
        total = state.total_reviews
        correct = state.correct_reviews

    passed = quality >= PASSING_QUALITY
    new_ease = next_ease(ease, quality)
    new_interval = next_interval(interval, new_ease, quality)

    return ReviewState(
        interval=new_interval,
        ease=new_ease,
        due_at=reviewed_at + timedelta(days=new_interval),
        last_review_at=reviewed_at,
        streak=streak + 1 if passed else 0,
        lapses=lapses if passed else lapses + 1,
        total_reviews=total + 1,
        correct_reviews=correct + 1 if passed else correct,
    )


def is_due(state: ReviewState | None, now: datetime) -> bool:
    """Items never reviewed are always due."""

    if state is None:
        return True
    return now >= state.due_at


def accuracy(state: ReviewState | None) -> float:
    if state is None or state.total_reviews == 0:
        return 0.0
    return state.correct_reviews / state.total_reviews


def select_due(states: Mapping[str, ReviewState], now: datetime, limit: int) -> list[str]:
    """Return ids of items due at ``now``, oldest due first (ties by id)."""

    due = [(state.due_at, item_id) for item_id, state in states.items() if now >= state.due_at]
    due.sort()
    return [item_id for _, item_id in due[: max(0, limit)]]
