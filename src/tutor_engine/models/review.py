from __future__ import annotations

from typing import Any

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, StrictInt, model_validator


MIN_EASE = 130
DEFAULT_EASE = 250


class ReviewState(BaseModel):
    """Scheduling state for one learner × vocabulary item.

    学習者×語彙ごとに1件存在する復習状態。ease は 1/100 単位の整数（250 = 2.50）。
    apply_review だけが新しい値を生成し、既存の値は変更しない（frozen）。
    """

    model_config = ConfigDict(frozen=True)

    interval: StrictInt = Field(ge=0, description="Days until next due review / 次回復習までの日数")
    ease: StrictInt = Field(ge=MIN_EASE, description="Ease factor in hundredths / 易度係数（1/100単位）")
    due_at: AwareDatetime
    last_review_at: AwareDatetime
    streak: StrictInt = Field(default=0, ge=0)
    lapses: StrictInt = Field(default=0, ge=0)
    total_reviews: StrictInt = Field(default=0, ge=0)
    correct_reviews: StrictInt = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_ordering(self) -> "ReviewState":
        if self.last_review_at > self.due_at:
            raise ValueError("last_review_at must not be later than due_at")
        if self.correct_reviews > self.total_reviews:
            raise ValueError("correct_reviews must not exceed total_reviews")
        return self

    def to_document(self) -> dict[str, Any]:
        """Return the persisted shape (ISO-8601 timestamps, integer counters)."""

        return {
            "interval": self.interval,
            "ease": self.ease,
            "due_at": self.due_at.isoformat(),
            "last_review_at": self.last_review_at.isoformat(),
            "streak": self.streak,
            "lapses": self.lapses,
            "total_reviews": self.total_reviews,
            "correct_reviews": self.correct_reviews,
        }

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "ReviewState":
        return cls.model_validate(document)


class ReviewSubmission(BaseModel):
    """A raw review submission validated at the orchestration boundary.

    - quality: 0..5 の整数のみ（"3" や 3.0、True は拒否）
    """

    model_config = ConfigDict(extra="ignore")

    user_id: str = Field(min_length=1)
    item_id: str = Field(min_length=1)
    quality: StrictInt = Field(ge=0, le=5)
    reviewed_at: AwareDatetime | None = None
