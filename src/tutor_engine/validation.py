"""Boundary validation of evaluator payloads.

LLM から返る緩い型のスコアを、推定器に渡す前に固定の5次元スキーマで検証する。
ベストエフォートの型変換はせず、結果は ScoresAccepted / ScoresRejected の
タグ付きユニオンで返す。
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError

from .models.placement import CEFRLevel, DimensionScores, EvaluatorNotes


class ScoresAccepted(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: Literal[True] = True
    scores: DimensionScores
    notes: EvaluatorNotes = EvaluatorNotes()


class ScoresRejected(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: Literal[False] = False
    payload: Any
    errors: tuple[str, ...]


ScoresValidation = ScoresAccepted | ScoresRejected


def _format_error(error: Mapping[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ())) or "payload"
    return f"{location}: {error.get('msg', 'invalid value')}"


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def extract_notes(payload: Mapping[str, Any]) -> EvaluatorNotes:
    """Pick the optional comment fields; malformed ones are dropped, never rejected.

    cefr_guess は A1..C2 のいずれかに正規化できる場合だけ残す。
    """

    guess = _text(payload.get("cefr_guess"))
    if guess is not None:
        guess = guess.upper()
        if guess not in CEFRLevel.__members__:
            guess = None
    return EvaluatorNotes(
        feedback=_text(payload.get("feedback")),
        cefr_guess=guess,
        corrected=_text(payload.get("corrected")),
    )


def validate_dimension_scores(payload: Any) -> ScoresValidation:
    """Validate a raw evaluator payload against the dimension-score shape."""

    if not isinstance(payload, Mapping):
        return ScoresRejected(
            payload=payload,
            errors=(f"payload: expected a mapping, got {type(payload).__name__}",),
        )
    try:
        scores = DimensionScores.model_validate(dict(payload))
    except ValidationError as exc:
        return ScoresRejected(
            payload=payload,
            errors=tuple(_format_error(err) for err in exc.errors()),
        )
    return ScoresAccepted(scores=scores, notes=extract_notes(payload))
