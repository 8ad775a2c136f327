import pytest
from pydantic import ValidationError

from tutor_engine.errors import InvalidScoresError
from tutor_engine.models.review import ReviewSubmission
from tutor_engine.validation import ScoresAccepted, ScoresRejected, validate_dimension_scores

from tests.fakes import dims


def test_valid_payload_is_accepted_and_extra_keys_ignored():
    payload = dims(5, 4, 3, 2, 1, cefr_guess="B1", feedback="Good answer")

    result = validate_dimension_scores(payload)

    assert isinstance(result, ScoresAccepted)
    assert result.ok is True
    assert result.scores.grammar_accuracy == 3
    assert result.scores.lexical_range == 2


@pytest.mark.parametrize(
    "field, value",
    [
        ("comprehension", 6),
        ("grammar_accuracy", -1),
        ("lexical_range", "3"),
        ("fluency_coherence", 3.0),
        ("task_response", True),
        ("comprehension", None),
    ],
)
def test_out_of_shape_values_are_rejected_without_coercion(field, value):
    payload = dims(**{field: value})

    result = validate_dimension_scores(payload)

    assert isinstance(result, ScoresRejected)
    assert result.ok is False
    assert result.payload == payload
    assert any(err.startswith(f"{field}:") for err in result.errors)


def test_missing_dimension_is_rejected():
    payload = dims()
    del payload["lexical_range"]

    result = validate_dimension_scores(payload)

    assert isinstance(result, ScoresRejected)
    assert result.errors == ("lexical_range: Field required",)


@pytest.mark.parametrize("payload", [None, "not json", [1, 2, 3, 4, 5]])
def test_non_mapping_payload_is_rejected(payload):
    result = validate_dimension_scores(payload)

    assert isinstance(result, ScoresRejected)
    assert result.errors[0].startswith("payload: expected a mapping")


def test_invalid_scores_error_carries_rejection():
    rejection = validate_dimension_scores({"comprehension": 9})
    assert isinstance(rejection, ScoresRejected)

    error = InvalidScoresError(rejection)

    assert error.rejection is rejection
    assert "comprehension" in str(error)
    assert isinstance(error, ValueError)


def test_review_submission_requires_strict_integer_quality():
    ok = ReviewSubmission.model_validate({"user_id": "u1", "item_id": "w:converge", "quality": 5})
    assert ok.quality == 5

    for bad in (6, -1, "4", 4.0, False):
        with pytest.raises(ValidationError):
            ReviewSubmission.model_validate({"user_id": "u1", "item_id": "w:converge", "quality": bad})


def test_evaluator_notes_are_kept_and_malformed_ones_dropped():
    accepted = validate_dimension_scores(
        dims(cefr_guess=" c1 ", feedback="Nice range.", corrected=42)
    )

    assert isinstance(accepted, ScoresAccepted)
    assert accepted.notes.cefr_guess == "C1"
    assert accepted.notes.feedback == "Nice range."
    assert accepted.notes.corrected is None

    unknown = validate_dimension_scores(dims(cefr_guess="native"))
    assert unknown.notes.cefr_guess is None
