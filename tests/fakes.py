"""評価器・質問生成器のテスト用フェイク実装。"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from tutor_engine.models.placement import Question, Stage
from tutor_engine.providers import AnswerEvaluator, QuestionGenerator


def dims(
    comprehension: int = 4,
    task_response: int = 4,
    grammar_accuracy: int = 4,
    lexical_range: int = 4,
    fluency_coherence: int = 4,
    **extra: Any,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "comprehension": comprehension,
        "task_response": task_response,
        "grammar_accuracy": grammar_accuracy,
        "lexical_range": lexical_range,
        "fluency_coherence": fluency_coherence,
    }
    payload.update(extra)
    return payload


class ScriptedEvaluator(AnswerEvaluator):
    """Returns queued payloads in order and records every call."""

    def __init__(self, payloads: Iterable[Any]) -> None:
        self._payloads = list(payloads)
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def evaluate(self, text: str, context: Mapping[str, Any]) -> Mapping[str, Any]:
        self.calls.append((text, dict(context)))
        return self._payloads.pop(0)


class RecordingGenerator(QuestionGenerator):
    """Echoes the requested topic, inventing ``novel-N`` when the catalog is exhausted."""

    def __init__(self) -> None:
        self.calls: list[tuple[Stage, int, str | None]] = []

    def generate(self, stage: Stage, level: int, topic: str | None) -> Question:
        self.calls.append((stage, level, topic))
        chosen = topic or f"novel-{len(self.calls)}"
        return Question(text=f"[{stage.value}] question about {chosen}", topic=chosen)
