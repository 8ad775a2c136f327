"""外部コラボレータ（LLM による回答評価と質問生成）の最小インターフェース。

プロンプト設計や通信は本パッケージの範囲外。サービス層はここで定義した
evaluate / generate だけを呼び出す。
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .logging import logger
from .models.placement import Question, Stage


class AnswerEvaluator:
    """回答評価クライアントが実装すべき最小インターフェース。

    戻り値は緩い型の mapping でよい（検証は validation 層で行う）。
    """

    def evaluate(self, text: str, context: Mapping[str, Any]) -> Mapping[str, Any]:  # pragma: no cover - interface definition
        raise NotImplementedError


class QuestionGenerator:
    """次の質問を生成するクライアントのインターフェース。

    topic が None の場合はカタログを使い切っているので、生成側で新しい話題を作り
    その話題タグを Question.topic に入れて返すこと。
    """

    def generate(self, stage: Stage, level: int, topic: str | None) -> Question:  # pragma: no cover - interface definition
        raise NotImplementedError


_FALLBACK_QUESTIONS: dict[Stage, Question] = {
    Stage.DESCRIBE: Question(text="Tell me about a place you visited recently.", topic="travel"),
    Stage.OPINION: Question(text="What do you think about social media?", topic="technology"),
    Stage.PROBLEM_SOLUTION: Question(text="What would you do if you lost your wallet?", topic="problem-solving"),
    Stage.REPHRASE: Question(text="Can you explain that in a different way?", topic="clarification"),
    Stage.ABSTRACT: Question(text="How do you think AI will change our lives?", topic="future"),
    Stage.CHALLENGE: Question(text="Do you agree that technology makes us less social?", topic="technology"),
    Stage.WRAPUP: Question(text="Please summarize our conversation.", topic="summary"),
}
_CLOSING = Question(text="Thank you!", topic="closing")


class StaticQuestionGenerator(QuestionGenerator):
    """外部 LLM が使えない環境でのフォールバック質問バンク。

    ステージごとに固定の質問を返す。レベルと指定トピックは参照しない。
    """

    def generate(self, stage: Stage, level: int, topic: str | None) -> Question:
        question = _FALLBACK_QUESTIONS.get(stage, _CLOSING)
        logger.info(
            "question_generated",
            provider="static",
            stage=stage.value,
            level=level,
            requested_topic=topic,
            topic=question.topic,
        )
        return question
