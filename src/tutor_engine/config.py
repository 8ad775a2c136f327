from __future__ import annotations

import logging
from typing import Annotated

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources.types import NoDecode

from .models.placement import TOPIC_CATALOG


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    環境変数から読み込まれる設定クラス。スケジューラ/推定器そのものは純粋関数で
    設定を参照しないため、ここにはオーケストレーション層とロギングの値だけを置く。
    - review_max_retries: 楽観ロック競合時の再計算回数
    - placement_topic_catalog: 出題トピックの候補（順序付き）
    """

    environment: str = Field(
        default="development",
        description="Runtime environment / 実行環境",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level / ルートロガーのログレベル",
    )

    # --- SRS（復習）オーケストレーション ---
    review_max_retries: int = Field(
        default=3,
        ge=0,
        description=(
            "Max recompute attempts after a version conflict / "
            "バージョン競合時に再読込・再計算する最大回数"
        ),
    )
    srs_max_today: int = Field(
        default=20,
        ge=1,
        description="Max items to return for today's review / 本日の最大出題数",
    )

    # --- プレースメントテスト ---
    placement_topic_catalog: Annotated[tuple[str, ...], NoDecode] = Field(
        default=TOPIC_CATALOG,
        description=(
            "Ordered topic catalog (comma separated) / "
            "出題トピック候補のカンマ区切り一覧（先頭から順に使用）"
        ),
    )

    # --- Strict mode ---
    strict_mode: bool = Field(
        default=True,
        description="Fail fast on missing/invalid configuration (disable only for tests)",
    )

    # Pydantic v2 settings config
    # - env_file: .env を読み込む
    # - extra: .env に存在する未使用キーを無視
    # - case_sensitive: 環境変数キーの大小文字を区別しない
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, raw_level: object) -> str:
        """Accept level names case-insensitively and reject unknown ones."""

        name = str(raw_level or "").strip().upper()
        if name not in logging.getLevelNamesMapping():
            raise ValueError(f"LOG_LEVEL must be a logging level name, got {raw_level!r}")
        return name

    @field_validator("placement_topic_catalog", mode="before")
    @classmethod
    def _normalise_topic_catalog(
        cls, raw_topics: object
    ) -> tuple[str, ...] | object:
        """Convert environment input into a trimmed, deduplicated tuple of topics.

        なぜ: トピックは「未使用の先頭」を選ぶため、重複や空要素が混ざると
        同じ話題が繰り返し出題される。順序を保ったまま正規化する。
        """

        if raw_topics is None:
            candidates: list[str] = []
        elif isinstance(raw_topics, str):
            candidates = raw_topics.split(",")
        else:
            try:
                candidates = list(raw_topics)
            except TypeError:
                return raw_topics

        normalised: list[str] = []
        seen: set[str] = set()
        for candidate in candidates:
            if not isinstance(candidate, str):
                continue
            trimmed = candidate.strip().lower()
            if not trimmed or trimmed in seen:
                continue
            seen.add(trimmed)
            normalised.append(trimmed)

        return tuple(normalised)

    @model_validator(mode="after")
    def _require_topics_in_strict_mode(self) -> "Settings":
        """An empty catalog would push every question onto the generator."""

        if self.strict_mode and not self.placement_topic_catalog:
            raise ValueError("PLACEMENT_TOPIC_CATALOG must not be empty when STRICT_MODE=true")
        return self


settings = Settings()
