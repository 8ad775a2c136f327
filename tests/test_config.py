import pytest

from tutor_engine.config import Settings
from tutor_engine.models.placement import TOPIC_CATALOG


def test_defaults(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("PLACEMENT_TOPIC_CATALOG", raising=False)
    monkeypatch.delenv("REVIEW_MAX_RETRIES", raising=False)

    settings = Settings()

    assert settings.placement_topic_catalog == TOPIC_CATALOG
    assert settings.review_max_retries == 3
    assert settings.log_level == "INFO"


def test_topic_catalog_from_comma_separated_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PLACEMENT_TOPIC_CATALOG", " Travel, food ,,travel, Music ")

    settings = Settings()

    assert settings.placement_topic_catalog == ("travel", "food", "music")


def test_strict_mode_rejects_empty_topic_catalog(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PLACEMENT_TOPIC_CATALOG", " , ")

    with pytest.raises(ValueError, match="PLACEMENT_TOPIC_CATALOG must not be empty"):
        Settings(strict_mode=True)


def test_non_strict_mode_allows_empty_topic_catalog(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PLACEMENT_TOPIC_CATALOG", "")

    settings = Settings(strict_mode=False)

    assert settings.placement_topic_catalog == ()


def test_log_level_is_normalised(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert Settings().log_level == "DEBUG"

    monkeypatch.setenv("LOG_LEVEL", "chatty")
    with pytest.raises(ValueError, match="LOG_LEVEL must be a logging level name"):
        Settings()


def test_negative_retries_rejected():
    with pytest.raises(ValueError):
        Settings(review_max_retries=-1)
