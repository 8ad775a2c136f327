import json
import logging
import sys

import pytest
import structlog

from tutor_engine.logging import configure_logging
from tutor_engine.services import PlacementService, ReviewService
from tutor_engine.store import InMemoryStore

from tests.fakes import ScriptedEvaluator


class _CurrentStderr:
    """Forward writes to whatever sys.stderr is at write time (capsys swaps it between phases)."""

    def write(self, data: str) -> int:
        return sys.stderr.write(data)

    def flush(self) -> None:
        sys.stderr.flush()


@pytest.fixture
def json_logs(capsys: pytest.CaptureFixture[str]):
    """Configure logging and return a reader for the emitted JSON events.

    なぜ: basicConfig(force=True) で作られる StreamHandler は生成時点の sys.stderr を
    掴むため、capsys の差し替え後に configure_logging を呼ぶ必要がある。
    """

    configure_logging()
    for handler in logging.getLogger().handlers:
        if type(handler) is logging.StreamHandler:
            handler.setStream(_CurrentStderr())
    structlog.contextvars.clear_contextvars()

    def _read() -> list[dict]:
        captured = capsys.readouterr()
        lines = (captured.err + captured.out).splitlines()
        return [json.loads(ln) for ln in lines if ln.startswith("{")]

    yield _read
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()


def test_review_applied_is_json_with_timestamp_and_level(json_logs, fixed_now):
    ReviewService(InMemoryStore()).submit("u1", "w:converge", 4, now=fixed_now)

    events = [e for e in json_logs() if e.get("event") == "review_applied"]

    assert len(events) == 1
    event = events[0]
    assert event["level"] == "info"
    assert "timestamp" in event
    assert event["user_id"] == "u1"
    assert event["interval"] == 1
    assert event["new_item"] is True


def test_placement_events_carry_session_id(json_logs):
    service = PlacementService(InMemoryStore(), ScriptedEvaluator([{"comprehension": 9}]))
    service.start("s-log")

    with pytest.raises(ValueError):
        service.answer("s-log", "hello")

    rejected = [e for e in json_logs() if e.get("event") == "placement_scores_rejected"]
    assert len(rejected) == 1
    assert rejected[0]["session_id"] == "s-log"
    assert rejected[0]["level"] == "warning"
    assert rejected[0]["stage"] == "WARMUP"
    # bound context does not leak past the call
    assert structlog.contextvars.get_contextvars() == {}
