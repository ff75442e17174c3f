# pylint: disable=missing-module-docstring,missing-function-docstring

import json
from typing import Any

import pytest

from observability import logger, metrics


def _capture(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    captured: list[str] = []

    def fake_print(line: str) -> None:
        captured.append(line)

    # Patch the explicit output sink used by logger
    monkeypatch.setattr(logger, "_print", fake_print)
    return captured


def test_log_event_emits_valid_jsonl(monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Contract:
    - log_event emits exactly one JSONL line
    - payload keys are preserved, ts_ms and level are added
    - output sink is patchable
    """
    captured = _capture(monkeypatch)

    payload: dict[str, Any] = {
        "event_type": "TEST",
        "value": 123,
    }

    logger.log_event(payload)

    # Exactly one line emitted
    assert len(captured) == 1

    decoded = json.loads(captured[0])
    assert decoded["event_type"] == "TEST"
    assert decoded["value"] == 123
    assert decoded["level"] == "INFO"
    assert isinstance(decoded["ts_ms"], int)


def test_events_below_threshold_are_dropped(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture(monkeypatch)
    logger.configure(level="WARNING")

    logger.log_event({"event_type": "QUIET"}, level="DEBUG")
    logger.log_event({"event_type": "INFO_TOO"})
    logger.log_event({"event_type": "LOUD"}, level="ERROR")

    assert [json.loads(line)["event_type"] for line in captured] == ["LOUD"]


def test_text_format(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture(monkeypatch)
    logger.configure(level="DEBUG", json_logs=False)

    logger.log_event({"event_type": "TURN_STARTED", "session_id": "sess_1"})

    assert "event_type=TURN_STARTED" in captured[0]
    assert "session_id=sess_1" in captured[0]


def test_unserializable_payload_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture(monkeypatch)

    logger.log_event({"event_type": "BAD", "value": object()})

    decoded = json.loads(captured[0])
    assert decoded["event_type"] == "LOGGER_SERIALIZATION_ERROR"
    assert "BAD" in decoded["original_event_repr"]


def test_timed_emits_one_metric(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture(monkeypatch)

    with metrics.timed("stt_latency", session_id="sess_1", stage="TRANSCRIBING"):
        pass

    decoded = [json.loads(line) for line in captured]
    assert len(decoded) == 1
    assert decoded[0]["event_type"] == "METRIC_TIMER"
    assert decoded[0]["metric"] == "stt_latency"
    assert decoded[0]["value_ms"] >= 0


def test_timed_does_not_swallow_exceptions(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture(monkeypatch)

    with pytest.raises(KeyError):
        with metrics.timed("boom"):
            raise KeyError("x")

    assert len(captured) == 1


def test_stop_unknown_timer_returns_none() -> None:
    timer_id = metrics.start_timer("once")

    assert metrics.stop_timer(timer_id) is not None
    assert metrics.stop_timer(timer_id) is None
