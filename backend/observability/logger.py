"""
Structured event logger.

- Write one event per line (JSON by default, key=value text otherwise)
- Output to stdout
- No buffering, no batching
- Events below the configured level are dropped
- No side effects beyond logging
"""

from __future__ import annotations

import json
import sys
import time
from typing import Any, Callable, Mapping


_LEVELS: dict[str, int] = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
}


# ------------------------------------------------------------------
# Explicit output sink (patchable in tests)
# ------------------------------------------------------------------

def _stdout_print(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()

_print: Callable[[str], None] = _stdout_print

_min_level: int = _LEVELS["DEBUG"]
_json_logs: bool = True


def configure(*, level: str = "INFO", json_logs: bool = True) -> None:
    """
    Set the process-wide threshold and output format.

    Called once at startup with values from AppConfig.
    Unknown level names fall back to INFO.
    """
    global _min_level, _json_logs  # pylint: disable=global-statement
    _min_level = _LEVELS.get(level.upper(), _LEVELS["INFO"])
    _json_logs = json_logs


def log_event(event: Mapping[str, Any], level: str = "INFO") -> None:
    """
    Write a single structured event.

    The caller supplies the event dict (event_type, session_id, ...).
    ts_ms and level are added when absent.

    This function never raises.
    """
    if _LEVELS.get(level, _LEVELS["INFO"]) < _min_level:
        return

    payload: dict[str, Any] = {"ts_ms": int(time.time() * 1000), "level": level}
    payload.update(event)

    try:
        if _json_logs:
            line = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
        else:
            line = " ".join(f"{k}={_format_value(v)}" for k, v in payload.items())
    except (TypeError, ValueError) as e:
        # Last-resort fallback, logging must never crash the turn
        fallback: dict[str, Any] = {
            "ts_ms": payload.get("ts_ms"),
            "level": "ERROR",
            "event_type": "LOGGER_SERIALIZATION_ERROR",
            "error": str(e),
            "original_event_repr": repr(event),
        }
        line = json.dumps(fallback, ensure_ascii=False, separators=(",", ":"))

    _print(line)


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False) if " " in value else value
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
