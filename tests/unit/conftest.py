# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from observability import logger


@pytest.fixture(autouse=True)
def _isolated_logger(monkeypatch: pytest.MonkeyPatch) -> None:
    # configure() mutates module globals; monkeypatch restores them after each test
    monkeypatch.setattr(logger, "_print", lambda line: None)
    monkeypatch.setattr(logger, "_min_level", logger._LEVELS["DEBUG"])  # pylint: disable=protected-access
    monkeypatch.setattr(logger, "_json_logs", True)
