import logging
import os

# Keep test runs from writing log files into the project tree
os.environ.setdefault("LOG_TO_FILE", "false")

import pytest

from streamguard.core.security import SecureLogger


class FakeClock:
    """Deterministic millisecond clock for rate limiter tests."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def test_logger(caplog):
    logger = logging.getLogger("tests.streamguard")
    caplog.set_level(logging.DEBUG, logger=logger.name)
    return logger


@pytest.fixture
def secure_log(test_logger):
    return SecureLogger(logger=test_logger)
