"""Pytest configuration and fixtures."""

import threading
import time

import pytest

from account import Account
from config import get_settings_for_environment
from logging_config import configure_logging
from repositories import InMemoryEventRepository


@pytest.fixture(autouse=True, scope="session")
def quiet_logging():
    """Keep diagnostic logs out of the captured output."""
    configure_logging("WARNING", "text")


@pytest.fixture
def settings():
    """Fast settings profile for runner tests."""
    return get_settings_for_environment("testing")


@pytest.fixture
def account() -> Account:
    return Account()


@pytest.fixture
def repository() -> InMemoryEventRepository:
    return InMemoryEventRepository()


@pytest.fixture
def stop() -> threading.Event:
    return threading.Event()


@pytest.fixture
def wait_until():
    """Poll a predicate until it holds or fail after ``timeout`` seconds."""

    def _wait_until(predicate, timeout: float = 2.0, interval: float = 0.005) -> None:
        deadline = time.monotonic() + timeout
        while not predicate():
            if time.monotonic() >= deadline:
                pytest.fail("Condition not reached in time")
            time.sleep(interval)

    return _wait_until


@pytest.fixture
def spawn():
    """Start a daemon thread that stores the result or exception of ``target``."""
    threads = []

    def _spawn(target, *args, **kwargs):
        outcome = {}

        def _run():
            try:
                outcome["result"] = target(*args, **kwargs)
            except BaseException as e:
                outcome["error"] = e

        thread = threading.Thread(target=_run, daemon=True)
        thread.outcome = outcome
        threads.append(thread)
        thread.start()
        return thread

    yield _spawn

    for thread in threads:
        thread.join(2.0)
