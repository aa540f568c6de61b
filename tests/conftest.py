"""Pytest configuration and fixtures for Playground Relay tests."""

import pytest
from fastapi.testclient import TestClient

from playground_relay.adapter import ConsumerAdapter
from playground_relay.broker import create_app
from playground_relay.events import Broadcaster
from playground_relay.prompt_queue import PromptQueue


@pytest.fixture
def queue() -> PromptQueue:
    """Empty prompt queue."""
    return PromptQueue()


@pytest.fixture
def broadcaster() -> Broadcaster:
    """Broadcaster with no listeners."""
    return Broadcaster()


@pytest.fixture
def client(queue, broadcaster) -> TestClient:
    """HTTP client for an interactive-mode relay."""
    return TestClient(create_app(queue, broadcaster))


@pytest.fixture
def adapter(queue, broadcaster) -> ConsumerAdapter:
    """Consumer adapter polling fast enough for tests."""
    return ConsumerAdapter(queue, broadcaster, poll_interval=0.02)


def _drain(subscription) -> list:
    events = []
    while not subscription._queue.empty():
        events.append(subscription._queue.get_nowait())
    return events


@pytest.fixture
def drain():
    """Collect every event buffered on a subscription."""
    return _drain
