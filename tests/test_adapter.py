"""Tests for the consumer tool operations."""

import asyncio
import time

import pytest

from playground_relay.adapter import (
    NO_PENDING_TEXT,
    ConsumerAdapter,
    clamp_timeout,
    format_prompt,
)
from playground_relay.schemas import ResultStatus


def statuses(subscription, drain) -> list[str]:
    return [e.data["status"] for e in drain(subscription)]


class TestGetPrompt:
    """Test get_prompt."""

    def test_empty_queue(self, adapter, broadcaster, drain):
        """Empty queue returns an explicit none-pending result."""
        subscription = broadcaster.subscribe()

        result = adapter.get_prompt()

        assert result.status == ResultStatus.EMPTY
        assert result.text == NO_PENDING_TEXT
        assert result.prompt is None
        assert statuses(subscription, drain) == []

    def test_returns_oldest_without_removing(self, adapter, queue, broadcaster, drain):
        """Oldest prompt is returned with provenance and left queued."""
        subscription = broadcaster.subscribe()
        queue.enqueue("first", "http://localhost/a", "/a")
        queue.enqueue("second", "", "/b")

        result = adapter.get_prompt()

        assert result.status == ResultStatus.DELIVERED
        assert result.prompt.prompt == "first"
        assert "**Source:** http://localhost/a" in result.text
        assert queue.count() == 2
        assert statuses(subscription, drain) == ["processing"]


class TestListPending:
    """Test list_pending."""

    def test_empty(self, adapter):
        result = adapter.list_pending()
        assert result.status == ResultStatus.EMPTY
        assert result.count == 0

    def test_summaries(self, adapter, queue):
        """Each pending prompt is summarised in FIFO order."""
        queue.enqueue("hello", "", "/one")
        queue.enqueue("a longer prompt", "", "/two")

        result = adapter.list_pending()

        assert result.status == ResultStatus.PENDING
        assert result.count == 2
        assert [(p.pathname, p.length) for p in result.pending] == [("/one", 5), ("/two", 15)]
        assert result.text.startswith("Pending prompts:\n1. /one (5 chars, ")
        assert queue.count() == 2


class TestClear:
    """Test clear."""

    def test_clear_counts_and_broadcasts(self, adapter, queue, broadcaster, drain):
        """Clear removes everything and publishes done."""
        subscription = broadcaster.subscribe()
        queue.enqueue("a")
        queue.enqueue("b")

        result = adapter.clear()

        assert result.cleared == 2
        assert result.text == "Cleared 2 prompt(s)."
        assert queue.count() == 0
        assert statuses(subscription, drain) == ["done"]

    def test_clear_empty(self, adapter):
        """Clearing nothing returns 0."""
        result = adapter.clear()
        assert result.cleared == 0
        assert result.text == "No prompts to clear."


class TestWatch:
    """Test the blocking watch."""

    def test_immediate_delivery_pops(self, adapter, queue, broadcaster, drain):
        """A queued prompt is removed and returned right away."""
        subscription = broadcaster.subscribe()
        queue.enqueue("ready now", "", "/page")

        result = asyncio.run(adapter.watch(5))

        assert result.status == ResultStatus.DELIVERED
        assert result.prompt.prompt == "ready now"
        assert queue.count() == 0
        assert statuses(subscription, drain) == ["processing"]

    def test_waits_for_arrival(self, adapter, queue):
        """Watch returns a prompt that arrives while it waits."""

        async def scenario():
            watcher = asyncio.create_task(adapter.watch(5))
            await asyncio.sleep(0.1)
            queue.enqueue("late arrival")
            return await watcher

        result = asyncio.run(scenario())

        assert result.status == ResultStatus.DELIVERED
        assert result.prompt.prompt == "late arrival"

    def test_timeout(self, queue, broadcaster, drain):
        """Empty queue yields a timeout result near the requested bound."""
        adapter = ConsumerAdapter(queue, broadcaster, poll_interval=0.2)
        subscription = broadcaster.subscribe()

        started = time.monotonic()
        result = asyncio.run(adapter.watch(1))
        elapsed = time.monotonic() - started

        assert result.status == ResultStatus.TIMEOUT
        assert result.prompt is None
        assert "timed out" in result.text
        assert 0.9 <= elapsed <= 1.0 + 0.2 + 0.3
        assert statuses(subscription, drain) == []

    def test_zero_timeout_still_checks_once(self, adapter, queue):
        """watch(0) delivers a prompt that is already queued."""
        queue.enqueue("x")
        result = asyncio.run(adapter.watch(0))
        assert result.status == ResultStatus.DELIVERED

    def test_at_most_once_delivery(self, adapter, queue):
        """Two concurrent watchers share one prompt: one gets it, one times out."""
        queue.enqueue("only one")

        async def scenario():
            return await asyncio.gather(adapter.watch(0.3), adapter.watch(0.3))

        results = asyncio.run(scenario())

        outcomes = sorted(r.status.value for r in results)
        assert outcomes == ["delivered", "timeout"]
        assert queue.count() == 0

    @pytest.mark.parametrize("requested,expected", [
        (None, 300.0),
        (1, 1.0),
        (600, 600.0),
        (3600, 600.0),
        (-5, 0.0),
    ])
    def test_clamp_timeout(self, requested, expected):
        """Timeouts default to 300 and are capped at 600."""
        assert clamp_timeout(requested) == expected


class TestScenario:
    """End-to-end consumer flow over HTTP submissions."""

    def test_get_then_clear(self, client, adapter, queue):
        """Submit, inspect, clear, then find nothing pending."""
        client.post("/prompt", json={"prompt": "add a footer", "pathname": "/design"})

        result = adapter.get_prompt()
        assert "add a footer" in result.text
        assert "/design" in result.text
        assert queue.count() == 1

        assert adapter.clear().cleared == 1
        assert queue.count() == 0
        assert adapter.get_prompt().status == ResultStatus.EMPTY


class TestFormatPrompt:
    """Test the agent-facing rendering."""

    def test_layout(self, queue):
        record = queue.enqueue("do the thing", "", "/page")

        text = format_prompt(record)

        assert text.startswith("# Playground Prompt\n\n**Source:** /page\n**Received:** ")
        assert text.endswith("---\n\ndo the thing")
