"""Consumer-facing operations over the prompt queue.

These back the MCP tools an agent calls to pick up playground prompts:
get_prompt, list_pending, clear, and the blocking watch.
"""

from __future__ import annotations

import asyncio
import logging
import time

from playground_relay.config import (
    WATCH_DEFAULT_TIMEOUT,
    WATCH_MAX_TIMEOUT,
    WATCH_POLL_INTERVAL,
)
from playground_relay.events import Broadcaster
from playground_relay.prompt_queue import PromptQueue
from playground_relay.schemas import (
    ClearResult,
    PendingPrompt,
    PendingResult,
    PromptRecord,
    PromptResult,
    RelayStatus,
    ResultStatus,
)

logger = logging.getLogger(__name__)

NO_PENDING_TEXT = "No pending prompts from playgrounds."
WATCH_TIMEOUT_TEXT = (
    "Watch timed out - no prompts received. "
    "The user may not have clicked 'Send to Claude' yet."
)


def format_prompt(record: PromptRecord) -> str:
    """Render a prompt with its provenance for the agent."""
    received = record.received_at.strftime("%H:%M:%S")
    return (
        "# Playground Prompt\n\n"
        f"**Source:** {record.source}\n"
        f"**Received:** {received}\n\n"
        "---\n\n"
        f"{record.prompt}"
    )


def clamp_timeout(timeout_seconds: float | None) -> float:
    """Apply the watch default and bound the timeout to [0, max]."""
    if timeout_seconds is None:
        return float(WATCH_DEFAULT_TIMEOUT)
    return max(0.0, min(float(timeout_seconds), float(WATCH_MAX_TIMEOUT)))


class ConsumerAdapter:
    """Exposes the queue to a single trusted consumer."""

    def __init__(
        self,
        queue: PromptQueue,
        broadcaster: Broadcaster,
        poll_interval: float = WATCH_POLL_INTERVAL,
    ):
        self.queue = queue
        self.broadcaster = broadcaster
        self.poll_interval = poll_interval

    def _delivered(self, record: PromptRecord) -> PromptResult:
        return PromptResult(
            status=ResultStatus.DELIVERED,
            text=format_prompt(record),
            prompt=record,
        )

    def get_prompt(self) -> PromptResult:
        """Return the oldest prompt without removing it.

        Signals `processing` to the playground. The caller is expected to
        call clear() once it has acted on the prompt.
        """
        record = self.queue.peek_oldest()
        if record is None:
            return PromptResult(status=ResultStatus.EMPTY, text=NO_PENDING_TEXT)

        self.broadcaster.publish_status(RelayStatus.PROCESSING)
        logger.debug(f"Delivering prompt {record.id} from {record.pathname}")
        return self._delivered(record)

    def list_pending(self) -> PendingResult:
        records = self.queue.list_all()
        if not records:
            return PendingResult(status=ResultStatus.EMPTY, text="No pending prompts.")

        pending = [
            PendingPrompt(
                id=r.id,
                pathname=r.pathname,
                length=len(r.prompt),
                received_at=r.received_at,
            )
            for r in records
        ]
        lines = [
            f"{i}. {p.pathname} ({p.length} chars, {p.received_at.strftime('%H:%M:%S')})"
            for i, p in enumerate(pending, 1)
        ]
        return PendingResult(
            status=ResultStatus.PENDING,
            text="Pending prompts:\n" + "\n".join(lines),
            count=len(pending),
            pending=pending,
        )

    def clear(self) -> ClearResult:
        """Drop every pending prompt and signal `done`."""
        removed = self.queue.clear()
        self.broadcaster.publish_status(RelayStatus.DONE)
        text = f"Cleared {removed} prompt(s)." if removed else "No prompts to clear."
        return ClearResult(text=text, cleared=removed)

    async def watch(self, timeout_seconds: float | None = WATCH_DEFAULT_TIMEOUT) -> PromptResult:
        """Wait for a prompt, removing and returning it when one arrives.

        Args:
            timeout_seconds: How long to wait; defaults to 300, capped at 600

        Returns:
            A delivered prompt, or a result with status `timeout`
        """
        timeout = clamp_timeout(timeout_seconds)
        deadline = time.monotonic() + timeout
        logger.debug(f"Watching for prompts (timeout: {timeout:g}s)")

        while True:
            # pop and publish with no await in between
            record = self.queue.pop_oldest()
            if record is not None:
                self.broadcaster.publish_status(RelayStatus.PROCESSING)
                logger.debug(f"Watch: received prompt {record.id} from {record.pathname}")
                return self._delivered(record)

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.debug("Watch timed out")
                return PromptResult(status=ResultStatus.TIMEOUT, text=WATCH_TIMEOUT_TEXT)

            await asyncio.sleep(min(self.poll_interval, remaining))
