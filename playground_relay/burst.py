"""Burst mode: drain the queue in batches and hand each batch to the agent."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from playground_relay.agent_runner import AgentInvocationError
from playground_relay.config import BATCH_WINDOW_SECONDS, BURST_POLL_INTERVAL
from playground_relay.events import Broadcaster
from playground_relay.prompt_queue import PromptQueue
from playground_relay.schemas import AgentResult, PromptRecord, RelayStatus

logger = logging.getLogger(__name__)

AgentInvoker = Callable[[str], AgentResult]


def combine_prompts(records: list[PromptRecord]) -> str:
    """Merge a batch into one instruction, labelled by source path."""
    sections = [
        f"## Prompt {i} (from {record.pathname})\n\n{record.prompt}"
        for i, record in enumerate(records, 1)
    ]
    combined = "\n\n---\n\n".join(sections)
    return (
        f"You have received {len(records)} prompt(s) from playground files. "
        f"Process each one:\n\n{combined}"
    )


class BatchRunner:
    """Polls the queue and invokes the agent once per batch of prompts.

    When prompts show up, the runner waits out an accumulation window so
    that a burst of submissions becomes a single invocation. The queue is
    cleared after every invocation whether or not the agent succeeded;
    failed batches are not retried.
    """

    def __init__(
        self,
        queue: PromptQueue,
        broadcaster: Broadcaster,
        invoke: AgentInvoker,
        poll_interval: float = BURST_POLL_INTERVAL,
        window_seconds: float = BATCH_WINDOW_SECONDS,
    ):
        self.queue = queue
        self.broadcaster = broadcaster
        self.invoke = invoke
        self.poll_interval = poll_interval
        self.window_seconds = window_seconds

    async def _collect(self) -> None:
        """Hold the batch window open while more prompts arrive."""
        self.broadcaster.publish_status(RelayStatus.COLLECTING)
        remaining = self.window_seconds
        while remaining > 0:
            logger.info(f"Processing in {remaining:.0f}s... ({self.queue.count()} prompt(s))")
            step = min(1.0, remaining)
            await asyncio.sleep(step)
            remaining -= step
        logger.debug("Batch window closed")

    async def _process(self, records: list[PromptRecord]) -> AgentResult | None:
        logger.info(f"Processing {len(records)} prompt(s)")
        self.broadcaster.publish_status(RelayStatus.PROCESSING)

        result = None
        try:
            result = await asyncio.to_thread(self.invoke, combine_prompts(records))
        except AgentInvocationError as e:
            logger.error(f"Agent invocation failed: {e}")
        finally:
            self.queue.clear()
            self.broadcaster.publish_status(RelayStatus.DONE)
            if result is not None and result.success:
                logger.info("Batch complete. Prompts cleared.")
            else:
                logger.warning("Agent encountered an issue, but prompts have been cleared.")
            self.broadcaster.publish_status(RelayStatus.READY)
            logger.info("Watching for more prompts...")

        return result

    async def run_once(self) -> bool:
        """Run one poll cycle.

        Returns:
            True if a batch was handed to the agent
        """
        count = self.queue.count()
        if count == 0:
            return False

        logger.info(f"Found {count} prompt(s). Collecting batch...")
        await self._collect()

        records = self.queue.list_all()
        if not records:
            return False

        await self._process(records)
        return True

    async def run_forever(self) -> None:
        while True:
            try:
                await self.run_once()
            except Exception:
                logger.exception("Batch cycle failed")
            await asyncio.sleep(self.poll_interval)
