"""In-memory FIFO queue of pending playground prompts."""

from __future__ import annotations

import itertools
import logging
import uuid
from collections import deque
from datetime import datetime
from threading import Lock

from playground_relay.schemas import PromptRecord

logger = logging.getLogger(__name__)


class PromptValidationError(ValueError):
    """Raised when a submitted prompt is missing, empty, or not text."""

    pass


class PromptQueue:
    """Ordered store of prompt records.

    Records leave the queue oldest-first or all at once; they are never
    reordered or edited. Every method holds the same lock, so pop_oldest()
    hands a record to exactly one caller.
    """

    def __init__(self):
        self._records: deque[PromptRecord] = deque()
        self._lock = Lock()
        self._seq = itertools.count(1)

    def _new_id(self) -> str:
        return f"p_{next(self._seq)}_{uuid.uuid4().hex[:8]}"

    def enqueue(
        self,
        prompt: object,
        url: str | None = "",
        pathname: str | None = "/",
    ) -> PromptRecord:
        """Append a new prompt and return a copy of the stored record.

        Raises:
            PromptValidationError: If prompt is not a non-empty string
        """
        if not isinstance(prompt, str) or not prompt:
            raise PromptValidationError("prompt is required")

        with self._lock:
            record = PromptRecord(
                id=self._new_id(),
                prompt=prompt,
                url=url or "",
                pathname=pathname or "/",
                received_at=datetime.now().astimezone(),
            )
            self._records.append(record)
            logger.debug(f"Queued prompt {record.id} ({len(self._records)} pending)")
        return record.model_copy()

    def peek_oldest(self) -> PromptRecord | None:
        """Return the oldest record without removing it."""
        with self._lock:
            if self._records:
                return self._records[0].model_copy()
            return None

    def pop_oldest(self) -> PromptRecord | None:
        """Remove and return the oldest record."""
        with self._lock:
            if self._records:
                return self._records.popleft()
            return None

    def list_all(self) -> list[PromptRecord]:
        """Snapshot of all pending records in FIFO order."""
        with self._lock:
            return [record.model_copy() for record in self._records]

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def clear(self) -> int:
        """Remove every record, returning how many were removed."""
        with self._lock:
            removed = len(self._records)
            self._records.clear()
        if removed:
            logger.debug(f"Cleared {removed} prompt(s)")
        return removed
