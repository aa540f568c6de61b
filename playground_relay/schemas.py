"""Pydantic schemas for Playground Relay request/response contracts."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class RelayStatus(str, Enum):
    """Status values broadcast to connected playgrounds."""

    RECEIVED = "received"
    COLLECTING = "collecting"
    PROCESSING = "processing"
    DONE = "done"
    READY = "ready"


class ResultStatus(str, Enum):
    """Outcome of a consumer tool call."""

    DELIVERED = "delivered"
    PENDING = "pending"
    EMPTY = "empty"
    TIMEOUT = "timeout"
    CLEARED = "cleared"


# --- Queue Records ---


class PromptRecord(BaseModel):
    """A prompt waiting in the queue, with its provenance."""

    model_config = ConfigDict(frozen=True)

    id: str
    prompt: str = Field(..., min_length=1)
    url: str = ""
    pathname: str = "/"
    received_at: datetime

    @property
    def source(self) -> str:
        """Full page address when known, otherwise the logical path."""
        return self.url or self.pathname


# --- Request Schemas ---


class PromptSubmission(BaseModel):
    """Body of POST /prompt."""

    prompt: StrictStr = Field(..., min_length=1)
    url: StrictStr | None = None
    pathname: StrictStr | None = None


# --- Response Schemas ---


class SubmitResponse(BaseModel):
    """Successful prompt submission."""

    success: bool = True
    id: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    pending_prompts: int = 0
    mode: str | None = None


class ErrorResponse(BaseModel):
    """Error response for failed requests."""

    error: str
    error_code: str | None = None


# --- Consumer Tool Results ---


class PromptResult(BaseModel):
    """Result of get_prompt and watch."""

    status: ResultStatus
    text: str
    prompt: PromptRecord | None = None


class PendingPrompt(BaseModel):
    """Summary line for one pending prompt."""

    id: str
    pathname: str
    length: int
    received_at: datetime


class PendingResult(BaseModel):
    """Result of list_pending."""

    status: ResultStatus
    text: str
    count: int = 0
    pending: list[PendingPrompt] = Field(default_factory=list)


class ClearResult(BaseModel):
    """Result of clear."""

    status: ResultStatus = ResultStatus.CLEARED
    text: str
    cleared: int = 0


# --- Agent Invocation ---


class AgentResult(BaseModel):
    """Result of one external agent invocation."""

    exit_code: int
    command_executed: list[str]
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.exit_code == 0
