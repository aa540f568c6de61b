"""HTTP endpoint receiving prompts from playground pages."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator

import pydantic
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from playground_relay import __version__
from playground_relay.config import SSE_KEEPALIVE_SECONDS
from playground_relay.events import Broadcaster, format_sse
from playground_relay.prompt_queue import PromptQueue, PromptValidationError
from playground_relay.schemas import (
    ErrorResponse,
    HealthResponse,
    PromptSubmission,
    RelayStatus,
    SubmitResponse,
)

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, error_code: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message, error_code=error_code).model_dump(exclude_none=True),
    )


def _first_error_message(exc: pydantic.ValidationError) -> str:
    """Map a schema failure to the message playgrounds expect."""
    fields = [error["loc"][0] for error in exc.errors() if error.get("loc")]
    if "prompt" in fields or not fields:
        return "prompt is required"
    return f"{fields[0]} must be a string"


async def event_stream(
    broadcaster: Broadcaster,
    request: Request,
    mode: str | None = None,
    keepalive_seconds: float = SSE_KEEPALIVE_SECONDS,
) -> AsyncIterator[str]:
    """Yield SSE frames for one subscriber until it disconnects.

    The subscription is always released, whether the client goes away, the
    server cancels the response, or the generator is closed.
    """
    subscription = broadcaster.subscribe()
    connected = {"status": "ok"}
    if mode:
        connected["mode"] = mode
    try:
        yield format_sse("connected", connected)
        while True:
            try:
                event = await asyncio.wait_for(subscription.get(), timeout=keepalive_seconds)
            except asyncio.TimeoutError:
                if await request.is_disconnected():
                    break
                yield ": keepalive\n\n"
                continue
            yield format_sse(event.name, event.data)
    finally:
        broadcaster.unsubscribe(subscription)


def create_app(
    queue: PromptQueue,
    broadcaster: Broadcaster,
    mode: str | None = None,
    keepalive_seconds: float = SSE_KEEPALIVE_SECONDS,
) -> FastAPI:
    """Build the relay HTTP application around shared queue and broadcaster.

    Args:
        queue: Queue receiving submitted prompts
        broadcaster: Channel for status events
        mode: Reported on /health and /events ("burst" in batch mode)
        keepalive_seconds: Idle time before an event stream sends a keep-alive
    """
    app = FastAPI(
        title="Playground Relay",
        description="Receives prompts from browser playgrounds",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.state.queue = queue
    app.state.broadcaster = broadcaster
    app.state.mode = mode

    @app.get("/health", response_model=HealthResponse, response_model_exclude_none=True)
    async def health() -> HealthResponse:
        """Report liveness and queue depth."""
        return HealthResponse(pending_prompts=queue.count(), mode=mode)

    @app.post("/prompt", response_model=SubmitResponse)
    async def submit_prompt(request: Request):
        """Queue a prompt sent by a playground page.

        The body is parsed as JSON whatever its content type, since pages
        may post text/plain to skip the CORS preflight.
        """
        raw = await request.body()
        try:
            payload = json.loads(raw)
        except (ValueError, UnicodeDecodeError):
            logger.debug("Rejected prompt: body is not valid JSON")
            return _error(400, "Invalid JSON")

        if not isinstance(payload, dict):
            return _error(400, "prompt is required")

        try:
            submission = PromptSubmission.model_validate(payload)
        except pydantic.ValidationError as e:
            message = _first_error_message(e)
            logger.debug(f"Rejected prompt: {message}")
            return _error(400, message)

        try:
            record = queue.enqueue(submission.prompt, submission.url, submission.pathname)
        except PromptValidationError as e:
            return _error(400, str(e))

        logger.info(f"Received prompt from {record.pathname} ({len(record.prompt)} chars)")
        broadcaster.publish_status(RelayStatus.RECEIVED, id=record.id)
        return SubmitResponse(id=record.id)

    @app.get("/events")
    async def events(request: Request) -> StreamingResponse:
        """Stream status events to a playground page."""
        return StreamingResponse(
            event_stream(broadcaster, request, mode, keepalive_seconds),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Render HTTP errors in the relay's error shape."""
        if exc.status_code == 404:
            return _error(404, "Not found")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle uncaught exceptions."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return _error(500, str(exc), "INTERNAL_ERROR")

    return app
