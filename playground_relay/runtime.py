"""Process wiring: one queue and broadcaster shared by the HTTP server and
either the MCP stdio server or the burst loop, all on one event loop."""

from __future__ import annotations

import asyncio
import contextlib
import errno
import functools
import logging
import socket
from collections.abc import Coroutine
from typing import Any

import uvicorn

from playground_relay.agent_runner import run_agent
from playground_relay.adapter import ConsumerAdapter
from playground_relay.broker import create_app
from playground_relay.burst import BatchRunner
from playground_relay.config import RelayConfig
from playground_relay.events import Broadcaster
from playground_relay.prompt_queue import PromptQueue

logger = logging.getLogger(__name__)


class PortInUseError(Exception):
    """Raised when the HTTP listener cannot bind its port."""

    def __init__(self, port: int):
        super().__init__(f"Port {port} is already in use.")
        self.port = port


def bind_socket(host: str, port: int) -> socket.socket:
    """Bind the listener socket up front so a busy port fails fast.

    Raises:
        PortInUseError: If another process holds the port
    """
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError as e:
        sock.close()
        if e.errno == errno.EADDRINUSE:
            raise PortInUseError(port) from e
        raise
    return sock


def _http_server(app, config: RelayConfig) -> uvicorn.Server:
    # log_config=None keeps uvicorn on our stderr logging; stdout may be
    # the MCP channel.
    return uvicorn.Server(
        uvicorn.Config(
            app,
            log_config=None,
            log_level="debug" if config.verbose else "warning",
            access_log=False,
            lifespan="off",
        )
    )


async def _serve_alongside(
    server: uvicorn.Server,
    sock: socket.socket,
    consumer: Coroutine[Any, Any, None],
) -> None:
    """Run the HTTP server next to a consumer until either one stops."""
    http_task = asyncio.create_task(server.serve(sockets=[sock]))
    consumer_task = asyncio.create_task(consumer)

    done, pending = await asyncio.wait(
        {http_task, consumer_task},
        return_when=asyncio.FIRST_COMPLETED,
    )

    server.should_exit = True
    if consumer_task in pending:
        consumer_task.cancel()
    for task in pending:
        with contextlib.suppress(asyncio.CancelledError):
            await task
    for task in done:
        task.result()


async def serve_interactive(config: RelayConfig) -> None:
    """HTTP endpoint plus MCP tools over stdio."""
    from mcp_playground_relay.server import create_mcp_server

    queue = PromptQueue()
    broadcaster = Broadcaster()

    sock = bind_socket(config.host, config.port)
    server = _http_server(create_app(queue, broadcaster), config)
    logger.info(f"HTTP server listening on http://{config.host}:{config.port}")

    mcp_server = create_mcp_server(ConsumerAdapter(queue, broadcaster))
    logger.info("MCP server connected via stdio")

    await _serve_alongside(server, sock, mcp_server.run_stdio_async())


async def serve_burst(config: RelayConfig) -> None:
    """HTTP endpoint plus the batch loop invoking the agent."""
    queue = PromptQueue()
    broadcaster = Broadcaster()

    sock = bind_socket(config.host, config.port)
    server = _http_server(create_app(queue, broadcaster, mode=config.mode), config)
    logger.info(f"HTTP server listening on http://{config.host}:{config.port}")

    invoke = functools.partial(
        run_agent,
        executable=config.agent_executable(),
        work_dir=config.work_dir,
    )
    runner = BatchRunner(queue, broadcaster, invoke, window_seconds=config.batch_window)

    await _serve_alongside(server, sock, runner.run_forever())
