"""Runtime configuration for Playground Relay."""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path

# HTTP listener
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 4242

# Consumer watch
WATCH_DEFAULT_TIMEOUT = 300  # seconds
WATCH_MAX_TIMEOUT = 600  # seconds
WATCH_POLL_INTERVAL = 1.0  # seconds

# Burst mode
BURST_POLL_INTERVAL = 2.0  # seconds
BATCH_WINDOW_SECONDS = 10.0

# Event stream
SSE_KEEPALIVE_SECONDS = 15.0
SUBSCRIBER_BUFFER_SIZE = 100

# Agent discovery
AGENT_ENV_VAR = "CLAUDE_PATH"
AGENT_CANDIDATES = [
    "/opt/homebrew/bin/claude",
    "/usr/local/bin/claude",
]
AGENT_FALLBACK = "claude"


@dataclass
class RelayConfig:
    """Settings for one relay process."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    verbose: bool = False
    burst: bool = False
    batch_window: float = BATCH_WINDOW_SECONDS
    agent: str | None = None
    work_dir: Path = field(default_factory=Path.cwd)

    @property
    def mode(self) -> str | None:
        """Mode reported on /health and /events; None for interactive."""
        return "burst" if self.burst else None

    def agent_executable(self) -> str:
        return self.agent or find_agent_executable()


def find_agent_executable() -> str:
    """Locate the agent CLI.

    Order: $CLAUDE_PATH, well-known install locations, PATH lookup, and
    finally the bare command name.
    """
    env_path = os.environ.get(AGENT_ENV_VAR)
    if env_path:
        return env_path

    for candidate in AGENT_CANDIDATES:
        if Path(candidate).is_file():
            return candidate

    return shutil.which(AGENT_FALLBACK) or AGENT_FALLBACK
