"""Launches the external agent CLI for a batch of prompts."""

from __future__ import annotations

import logging
import subprocess
import time
from pathlib import Path

from playground_relay.schemas import AgentResult

logger = logging.getLogger(__name__)

# Flags passed ahead of the prompt: print mode, continue the last
# conversation, no permission prompts.
AGENT_ARGS = [
    "--print",
    "--continue",
    "--permission-mode",
    "bypassPermissions",
]


class AgentInvocationError(Exception):
    """Raised when the agent process cannot be started."""

    pass


def build_agent_command(executable: str, prompt: str) -> list[str]:
    """Build the argv for one agent invocation."""
    return [executable, *AGENT_ARGS, prompt]


def run_agent(
    prompt: str,
    executable: str,
    work_dir: Path | str | None = None,
) -> AgentResult:
    """Run the agent and wait for it to exit.

    The agent inherits this process's stdin, stdout and stderr so its work
    is visible in the terminal. There is no timeout.

    Args:
        prompt: Instruction passed as the final argument
        executable: Agent CLI path or command name
        work_dir: Working directory (defaults to current directory)

    Returns:
        AgentResult with the exit code

    Raises:
        AgentInvocationError: If the process could not be started
    """
    command = build_agent_command(executable, prompt)
    cwd = str(work_dir or Path.cwd())

    logger.info(f"Invoking agent: {executable} ({len(prompt)} chars of instructions)")
    started = time.monotonic()
    try:
        completed = subprocess.run(command, cwd=cwd)
    except (OSError, ValueError) as e:
        # ValueError: argv the OS cannot take, e.g. an embedded NUL byte
        logger.error(f"Failed to run agent '{executable}': {e}")
        raise AgentInvocationError(f"Failed to run agent '{executable}': {e}") from e

    duration = time.monotonic() - started
    logger.info(f"Agent finished (exit code: {completed.returncode}, {duration:.1f}s)")
    return AgentResult(
        exit_code=completed.returncode,
        command_executed=command,
        duration_seconds=duration,
    )
