"""CLI for Playground Relay - MCP server or burst-mode prompt runner."""

from __future__ import annotations

import asyncio
import logging
import sys

import click

from playground_relay import __version__
from playground_relay.config import BATCH_WINDOW_SECONDS, DEFAULT_HOST, DEFAULT_PORT, RelayConfig
from playground_relay.runtime import PortInUseError, serve_burst, serve_interactive

logger = logging.getLogger(__name__)

BURST_BANNER = """
  PLAYGROUND RELAY - BURST MODE
  HTTP server: http://{host}:{port}
  Batch delay: {window:g} seconds
  Agent: {agent}
  Waiting for prompts... (Ctrl+C to stop)
"""


def _setup_logging(verbose: bool) -> None:
    """Log to stderr; stdout belongs to MCP in interactive mode."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="playground-relay")
@click.option("--port", default=DEFAULT_PORT, show_default=True, help="HTTP server port")
@click.option("--host", default=DEFAULT_HOST, show_default=True, help="Host to bind to")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--burst", is_flag=True, help="Auto-process prompts by spawning the agent CLI")
@click.option(
    "--batch-window",
    default=BATCH_WINDOW_SECONDS,
    show_default=True,
    type=click.FloatRange(min=0),
    help="Seconds to collect prompts before a burst-mode run",
)
@click.option(
    "--agent",
    default=None,
    help="Agent executable for burst mode (defaults to $CLAUDE_PATH or 'claude')",
)
def main(
    port: int,
    host: str,
    verbose: bool,
    burst: bool,
    batch_window: float,
    agent: str | None,
) -> None:
    """Playground Relay - deliver playground prompts to your agent.

    \b
    Modes:
        Default (MCP):  Runs as an MCP server over stdio for agent integration
        Burst mode:     Standalone loop that invokes the agent on each batch

    \b
    Configure in .mcp.json:
        {
            "mcpServers": {
                "playground-relay": {
                    "command": "playground-relay",
                    "args": []
                }
            }
        }
    """
    _setup_logging(verbose)
    config = RelayConfig(
        host=host,
        port=port,
        verbose=verbose,
        burst=burst,
        batch_window=batch_window,
        agent=agent,
    )

    try:
        if burst:
            click.echo(BURST_BANNER.format(
                host=host,
                port=port,
                window=batch_window,
                agent=config.agent_executable(),
            ))
            asyncio.run(serve_burst(config))
        else:
            click.echo(f"[playground-relay] HTTP: http://{host}:{port} | MCP: stdio", err=True)
            asyncio.run(serve_interactive(config))
    except PortInUseError as e:
        click.echo(str(e), err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        pass
    except OSError as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
