"""MCP server exposing Playground Relay tools to Claude."""

from mcp.server.fastmcp import FastMCP

from playground_relay.adapter import ConsumerAdapter
from playground_relay.config import WATCH_DEFAULT_TIMEOUT


def create_mcp_server(adapter: ConsumerAdapter) -> FastMCP:
    """Build the MCP server around a consumer adapter."""
    mcp = FastMCP("playground-relay")

    @mcp.tool()
    async def get_prompt() -> dict:
        """Get the oldest pending prompt from a playground.

        Returns the prompt text, source URL and pathname. The prompt stays
        queued; call clear once you have acted on it.
        """
        return adapter.get_prompt().model_dump(mode="json")

    @mcp.tool()
    async def list_pending() -> dict:
        """List all pending prompts: how many are waiting and their source pages."""
        return adapter.list_pending().model_dump(mode="json")

    @mcp.tool()
    async def clear() -> dict:
        """Clear all pending prompts. Use this after you've acted on them."""
        return adapter.clear().model_dump(mode="json")

    @mcp.tool()
    async def watch(timeout_seconds: float = WATCH_DEFAULT_TIMEOUT) -> dict:
        """Watch for incoming prompts from a playground.

        Blocks until a prompt arrives or the timeout expires. Call this after
        opening a playground so you receive the user's prompt as soon as they
        click 'Send to Claude'.

        Args:
            timeout_seconds: How long to wait for a prompt (default: 300, max: 600)

        Returns:
            The prompt with status 'delivered', or status 'timeout'
        """
        result = await adapter.watch(timeout_seconds)
        return result.model_dump(mode="json")

    return mcp
