"""Playground Relay.

Relays prompts sent from interactive browser playgrounds to a local agent,
either through MCP tools the agent calls or by invoking the agent directly
in burst mode.
"""

__version__ = "0.1.0"
