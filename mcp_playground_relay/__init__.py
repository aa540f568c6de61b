"""MCP server exposing the playground prompt queue to an agent."""
