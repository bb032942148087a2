"""
Presentation Layer - MCP server exposing image search to AI agents.
"""
