"""
MCP Server Instructions - usage guide for AI agents.
"""

from __future__ import annotations

SERVER_INSTRUCTIONS = """
PicLib Search MCP Server - web image search for AI agents

## Tools
- search_images(query, limit=None, output_format="markdown")
  Finds images for a text query. Only images whose width:height or
  height:width lies between 1.0 and 2.3 are returned, so results fit cards
  and previews.
  Use output_format="json" for machine-readable inline results with
  stable ids and a cache_time hint.
- get_mirror_status()
  Lists the LibreY mirrors that are currently usable and their latency.

## Tips
- Short, concrete queries work best: "red fox snow", not a full sentence.
- A query is answered within a few seconds; fewer images than `limit`
  means the rest were too slow, broken or had the wrong shape.
- An empty result with "none available" as mirror means no mirror is
  reachable; check get_mirror_status().
"""
