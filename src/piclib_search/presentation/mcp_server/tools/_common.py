"""
Shared helpers for MCP tools.

- InputNormalizer: accept the loose input formats agents send
- ResponseFormatter: consistent markdown / JSON errors and empty results
"""

from __future__ import annotations

import json
import logging
from typing import Any

from piclib_search.core.exceptions import PicLibSearchError

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("markdown", "json")


class InputNormalizer:
    """Normalize tool arguments; never raises on odd input, falls back to defaults."""

    @staticmethod
    def normalize_query(query: Any) -> str:
        if query is None:
            return ""
        return " ".join(str(query).split())

    @staticmethod
    def normalize_limit(
        limit: Any,
        default: int = 10,
        min_val: int = 1,
        max_val: int = 50,
    ) -> int:
        if limit is None or limit == "":
            return default
        try:
            value = int(str(limit).strip())
        except ValueError:
            logger.warning(f"Invalid limit {limit!r}, using default {default}")
            return default
        return max(min_val, min(value, max_val))

    @staticmethod
    def normalize_output_format(output_format: Any, default: str = "markdown") -> str:
        value = str(output_format or "").strip().lower()
        return value if value in OUTPUT_FORMATS else default


class ResponseFormatter:
    """Format tool responses for agents."""

    @staticmethod
    def error(
        error: str | Exception,
        suggestion: str | None = None,
        example: str | None = None,
        tool_name: str | None = None,
        output_format: str = "markdown",
    ) -> str:
        if isinstance(error, PicLibSearchError):
            if output_format == "json":
                payload = {"success": False, **error.to_dict()}
                if tool_name:
                    payload["tool"] = tool_name
                return json.dumps(payload, ensure_ascii=False, indent=2)
            message = error.to_agent_message()
            return f"{message}\n🔧 **Tool**: `{tool_name}`" if tool_name else message

        message = str(error)
        if output_format == "json":
            payload = {"success": False, "error": message}
            if suggestion:
                payload["suggestion"] = suggestion
            if example:
                payload["example"] = example
            if tool_name:
                payload["tool"] = tool_name
            return json.dumps(payload, ensure_ascii=False, indent=2)

        parts = [f"❌ **Error**: {message}"]
        if tool_name:
            parts.append(f"🔧 **Tool**: `{tool_name}`")
        if suggestion:
            parts.append(f"💡 **Suggestion**: {suggestion}")
        if example:
            parts.append(f"📝 **Example**: `{example}`")
        return "\n".join(parts)

    @staticmethod
    def no_results(query: str, suggestions: list[str] | None = None) -> str:
        parts = [f"No results found for '{query}'."]
        if suggestions:
            parts.append("")
            parts.append("💡 **Suggestions**:")
            parts.extend(f"- {s}" for s in suggestions)
        return "\n".join(parts)
