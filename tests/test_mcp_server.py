"""
Tests for MCP Server creation, tool registration and tool output.
"""

from __future__ import annotations

import json
import logging
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from piclib_search.config import Settings
from piclib_search.core.exceptions import ConfigurationError
from piclib_search.domain.entities import FetchOutcome, ImageDescriptor, MirrorRecord
from piclib_search.presentation.mcp_server import server as server_module
from piclib_search.presentation.mcp_server.server import configure_logging, create_server, get_container
from piclib_search.presentation.mcp_server.tool_registry import (
    TOOL_CATEGORIES,
    list_registered_tools,
    validate_tool_registry,
)
from piclib_search.presentation.mcp_server.tools._common import InputNormalizer, ResponseFormatter
from piclib_search.presentation.mcp_server.tools.image_search import (
    format_image_results,
    format_inline_results_json,
    format_mirror_status,
)

SETTINGS = Settings(mirrors=("https://m.example",), max_results=10)


def _image(n: int) -> ImageDescriptor:
    return ImageDescriptor(f"https://cdn.example/{n}.png", "PNG", f"fox {n}", 800, 600)


@pytest.fixture
def mcp():
    return create_server(SETTINGS, transport=httpx.MockTransport(lambda r: httpx.Response(200, json=[])))


@pytest.fixture
def service(mcp):
    """Replace the container's service methods used by the tools."""
    service = get_container().image_search_service()
    service.search_images = AsyncMock()
    return service


class TestCreateServer:
    """Tests for server creation and registration."""

    def test_registers_tools(self, mcp):
        tool_names = {t.name for t in mcp._tool_manager.list_tools()}
        assert tool_names == {"search_images", "get_mirror_status"}

    def test_registry_in_sync(self, mcp):
        result = validate_tool_registry(mcp)
        assert result["valid"] is True
        assert result["missing"] == []

    def test_list_registered_tools(self):
        assert list_registered_tools() == {k: v["tools"] for k, v in TOOL_CATEGORIES.items()}

    def test_container_configured_from_settings(self, mcp):
        container = get_container()
        assert container.config.mirrors() == ["https://m.example"]
        assert container.config.max_results() == 10

    def test_get_container_before_create(self, monkeypatch):
        monkeypatch.setattr(server_module, "_container", None)
        with pytest.raises(RuntimeError, match="create_server"):
            get_container()


class TestSearchImagesTool:
    async def test_markdown(self, mcp, service):
        service.search_images.return_value = FetchOutcome(8, "https://m.example", (_image(1), _image(2)))

        result = await mcp._tool_manager._tools["search_images"].fn(query="  red   fox ", limit=5)

        service.search_images.assert_awaited_once_with("red fox", limit=5)
        assert "**Query**: red fox" in result
        assert "https://m.example" in result
        assert "2 images (candidates: 8)" in result
        assert "https://cdn.example/1.png" in result
        assert "800x600 (PNG)" in result

    async def test_json_inline_results(self, mcp, service):
        service.search_images.return_value = FetchOutcome(8, "https://m.example", (_image(1),))

        result = await mcp._tool_manager._tools["search_images"].fn(query="fox", output_format="json")

        payload = json.loads(result)
        assert payload["query"] == "fox"
        assert payload["mirror"] == "https://m.example"
        assert payload["candidate_count"] == 8
        assert payload["cache_time"] == 604800
        assert payload["results"][0]["id"].startswith("0_")
        assert payload["results"][0]["url"] == "https://cdn.example/1.png"

    async def test_limit_clamped_to_max_results(self, mcp, service):
        service.search_images.return_value = FetchOutcome.empty()

        await mcp._tool_manager._tools["search_images"].fn(query="fox", limit="500")
        assert service.search_images.call_args.kwargs["limit"] == 10

        await mcp._tool_manager._tools["search_images"].fn(query="fox", limit=0)
        assert service.search_images.call_args.kwargs["limit"] == 1

    async def test_empty_query(self, mcp, service):
        result = await mcp._tool_manager._tools["search_images"].fn(query="   ")

        assert "Missing search query" in result
        assert "💡" in result
        service.search_images.assert_not_awaited()

    async def test_empty_query_json_is_validation_error(self, mcp, service):
        result = await mcp._tool_manager._tools["search_images"].fn(query=None, output_format="json")

        payload = json.loads(result)
        assert payload["success"] is False
        assert payload["category"] == "validation"
        assert payload["tool"] == "search_images"
        assert "Missing search query" in payload["error"]
        assert payload["example"]
        service.search_images.assert_not_awaited()

    async def test_empty_result(self, mcp, service):
        service.search_images.return_value = FetchOutcome.empty()

        result = await mcp._tool_manager._tools["search_images"].fn(query="fox")

        assert "No results found" in result
        assert "none available" in result

    async def test_empty_result_json_has_zero_cache_time(self, mcp, service):
        service.search_images.return_value = FetchOutcome(0, "https://m.example", ())

        payload = json.loads(await mcp._tool_manager._tools["search_images"].fn(query="fox", output_format="json"))

        assert payload["cache_time"] == 0
        assert payload["results"] == []


class TestMirrorStatusTool:
    def test_not_initialized(self, mcp):
        result = mcp._tool_manager._tools["get_mirror_status"].fn()
        assert "not initialized" in result

    def test_table(self):
        registry = MagicMock()
        registry.is_initialized = True
        registry.mirrors = (MirrorRecord("https://c.example", 0.03), MirrorRecord("https://b.example", 0.05))

        result = format_mirror_status(registry)

        assert "2 available" in result
        assert result.index("https://c.example") < result.index("https://b.example")
        assert "30 ms" in result

    def test_initialized_but_empty(self):
        registry = MagicMock()
        registry.is_initialized = True
        registry.mirrors = ()
        assert "No LibreY mirror" in format_mirror_status(registry)


class TestFormatting:
    def test_untitled_image(self):
        image = ImageDescriptor("https://cdn.example/x", None, None, 640, 480)
        result = format_image_results("q", FetchOutcome(1, "https://m.example", (image,)))
        assert "Untitled" in result
        assert "640x480" in result
        assert "(None)" not in result

    def test_inline_json_is_valid(self):
        payload = json.loads(format_inline_results_json("q", FetchOutcome.empty()))
        assert payload["mirror"] is None


class TestCommonHelpers:
    def test_normalize_query(self):
        assert InputNormalizer.normalize_query("  a   b ") == "a b"
        assert InputNormalizer.normalize_query(None) == ""

    def test_normalize_limit(self):
        assert InputNormalizer.normalize_limit(None, default=7) == 7
        assert InputNormalizer.normalize_limit("20", max_val=10) == 10
        assert InputNormalizer.normalize_limit("abc", default=4) == 4

    def test_normalize_output_format(self):
        assert InputNormalizer.normalize_output_format("JSON") == "json"
        assert InputNormalizer.normalize_output_format("xml") == "markdown"

    def test_error_json(self):
        payload = json.loads(ResponseFormatter.error("boom", suggestion="retry", output_format="json"))
        assert payload == {"success": False, "error": "boom", "suggestion": "retry"}

    def test_error_from_domain_exception(self):
        result = ResponseFormatter.error(ConfigurationError("bad"), tool_name="t")
        assert "bad" in result
        assert "`t`" in result


class TestLogging:
    def test_log_level_from_env(self, monkeypatch):
        monkeypatch.setenv("PICLIB_LOG_LEVEL", "debug")
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))

        configure_logging()

        assert calls[0]["level"] == logging.DEBUG

    def test_invalid_log_level_falls_back(self, monkeypatch):
        monkeypatch.setenv("PICLIB_LOG_LEVEL", "chatty")
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))

        configure_logging()

        assert calls[0]["level"] == logging.INFO

    def test_load_settings_exits_on_invalid_config(self, monkeypatch):
        monkeypatch.delenv("PICLIB_MIRRORS", raising=False)
        with pytest.raises(SystemExit) as exc_info:
            server_module.load_settings()
        assert exc_info.value.code == 2
