# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

import inspect
from typing import Annotated

from mcp.server.fastmcp import FastMCP
from mcp.types import CallToolResult, TextContent, ToolAnnotations

from .models import SearchParams
from .search_tool import TOOL_DESCRIPTION, TOOL_NAME, TOOL_TITLE, GoogleSearchTool


SERVER_NAME = "google-search-mcp"
SERVER_INSTRUCTIONS = (
    "Use this server to perform Google searches with automatic API key rotation "
    "and quota management. Supports multiple Google API keys for increased daily limits."
)


def _search_signature() -> inspect.Signature:
    """
    Build the tool's call signature from SearchParams.

    Each model field becomes a keyword-only parameter that carries the
    field's own FieldInfo, so descriptions and bounds in the published
    input schema come straight from the model.
    """
    parameters = [
        inspect.Parameter(
            name,
            inspect.Parameter.KEYWORD_ONLY,
            default=inspect.Parameter.empty if info.is_required() else info.default,
            annotation=Annotated[info.annotation, info],
        )
        for name, info in SearchParams.model_fields.items()
    ]
    return inspect.Signature(parameters, return_annotation=CallToolResult)


def build_server(tool: GoogleSearchTool) -> FastMCP:
    """Create the MCP server exposing the google_search tool."""
    mcp = FastMCP(SERVER_NAME, instructions=SERVER_INSTRUCTIONS)

    async def google_search(**arguments) -> CallToolResult:
        response = await tool.execute(SearchParams(**arguments))
        # Returned as-is so error envelopes stay plain JSON
        return CallToolResult(
            content=[TextContent(type="text", text=response.text)],
            isError=response.is_error,
        )

    google_search.__signature__ = _search_signature()

    mcp.tool(
        name=TOOL_NAME,
        description=TOOL_DESCRIPTION,
        annotations=ToolAnnotations(title=TOOL_TITLE, openWorldHint=True),
    )(google_search)
    return mcp
