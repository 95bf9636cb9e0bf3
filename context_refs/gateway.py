"""Access to the MCP gateway that lists files, tables and tools

The engine only depends on the ``ResourceGateway`` contract; ``McpGateway``
is the implementation backed by an MCP ``ClientSession``.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, Protocol

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp.client.streamable_http import streamablehttp_client
from pydantic import BaseModel

from .config import GatewayConfig

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """A gateway call failed or the tool reported an error"""


class ToolInfo(BaseModel):
    name: str
    description: str = ""


class ResourceGateway(Protocol):
    """Remote resource listing operations used to build candidates"""

    async def list_allowed_directories(self) -> str:
        """Newline-delimited list of accessible top-level paths"""
        ...

    async def list_directory(self, path: str) -> str:
        """Entries of ``path``, one per line, tagged ``[FILE]`` or ``[DIR]``"""
        ...

    async def list_tables(self) -> str:
        """Table listing as returned by the database server"""
        ...

    async def list_tools(self) -> list[ToolInfo]:
        ...


class McpGateway:
    """ResourceGateway over an initialized MCP client session"""

    def __init__(self, session: ClientSession):
        self.session = session

    async def call_tool(self, tool_name: str, arguments: dict[str, Any] | None = None) -> str:
        """Call a tool and return its text content joined by newlines"""
        try:
            result = await self.session.call_tool(tool_name, arguments or {})
        except Exception as e:
            raise GatewayError(f"Error calling {tool_name}: {e}") from e

        text = "\n".join(item.text if hasattr(item, "text") else str(item) for item in result.content or [])
        if getattr(result, "isError", False):
            raise GatewayError(f"{tool_name} failed: {text or 'no details'}")
        return text

    async def list_allowed_directories(self) -> str:
        return await self.call_tool("list_allowed_directories")

    async def list_directory(self, path: str) -> str:
        return await self.call_tool("list_directory", {"path": path})

    async def list_tables(self) -> str:
        return await self.call_tool("list_tables")

    async def list_tools(self) -> list[ToolInfo]:
        try:
            result = await self.session.list_tools()
        except Exception as e:
            raise GatewayError(f"Error listing tools: {e}") from e
        return [ToolInfo(name=tool.name, description=tool.description or "") for tool in result.tools]


@asynccontextmanager
async def open_gateway(config: GatewayConfig) -> AsyncIterator[McpGateway]:
    """Connect to the configured MCP gateway and yield a ready McpGateway

    Raises:
        GatewayError: The session could not be initialized in time
        ValueError: stdio transport without a command
    """
    async with AsyncExitStack() as stack:
        if config.transport == "stdio":
            if not config.command:
                raise ValueError("stdio gateway transport requires a command")
            server_params = StdioServerParameters(
                command=config.command,
                args=config.args,
                env=config.env if config.env else None,
            )
            read_stream, write_stream = await stack.enter_async_context(stdio_client(server_params))
        else:
            read_stream, write_stream, _ = await stack.enter_async_context(
                streamablehttp_client(config.url, headers=config.headers or None)
            )

        # ClientSession must be entered so its receive loop runs
        session = await stack.enter_async_context(ClientSession(read_stream, write_stream))
        try:
            await asyncio.wait_for(session.initialize(), timeout=config.init_timeout_seconds)
        except TimeoutError as e:
            raise GatewayError(f"Gateway did not initialize within {config.init_timeout_seconds}s") from e

        logger.info("Connected to MCP gateway over %s", config.transport)
        yield McpGateway(session)
