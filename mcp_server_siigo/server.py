"""MCP server for Siigo integration.

TOOLS:
=====

Every Siigo operation in ``operations.OPERATIONS`` is published as one tool
named ``siigo_<action>_<resource>``. Arguments are checked against the tool
schema (and the matching payload model) and then sent to Siigo unchanged.

AUTHENTICATION:
--------------
The server signs in with SIIGO_USERNAME / SIIGO_ACCESS_KEY on the first call
and reuses the bearer token until it expires. Every request also carries the
Partner-Id header from SIIGO_PARTNER_ID.

RESULTS:
-------
- Success: the Siigo JSON response, pretty printed.
- Siigo validation errors (4xx/5xx with an ``errors`` body) are results too,
  so their ``Code``/``Message`` fields reach the caller untouched.
- Anything else (bad arguments, network failure, failed sign-in) comes back
  as ``Error executing <tool>: <message>`` flagged as an error. The server
  keeps running.

SEARCH TOOLS:
------------
siigo_search_products and siigo_search_customers fetch one page and filter it
locally. ``pagination.total_results`` then counts matches on that page only,
not across all of Siigo.
"""

import asyncio
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

# Ensure package imports work whether run as a module or as a script path
if __package__ is None or __package__ == "":
    sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from dotenv import load_dotenv, find_dotenv
from mcp.server import Server
from mcp.types import CallToolResult, TextContent, Tool, ToolAnnotations
from pydantic import ValidationError

from mcp_server_siigo.field_validator import SiigoFieldValidator
from mcp_server_siigo.operations import OPERATIONS, get_operation
from mcp_server_siigo.siigo_client import SiigoClient, SiigoConfig

# Load environment variables (works even if CWD is not the project root)
_found_env = find_dotenv()
if not _found_env:
    _found_env = os.path.join(os.path.dirname(os.path.dirname(__file__)), ".env")
load_dotenv(_found_env)

logger = logging.getLogger("mcp_server_siigo")

REQUIRED_ENV = ("SIIGO_USERNAME", "SIIGO_ACCESS_KEY", "SIIGO_PARTNER_ID")

# Initialize MCP server
server = Server("siigo-mcp-server")

# Global Siigo client instance
siigo_client: Optional[SiigoClient] = None
field_validator = SiigoFieldValidator()


class ToolInvocationError(Exception):
    """A tool call failed; the message is what the caller gets to see."""


def configure_logging(level: Optional[str] = None) -> None:
    """Send logs to stderr; stdout carries the MCP protocol."""
    level = (level or os.getenv("SIIGO_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


def load_config() -> SiigoConfig:
    """Build the Siigo configuration from the environment."""
    missing = [name for name in REQUIRED_ENV if not os.getenv(name, "").strip()]
    if missing:
        raise ValueError(
            f"Missing {', '.join(missing)}. Set them in your MCP client config env or in a .env file."
        )
    try:
        return SiigoConfig(
            username=os.getenv("SIIGO_USERNAME", "").strip(),
            access_key=os.getenv("SIIGO_ACCESS_KEY", "").strip(),
            partner_id=os.getenv("SIIGO_PARTNER_ID", "").strip(),
            base_url=os.getenv("SIIGO_BASE_URL") or "https://api.siigo.com",
            timeout=os.getenv("SIIGO_TIMEOUT", "120"),
        )
    except ValidationError as e:
        raise ValueError(f"Invalid Siigo configuration: {e}") from e


def get_siigo_client() -> SiigoClient:
    """Get or create Siigo client instance."""
    global siigo_client

    if siigo_client is None:
        siigo_client = SiigoClient(load_config())

    return siigo_client


@server.list_tools()
async def list_tools() -> List[Tool]:
    """List available tools."""
    return [
        Tool(
            name=operation.name,
            description=operation.description,
            inputSchema=operation.input_schema,
            annotations=ToolAnnotations(
                readOnlyHint=operation.read_only,
                destructiveHint=operation.destructive,
            ),
        )
        for operation in OPERATIONS
    ]


async def execute_tool(name: str, arguments: Optional[Dict[str, Any]]) -> CallToolResult:
    """Run one tool call and wrap the outcome for the MCP client."""
    arguments = arguments or {}
    try:
        operation = get_operation(name)
        field_validator.validate(operation, arguments)
        result = await get_siigo_client().execute(operation, arguments)
    except Exception as e:
        logger.warning("Tool %s failed: %s", name, e)
        return CallToolResult(
            content=[TextContent(type="text", text=f"Error executing {name}: {e}")],
            isError=True,
        )

    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(result, indent=2, ensure_ascii=False))],
    )


# Arguments are checked by SiigoFieldValidator so failures keep the "Error executing" format
@server.call_tool(validate_input=False)
async def call_tool(name: str, arguments: Dict[str, Any]) -> List[TextContent]:
    """Handle tool calls."""
    result = await execute_tool(name, arguments)
    if result.isError:
        # The MCP server turns this into an isError result with the same text
        raise ToolInvocationError(result.content[0].text)
    return result.content


async def main(config: SiigoConfig) -> None:
    """Serve MCP over stdio until the client disconnects."""
    from mcp.server.stdio import stdio_server

    global siigo_client
    siigo_client = SiigoClient(config)

    logger.info("Starting Siigo MCP server against %s (%d tools)", config.base_url, len(OPERATIONS))
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options()
            )
    finally:
        await siigo_client.aclose()
        logger.info("Siigo MCP server stopped")


def run() -> None:
    configure_logging()
    logger.debug("Environment file: %s", _found_env)

    try:
        config = load_config()
    except ValueError as e:
        logger.error("%s", e)
        sys.exit(1)

    try:
        asyncio.run(main(config))
    except KeyboardInterrupt:
        pass
    except Exception:
        logger.exception("Siigo MCP server crashed with an unhandled exception")
        sys.exit(1)


if __name__ == "__main__":
    run()
