"""Library Circulation MCP Server - FastMCP Implementation

Exposes the circulation core over the Model Context Protocol. Clients
connect via stdio transport.

Features exposed:
- Resources: available and held items, item status, patron recommendations
  and notifications
- Tools: checkout, return, reserve, cancel reservation
"""

import logging
import signal
import sys
from typing import Any

from fastmcp import FastMCP

from .config import CirculationConfig, get_config
from .observability import initialize_observability
from .resources import all_resources
from .tools import all_tools

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(config: CirculationConfig) -> None:
    """Send logs to stderr; stdout carries the MCP protocol."""
    logging.basicConfig(
        level=logging.DEBUG if config.debug else getattr(logging, config.log_level),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    if not config.debug:
        logging.getLogger("fastmcp").setLevel(logging.WARNING)


def create_server(config: CirculationConfig | None = None) -> FastMCP:
    """Build the FastMCP server and register every tool and resource."""
    config = config or get_config()

    mcp = FastMCP(
        name=config.server_name,
        version=config.server_version,
        instructions=(
            "Library Circulation MCP Server - tracks which member holds each book, "
            "keeps reservation waitlists and notifies waiting members when a book "
            "is returned. Use resources to see availability and tools to check out, "
            "return and reserve books."
        ),
    )

    for resource in all_resources:
        uri = resource.get("uri_template", resource.get("uri"))
        if not uri:
            logger.error("Resource missing URI: %s", resource)
            continue

        logger.debug("Registering resource: %s with URI: %s", resource["name"], uri)
        try:
            mcp.resource(
                uri,
                name=resource["name"],
                description=resource["description"],
                mime_type=resource["mime_type"],
            )(resource["handler"])
        except Exception:
            logger.exception("Failed to register resource %s", resource["name"])
            raise

    logger.info("Registered %d resources", len(all_resources))

    for tool in all_tools:
        logger.debug("Registering tool: %s", tool["name"])
        try:
            mcp.tool(
                name=tool["name"],
                description=tool["description"],
            )(tool["handler"])
        except Exception:
            logger.exception("Failed to register tool %s", tool["name"])
            raise

    logger.info("Registered %d tools", len(all_tools))
    return mcp


def run_stdio_server(mcp: FastMCP, config: CirculationConfig) -> None:
    logger.info("Starting %s v%s on stdio transport", config.server_name, config.server_version)

    def signal_handler(signum: int, _frame: Any) -> None:
        logger.info("Received signal %s, initiating shutdown...", signum)
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        mcp.run(transport="stdio")
    except Exception:
        logger.exception("Fatal error in MCP server")
        sys.exit(1)


def main() -> None:
    """Entry point for ``library-circulation-mcp``."""
    config = get_config()
    configure_logging(config)
    initialize_observability(config)

    try:
        logger.info("Library Circulation MCP Server")
        logger.info("Version: %s", config.server_version)
        logger.info("Reservation policy: %s", config.reservation_policy.value)

        mcp = create_server(config)
        if config.transport == "stdio":
            run_stdio_server(mcp, config)
        else:
            logger.error("Unsupported transport: %s", config.transport)
            sys.exit(1)

    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception:
        logger.exception("Failed to start MCP server")
        sys.exit(1)


if __name__ == "__main__":
    main()
