"""
HG-Pro MCP Server - Unified Entry Point.

This module provides the MCP server exposing the Wide Range Bar / Hidden Gap
engine to LLM clients. Candles are supplied by the caller (typically a data
fetching tool running alongside this server); this server never fetches
market data itself.

The server supports both local (stdio) and remote (HTTP) modes.

Tools:
    1. wrb_scoring - WRB detection, hidden gap zones, Pro grading, fill state

Usage:
    # Run as stdio server (for Claude Desktop)
    uv run python src/hgpro_mcp/server.py

    # Run as HTTP server
    uv run python src/hgpro_mcp/server.py streamable-http --port 8000

Environment Variables:
    DEBUG_MCP: Enable debug logging (set to any value)
    HOST: Server host for HTTP mode (default: 0.0.0.0)
    PORT: Server port for HTTP mode (default: 8000)

Variables may also be set in a .env file in the working directory.
"""

from __future__ import annotations

import argparse
import logging
import os
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from hgpro_mcp import __version__
from hgpro_mcp.core.config import WRBConfig
from hgpro_mcp.core.data_loader import (
    create_ohlcv_from_records,
    get_latest_n_bars,
    validate_minimum_bars,
)
from hgpro_mcp.core.errors import HGProError, build_error_response
from hgpro_mcp.core.sanitize import (
    sanitize_gap_extension,
    sanitize_limit,
    sanitize_lookback,
    sanitize_max_scope,
    sanitize_sensitivity,
    sanitize_timeframe,
)
from hgpro_mcp.engines.wrb import (
    TOOL_NAME,
    build_wrb_summary_text,
    get_detailed_wrb,
)

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if os.environ.get("DEBUG_MCP") else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

# Fewer candles than this cannot produce a meaningful WRB reading
MIN_TOOL_CANDLES = 10
MAX_TOOL_CANDLES = 500
DEFAULT_TOOL_CANDLES = 200

HTTP_HOST = os.environ.get("HOST", "0.0.0.0")
HTTP_PORT = int(os.environ.get("PORT", "8000"))

SERVER_INSTRUCTIONS = """
HG-Pro analyzes Wide Range Bars (WRB) and Hidden Gaps (HG) on candlestick data.

Pass candles oldest first as {timestamp, open, high, low, close, volume}.
The result flags WRB candles, lists gap zones (top/bottom, start/end index),
marks high-conviction setups as Pro and reports which gaps price has filled.
All indexes refer to positions in the candle list you sent (after the
optional limit is applied).
"""


def create_mcp_server(host: Optional[str] = None, port: Optional[int] = None) -> FastMCP:
    """
    Create and configure an MCP server instance.

    Args:
        host: Server host for HTTP mode (default: from HOST env var or 0.0.0.0)
        port: Server port for HTTP mode (default: from PORT env var or 8000)
    """
    return FastMCP(
        name="HG-Pro",
        instructions=SERVER_INSTRUCTIONS,
        host=host or HTTP_HOST,
        port=port or HTTP_PORT,
    )


# Create the default MCP server instance (for stdio mode, tools registered below)
mcp = FastMCP(
    name="HG-Pro",
    instructions=SERVER_INSTRUCTIONS,
)


# =============================================================================
# MCP Tools
# =============================================================================

@mcp.tool()
def wrb_scoring(
    candles: List[Dict[str, Any]],
    symbol: str = "UNKNOWN",
    timeframe: str = "1d",
    limit: int = DEFAULT_TOOL_CANDLES,
    lookback_period: int = 5,
    sensitivity: float = 1.5,
    use_body: bool = True,
    gap_extension: str = "stopLoss",
    max_scope: int = 999,
) -> dict:
    """Analyze Wide Range Bars and Hidden Gaps (WRB/HG) on candlestick data.

    Detects significant price moves (WRB), gap zones (HG), and marks
    high-quality setups (Pro). Based on the HG_PRO system - useful for
    identifying key support/resistance zones and trade entries.

    Args:
        candles: OHLCV candles, oldest first. Prices are used as sent; only
            missing or non-numeric fields are rejected.
        symbol: Asset symbol used in the report (e.g., BTCUSDT, AAPL)
        timeframe: One of 1m, 5m, 15m, 1h, 4h, 1d, 1w, 1M
        limit: Analyze only the most recent N candles (10-500)
        lookback_period: Bars a WRB must beat (3-20)
        sensitivity: WRB range multiplier (1.0-3.0)
        use_body: Use candle body (true) or full range (false)
        gap_extension: none=strict gap, stopLoss=extend to WRB range for
            stop loss, both=full WRB range
        max_scope: Bars scanned forward for a gap fill (1-999)

    Returns:
        Summary text plus flags, gaps, active/filled gaps and counts
    """
    timeframe = sanitize_timeframe(timeframe)
    limit = sanitize_limit(limit, DEFAULT_TOOL_CANDLES, MIN_TOOL_CANDLES, MAX_TOOL_CANDLES)

    if not candles:
        return {
            "tool": TOOL_NAME,
            "error": f"No data found for {symbol}",
            "error_type": "DataError",
            "is_error": True,
        }

    config = WRBConfig(
        lookback_period=sanitize_lookback(lookback_period),
        sensitivity=sanitize_sensitivity(sensitivity),
        use_body=bool(use_body),
        gap_extension=sanitize_gap_extension(gap_extension),
        max_scope=sanitize_max_scope(max_scope),
    )

    try:
        data = create_ohlcv_from_records(candles, symbol=symbol, timeframe=timeframe)
        data = get_latest_n_bars(data, limit)
        validate_minimum_bars(data, MIN_TOOL_CANDLES)

        detailed = get_detailed_wrb(data, config)
    except HGProError as e:
        logger.warning(f"{TOOL_NAME} rejected input for {symbol}: {e}")
        return build_error_response(e, TOOL_NAME)
    except Exception as e:
        logger.exception(f"{TOOL_NAME} failed for {symbol}")
        return build_error_response(e, TOOL_NAME)

    summary_text = build_wrb_summary_text(symbol, timeframe, len(data), detailed["summary"])

    return {
        "summary_text": summary_text,
        **detailed,
        "is_error": False,
    }


# =============================================================================
# Health Check Endpoints (for HTTP mode)
# =============================================================================

def register_health_routes(server: FastMCP) -> None:
    """Register health check routes on the given server instance."""

    @server.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> JSONResponse:
        """Health check endpoint for deployment platforms."""
        return JSONResponse({
            "status": "healthy",
            "service": "hgpro-mcp",
            "version": __version__,
        })


def register_tools(server: FastMCP) -> None:
    """Register all MCP tools on the given server instance (HTTP mode)."""
    server.tool()(wrb_scoring)


# =============================================================================
# Entry Point
# =============================================================================

def main() -> None:
    """
    Main entry point for the HG-Pro MCP server.

    Command line options:
        transport: "stdio" (default) or "streamable-http"
        --host: Server host for HTTP mode (default: 0.0.0.0)
        --port: Server port for HTTP mode (default: 8000)
    """
    parser = argparse.ArgumentParser(description="HG-Pro MCP server")
    parser.add_argument(
        "transport",
        choices=["stdio", "streamable-http"],
        default="stdio",
        nargs="?",
        help="Transport mode (default: stdio)"
    )
    parser.add_argument("--host", default=HTTP_HOST)
    parser.add_argument("--port", type=int, default=HTTP_PORT)
    args = parser.parse_args()

    if args.transport == "stdio":
        logger.info("Starting HG-Pro MCP in stdio mode")
        mcp.run()
    else:
        server = create_mcp_server(host=args.host, port=args.port)
        register_tools(server)
        register_health_routes(server)

        logger.info(f"Starting HG-Pro MCP on {args.host}:{args.port}")
        logger.info(f"Health check: http://{args.host}:{args.port}/health")

        server.run(transport="streamable-http")


if __name__ == "__main__":
    main()
