"""MCP server for reading sigrok .sr capture files.

Exposes .sr decoding (open a file, list its channels, read sample bits) as
MCP tools for use with Claude Code or other MCP clients. Uses stdio
transport.

Usage:
    python -m sigrok_sr_reader.server
    # or via the entry point:
    sigrok-sr-reader
"""

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass

from mcp.server.fastmcp import FastMCP, Context

from sigrok_sr_reader.capture_store import CaptureStore, CaptureNotFoundError
from sigrok_sr_reader.errors import SrError
from sigrok_sr_reader.formatters import (
    format_capture_info,
    format_channel_table,
    format_sample_window,
)
from sigrok_sr_reader.sr_reader import open_capture

logger = logging.getLogger(__name__)

_MAX_WINDOW = 5000
_LOG_LEVEL_ENV = "SIGROK_SR_READER_LOG_LEVEL"


# ---------------------------------------------------------------------------
# Lifespan: initializes and tears down the CaptureStore
# ---------------------------------------------------------------------------


@dataclass
class AppContext:
    store: CaptureStore


@asynccontextmanager
async def app_lifespan(server: FastMCP):
    store = CaptureStore()
    try:
        yield AppContext(store=store)
    finally:
        store.cleanup()


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------

mcp = FastMCP(
    "sigrok-sr-reader",
    instructions=(
        "Reader for sigrok .sr logic analyzer captures. "
        "Use open_sr_file to decode a capture file; it returns a capture ID "
        "(e.g. cap_001). Use list_channels to see channel names and bit "
        "positions, get_samples to view a window of logic levels, and "
        "get_sample_value for a single channel at a single sample."
    ),
    lifespan=app_lifespan,
)


def _get_store(ctx: Context) -> CaptureStore:
    """Extract the CaptureStore from the lifespan context."""
    return ctx.request_context.lifespan_context.store


def _parse_channel_names(text: str) -> list[str]:
    """Parse 'CLK, DATA' into ['CLK', 'DATA']."""
    return [name.strip() for name in text.split(",") if name.strip()]


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@mcp.tool()
async def open_sr_file(
    ctx: Context,
    path: str,
    description: str = "",
) -> str:
    """Open and decode a sigrok .sr capture file.

    The whole capture is decoded into memory. Returns a capture ID to
    reference it in the other tools.

    Args:
        path: Path to the .sr file.
        description: Optional label for this capture.
    """
    store = _get_store(ctx)
    loop = asyncio.get_event_loop()
    try:
        capture = await loop.run_in_executor(None, open_capture, path)
    except SrError as e:
        logger.info("Failed to open %s: %s", path, e)
        return f"Could not open {path}: {e}"

    capture_id = store.add(capture, description=description)
    return (
        format_capture_info(capture_id, capture, description)
        + "\n\nUse list_channels, get_samples or get_sample_value "
        f'with capture_id="{capture_id}" to examine the data.'
    )


@mcp.tool()
async def list_captures(ctx: Context) -> str:
    """List all captures opened in this session."""
    store = _get_store(ctx)
    captures = store.list_captures()

    if not captures:
        return "No captures open. Use open_sr_file to decode a capture file."

    lines = [f"Captures ({len(captures)}):"]
    for cap in captures:
        desc = f" — {cap['description']}" if cap.get("description") else ""
        lines.append(
            f"  {cap['id']}  {cap['num_samples']:>10} samples  "
            f"{cap['num_channels']:>3} channels  {cap['file_path']}{desc}"
        )
    return "\n".join(lines)


@mcp.tool()
async def list_channels(ctx: Context, capture_id: str) -> str:
    """List the channels of a capture with their bit positions.

    Args:
        capture_id: ID from open_sr_file (e.g. "cap_001").
    """
    store = _get_store(ctx)
    try:
        info = store.get(capture_id)
    except CaptureNotFoundError as e:
        return str(e)

    return format_channel_table(info.capture)


@mcp.tool()
async def get_samples(
    ctx: Context,
    capture_id: str,
    start_sample: int = 0,
    num_samples: int = 100,
    channels: str | None = None,
) -> str:
    """Get a window of decoded logic levels from a capture.

    Args:
        capture_id: ID from open_sr_file (e.g. "cap_001").
        start_sample: Offset into the capture (0-indexed).
        num_samples: Number of samples to return (max 5000).
        channels: Optional comma-separated channel names (e.g. "CLK,DATA").
                  Default: all channels.
    """
    store = _get_store(ctx)
    try:
        info = store.get(capture_id)
    except CaptureNotFoundError as e:
        return str(e)

    num_samples = min(num_samples, _MAX_WINDOW)
    capture = info.capture

    try:
        selected = None
        if channels:
            selected = [capture.channel(name) for name in _parse_channel_names(channels)]
        return format_sample_window(
            capture,
            start_sample=start_sample,
            window_size=num_samples,
            channels=selected,
        )
    except SrError as e:
        return f"Error reading samples: {e}"


@mcp.tool()
async def get_sample_value(
    ctx: Context,
    capture_id: str,
    channel: str,
    sample_index: int,
) -> str:
    """Get the logic level of one channel at one sample.

    Args:
        capture_id: ID from open_sr_file (e.g. "cap_001").
        channel: Channel name as listed by list_channels.
        sample_index: Sample number (0-indexed).
    """
    store = _get_store(ctx)
    try:
        info = store.get(capture_id)
    except CaptureNotFoundError as e:
        return str(e)

    capture = info.capture
    try:
        bit = capture.channel_bit_position(channel)
        level = capture.sample_value(bit, sample_index)
    except SrError as e:
        return f"Error reading sample: {e}"

    return f"{channel} at sample {sample_index}: {'high (1)' if level else 'low (0)'}"


@mcp.tool()
async def close_capture(ctx: Context, capture_id: str) -> str:
    """Close a capture and release its memory.

    Args:
        capture_id: ID from open_sr_file (e.g. "cap_001").
    """
    store = _get_store(ctx)
    try:
        store.close(capture_id)
    except CaptureNotFoundError as e:
        return str(e)
    return f"Closed {capture_id}."


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    # stdout carries the MCP transport, so logs go to stderr.
    logging.basicConfig(
        level=os.environ.get(_LOG_LEVEL_ENV, "WARNING").upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
