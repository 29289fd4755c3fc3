"""Keeps decoded captures open so they can be referenced across MCP tool calls."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from sigrok_sr_reader.sr_reader import SrCapture


class CaptureNotFoundError(Exception):
    """Raised when a capture ID doesn't exist in the store."""


@dataclass
class CaptureInfo:
    capture_id: str
    capture: SrCapture = field(repr=False)
    opened_at: float
    description: str = ""


class CaptureStore:
    """Registry of open captures.

    Each capture gets a short human-readable ID (cap_001, cap_002, ...) that
    can be referenced from subsequent tool calls (list_channels,
    get_samples, ...). IDs are never reused, even after a capture is closed.
    """

    def __init__(self) -> None:
        self._captures: dict[str, CaptureInfo] = {}
        self._counter = 0

    def add(self, capture: SrCapture, description: str = "") -> str:
        """Register a decoded capture and return its new ID."""
        self._counter += 1
        capture_id = f"cap_{self._counter:03d}"
        self._captures[capture_id] = CaptureInfo(
            capture_id=capture_id,
            capture=capture,
            opened_at=time.time(),
            description=description,
        )
        return capture_id

    def get(self, capture_id: str) -> CaptureInfo:
        """Get capture info by ID. Raises CaptureNotFoundError if not found."""
        if capture_id not in self._captures:
            available = ", ".join(self._captures.keys()) or "(none)"
            raise CaptureNotFoundError(
                f"Capture '{capture_id}' not found. Available captures: {available}"
            )
        return self._captures[capture_id]

    def close(self, capture_id: str) -> None:
        """Close a capture and forget its ID."""
        info = self.get(capture_id)
        info.capture.close()
        del self._captures[capture_id]

    def list_captures(self) -> list[dict]:
        """List all open captures with metadata."""
        result = []
        for info in self._captures.values():
            cap = info.capture
            result.append({
                "id": info.capture_id,
                "file_path": cap.path,
                "opened_at": info.opened_at,
                "description": info.description,
                "num_channels": cap.channel_count(),
                "num_samples": cap.sample_count(),
                "unit_size": cap.unit_size,
            })
        return result

    def cleanup(self) -> None:
        """Close every capture."""
        for info in self._captures.values():
            info.capture.close()
        self._captures.clear()
