"""
Device viewport presets.
"""

from __future__ import annotations

from pydantic import BaseModel

DEFAULT_DEVICE = "desktop"


class Viewport(BaseModel):
    """Screen canvas size in pixels."""

    model_config = {"frozen": True}

    width: int
    height: int
    device: str = DEFAULT_DEVICE


DEVICE_PRESETS: dict[str, Viewport] = {
    "mobile": Viewport(width=375, height=812, device="mobile"),
    "tablet": Viewport(width=768, height=1024, device="tablet"),
    "desktop": Viewport(width=1280, height=720, device="desktop"),
    "print": Viewport(width=794, height=1123, device="print"),
    "a4": Viewport(width=794, height=1123, device="a4"),
}


def resolve_device(name: str | None) -> Viewport | None:
    """Look up a preset by name (case-insensitive); None if unknown."""
    if name is None:
        return DEVICE_PRESETS[DEFAULT_DEVICE]
    return DEVICE_PRESETS.get(name.strip().lower())
