"""
Declarative sizes.

A Size records how a dimension should be resolved; only the layout engine
turns it into pixels.
"""

from __future__ import annotations

import math
from enum import Enum

from pydantic import BaseModel, model_validator


class SizeMode(str, Enum):
    FIXED = "fixed"  # value is px
    FILL = "fill"  # share of remaining space
    CONTENT = "content"  # intrinsic size
    PERCENT = "percent"  # value is 0-100 of the available axis


class Size(BaseModel):
    model_config = {"frozen": True}

    mode: SizeMode
    value: float | None = None

    @model_validator(mode="after")
    def check_value(self) -> Size:
        if self.mode == SizeMode.FIXED and (self.value is None or not 0 <= self.value < math.inf):
            raise ValueError("fixed size needs a finite, non-negative px value")
        if self.mode == SizeMode.PERCENT and (self.value is None or not 0 <= self.value <= 100):
            raise ValueError("percent size must be between 0 and 100")
        return self

    @classmethod
    def fixed(cls, px: float) -> Size:
        return cls(mode=SizeMode.FIXED, value=px)

    @classmethod
    def fill(cls) -> Size:
        return cls(mode=SizeMode.FILL)

    @classmethod
    def content(cls) -> Size:
        return cls(mode=SizeMode.CONTENT)

    @classmethod
    def percent(cls, value: float) -> Size:
        return cls(mode=SizeMode.PERCENT, value=value)


def parse_size(raw: str | int | float | bool) -> Size | None:
    """
    Parse a ``width``/``height`` property value.

    Examples:
        >>> parse_size(120).mode
        <SizeMode.FIXED: 'fixed'>
        >>> parse_size("50%").value
        50.0
        >>> parse_size("fill").mode
        <SizeMode.FILL: 'fill'>
        >>> parse_size("inf") is None
        True

    Returns:
        The Size, or None if the value is not a valid size
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        try:
            px = float(raw)
        except OverflowError:
            return None
        return Size.fixed(px) if 0 <= px < math.inf else None
    text = raw.strip().lower()
    if text == "fill":
        return Size.fill()
    if text in ("content", "auto"):
        return Size.content()
    try:
        if text.endswith("%"):
            value = float(text[:-1])
            return Size.percent(value) if 0 <= value <= 100 else None
        if text.endswith("px"):
            text = text[:-2]
        px = float(text)
    except ValueError:
        return None
    return Size.fixed(px) if 0 <= px < math.inf else None
