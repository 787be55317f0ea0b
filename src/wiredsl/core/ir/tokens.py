"""
Style tokens for WireDSL IR.

Style tokens are opaque to the compiler except where layout needs a number:
spacing tokens resolve to pixels, scaled by density.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class Density(str, Enum):
    COMPACT = "compact"
    NORMAL = "normal"
    COMFORTABLE = "comfortable"


class Spacing(str, Enum):
    NONE = "none"
    XS = "xs"
    SM = "sm"
    MD = "md"
    LG = "lg"
    XL = "xl"


class Radius(str, Enum):
    NONE = "none"
    SM = "sm"
    MD = "md"
    LG = "lg"
    FULL = "full"


class Stroke(str, Enum):
    THIN = "thin"
    NORMAL = "normal"
    THICK = "thick"


class FontSize(str, Enum):
    SM = "sm"
    BASE = "base"
    LG = "lg"


# Historical spellings accepted in source and mapped to canonical tokens.
TOKEN_ALIASES = {
    "xsmall": "xs",
    "small": "sm",
    "medium": "md",
    "large": "lg",
    "xlarge": "xl",
    "regular": "normal",
    "default": "normal",
    "round": "full",
    "rounded": "full",
    "comfy": "comfortable",
    "dense": "compact",
}

SPACING_VALUES: dict[Spacing, int] = {
    Spacing.NONE: 0,
    Spacing.XS: 4,
    Spacing.SM: 8,
    Spacing.MD: 16,
    Spacing.LG: 24,
    Spacing.XL: 32,
}

DENSITY_FACTORS: dict[Density, float] = {
    Density.COMPACT: 0.8,
    Density.NORMAL: 1.0,
    Density.COMFORTABLE: 1.25,
}


def canonical_token(value: str, enum: type[Enum]) -> Enum | None:
    """
    Map a raw token to a member of ``enum``, honouring aliases.

    Font sizes use ``base`` for the middle step, so ``md``/``medium`` map
    to ``base`` there and ``normal`` does too.
    """
    raw = value.strip()
    candidates = [raw, TOKEN_ALIASES.get(raw.lower(), raw.lower())]
    if enum is FontSize:
        candidates.append({"md": "base", "normal": "base"}.get(candidates[1], candidates[1]))
    for candidate in candidates:
        try:
            return enum(candidate)
        except ValueError:
            continue
    return None


def spacing_px(token: Spacing, density: Density) -> int:
    """Pixel value of a spacing token at a given density."""
    return round(SPACING_VALUES[token] * DENSITY_FACTORS[density])


class StyleTokens(BaseModel):
    """Project-wide style defaults."""

    model_config = {"frozen": True}

    density: Density = Density.NORMAL
    spacing: Spacing = Spacing.MD
    radius: Radius = Radius.MD
    stroke: Stroke = Stroke.NORMAL
    font: FontSize = FontSize.BASE
    background: str | None = None
    theme: str | None = None
    device: str | None = None


class NodeStyle(BaseModel):
    """Effective style of a node: project defaults plus node overrides."""

    model_config = {"frozen": True}

    density: Density = Density.NORMAL
    radius: Radius = Radius.MD
    stroke: Stroke = Stroke.NORMAL
    font: FontSize = FontSize.BASE
    background: str | None = None
