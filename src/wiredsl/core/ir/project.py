"""
Project and screen IR types.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from .devices import Viewport
from .nodes import ComponentNode, ContainerNode, PropValue
from .tokens import StyleTokens


class Screen(BaseModel):
    """
    One screen of the project.

    ``root`` is None only when the source root could not be produced; such
    a screen always has an error diagnostic.
    """

    model_config = {"frozen": True}

    id: str
    name: str
    viewport: Viewport
    background: str | None = None
    params: dict[str, PropValue] = Field(default_factory=dict)
    root: ContainerNode | ComponentNode | None = None


class Project(BaseModel):
    """Root of the IR."""

    model_config = {"frozen": True}

    name: str
    style: StyleTokens = Field(default_factory=StyleTokens)
    colors: dict[str, str] = Field(default_factory=dict)
    resolved_colors: dict[str, str] = Field(default_factory=dict)
    mocks: dict[str, PropValue] = Field(default_factory=dict)
    screens: list[Screen] = Field(default_factory=list)

    def screen(self, name: str) -> Screen | None:
        for screen in self.screens:
            if screen.name == name:
                return screen
        return None
