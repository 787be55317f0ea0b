"""Shared pytest fixtures for WireDSL tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from wiredsl import CompileResult, compile

DASHBOARD = """\
project "Admin" {
  style {
    density: normal
    spacing: md
  }

  colors {
    brand: #3366ff
    accent: brand
  }

  define Component "MetricCard" {
    layout card(padding: md) {
      component Heading text: prop_title
      component Text text: prop_caption
    }
  }

  define Layout "app_shell" {
    layout split(left: 240) {
      component SidebarMenu items: "Home, Users, Settings"
      component Children
    }
  }

  screen Dashboard(device: desktop) {
    layout app_shell {
      layout stack(direction: vertical, gap: lg, padding: md) {
        component Topbar title: "Dashboard"
        layout grid(columns: 12, gap: md) {
          cell span: 6 {
            component MetricCard title: "Users" caption: "Active this week"
          }
          cell span: 6 {
            component MetricCard title: "Revenue" caption: "Last 30 days"
          }
        }
        component Table columns: "Name, Email, Role" rows: 5
        component Button text: "Open users" navigate: Users
      }
    }
  }

  screen Users {
    layout stack(direction: vertical) {
      component Heading text: "Users"
    }
  }
}
"""


@pytest.fixture
def dashboard_source() -> str:
    """A small but complete project using definitions, grids and splits."""
    return DASHBOARD


@pytest.fixture
def compiled_dashboard(dashboard_source: str) -> CompileResult:
    return compile(dashboard_source)


@pytest.fixture
def wrap_screen() -> Callable[[str], str]:
    """Wrap a screen body in a minimal project."""

    def wrap(body: str, extra: str = "") -> str:
        return f'project "Test" {{\n{extra}\nscreen Main {{\n{body}\n}}\n}}\n'

    return wrap
