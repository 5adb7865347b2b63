"""Theme definitions for circuit diagrams."""

from circuit_layout.themes.dark import DARK_THEME
from circuit_layout.themes.light import LIGHT_THEME

THEMES = {
    "dark": DARK_THEME,
    "light": LIGHT_THEME,
}

__all__ = ["THEMES", "DARK_THEME", "LIGHT_THEME"]
