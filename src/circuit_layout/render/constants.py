"""Render constants used across render modules.

Theme-dependent values remain in style.py.
"""

# ---------------------------------------------------------------------------
# Canvas
# ---------------------------------------------------------------------------
TITLE_HEIGHT: float = 40.0
"""Vertical space reserved above the drawing for a title."""

# ---------------------------------------------------------------------------
# Arrowheads
# ---------------------------------------------------------------------------
ARROW_LENGTH: float = 9.0
"""Distance from arrow tip to the base of the arrowhead."""

ARROW_HALF_WIDTH: float = 4.5
"""Half the width of the arrowhead base."""

# ---------------------------------------------------------------------------
# Legend
# ---------------------------------------------------------------------------
LEGEND_GAP: float = 30.0
"""Gap between the drawing and the legend below it."""

LEGEND_LINE_HEIGHT: float = 22.0
"""Vertical height per kind entry in the legend."""

LEGEND_PADDING: float = 10.0
"""Inner padding of the legend box."""

LEGEND_SWATCH_WIDTH: float = 24.0
"""Length of the colour swatch line."""

LEGEND_TEXT_GAP: float = 8.0
"""Gap between swatch and kind name."""

LEGEND_CHAR_WIDTH_RATIO: float = 0.6
"""Approximate character width as a fraction of font size."""

LEGEND_BORDER_RADIUS: float = 6.0
"""Corner radius of the legend box."""
