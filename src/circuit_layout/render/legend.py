"""Legend of branch kinds for circuit SVGs."""

from __future__ import annotations

import drawsvg as draw

from circuit_layout.render.constants import (
    LEGEND_BORDER_RADIUS,
    LEGEND_CHAR_WIDTH_RATIO,
    LEGEND_LINE_HEIGHT,
    LEGEND_PADDING,
    LEGEND_SWATCH_WIDTH,
    LEGEND_TEXT_GAP,
)
from circuit_layout.render.style import Theme


def compute_legend_dimensions(kind_colors: dict[str, str], theme: Theme) -> tuple[float, float]:
    """Compute the width and height of the legend without rendering it.

    Returns (0, 0) if there are no kinds.
    """
    if not kind_colors:
        return (0.0, 0.0)
    max_name_len = max(len(kind) for kind in kind_colors)
    char_width = theme.legend_font_size * LEGEND_CHAR_WIDTH_RATIO
    width = (
        LEGEND_PADDING * 2 + LEGEND_SWATCH_WIDTH + LEGEND_TEXT_GAP + max_name_len * char_width
    )
    height = LEGEND_PADDING * 2 + len(kind_colors) * LEGEND_LINE_HEIGHT
    return (width, height)


def render_legend(
    drawing: draw.Drawing,
    kind_colors: dict[str, str],
    theme: Theme,
    x: float,
    y: float,
) -> None:
    """Render a legend showing every branch kind and its colour."""
    if not kind_colors:
        return

    width, height = compute_legend_dimensions(kind_colors, theme)
    drawing.append(draw.Rectangle(
        x, y, width, height,
        rx=LEGEND_BORDER_RADIUS, ry=LEGEND_BORDER_RADIUS,
        fill=theme.legend_background,
    ))

    for i, (kind, color) in enumerate(kind_colors.items()):
        cy = y + LEGEND_PADDING + (i + 0.5) * LEGEND_LINE_HEIGHT
        sx = x + LEGEND_PADDING
        drawing.append(draw.Line(
            sx, cy, sx + LEGEND_SWATCH_WIDTH, cy,
            stroke=color,
            stroke_width=theme.wire_width + 1,
            stroke_linecap="round",
        ))
        drawing.append(draw.Text(
            kind,
            theme.legend_font_size,
            sx + LEGEND_SWATCH_WIDTH + LEGEND_TEXT_GAP, cy,
            fill=theme.legend_text_color,
            font_family=theme.label_font_family,
            dominant_baseline="central",
        ))
