"""SVG export of computed layouts."""

from circuit_layout.render.svg import render_svg

__all__ = ["render_svg"]
