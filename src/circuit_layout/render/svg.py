"""SVG generation for circuit layouts using drawsvg."""

from __future__ import annotations

import math

import drawsvg as draw

from circuit_layout.parser.model import LayoutEdge, LayoutGraph, LayoutNode
from circuit_layout.render.constants import (
    ARROW_HALF_WIDTH,
    ARROW_LENGTH,
    LEGEND_GAP,
    TITLE_HEIGHT,
)
from circuit_layout.render.legend import compute_legend_dimensions, render_legend
from circuit_layout.render.style import Theme


def render_svg(
    layout: LayoutGraph,
    theme: Theme,
    kinds: dict[str, str] | None = None,
    title: str | None = None,
    width: int | None = None,
    height: int | None = None,
) -> str:
    """Render a computed layout to an SVG string.

    ``kinds`` maps branch id to branch kind; when given, branches are
    coloured per kind and a legend is drawn below the circuit.
    """
    if not layout.nodes:
        return '<svg xmlns="http://www.w3.org/2000/svg"></svg>'

    kinds = kinds or {}
    kind_colors = theme.kind_colors([kinds[e.id] for e in layout.edges if e.id in kinds])
    legend_w, legend_h = compute_legend_dimensions(kind_colors, theme)

    top = TITLE_HEIGHT if title else 0.0
    auto_width = max(layout.width, legend_w + 2 * LEGEND_GAP)
    auto_height = top + layout.height + (legend_h + LEGEND_GAP if legend_h else 0.0)

    svg_width = width or int(math.ceil(auto_width))
    svg_height = height or int(math.ceil(auto_height))

    d = draw.Drawing(svg_width, svg_height)

    # Background
    d.append(draw.Rectangle(0, 0, svg_width, svg_height, fill=theme.background_color))

    if title:
        d.append(draw.Text(
            title,
            theme.title_font_size,
            LEGEND_GAP, TITLE_HEIGHT * 0.7,
            fill=theme.title_color,
            font_family=theme.label_font_family,
            font_weight="bold",
        ))

    # Everything laid out by the engine shifts down under the title
    body = draw.Group(transform=f"translate(0,{top})") if top else draw.Group()

    # Edges behind nodes
    for edge in layout.edges:
        color = kind_colors.get(kinds.get(edge.id, ""), theme.wire_color)
        _render_edge(body, edge, color, theme)

    for node in layout.nodes:
        _render_node(body, node, theme)

    _render_labels(body, layout, theme)
    d.append(body)

    if legend_h:
        render_legend(d, kind_colors, theme, LEGEND_GAP, top + layout.height)

    return d.as_svg()


def _render_edge(d: draw.Group, edge: LayoutEdge, color: str, theme: Theme) -> None:
    d.append(draw.Path(
        d=edge.path,
        fill="none",
        stroke=color,
        stroke_width=theme.wire_width,
        stroke_linecap="round",
        id=f"edge-{edge.id}",
    ))

    # Arrowhead centred on the arrow point, tip along the tangent
    a = edge.arrow_point
    ux, uy = math.cos(a.angle), math.sin(a.angle)
    tip = (a.x + ux * ARROW_LENGTH / 2, a.y + uy * ARROW_LENGTH / 2)
    base_x = a.x - ux * ARROW_LENGTH / 2
    base_y = a.y - uy * ARROW_LENGTH / 2
    d.append(draw.Lines(
        tip[0], tip[1],
        base_x - uy * ARROW_HALF_WIDTH, base_y + ux * ARROW_HALF_WIDTH,
        base_x + uy * ARROW_HALF_WIDTH, base_y - ux * ARROW_HALF_WIDTH,
        close=True,
        fill=color,
        stroke="none",
    ))


def _render_node(d: draw.Group, node: LayoutNode, theme: Theme) -> None:
    d.append(draw.Circle(
        node.x, node.y, theme.node_radius,
        fill=theme.node_fill,
        stroke=theme.node_stroke,
        stroke_width=theme.node_stroke_width,
        id=f"node-{node.id}",
    ))


def _text_anchor(node: LayoutNode) -> str:
    if node.label_pos.x < node.x - 1:
        return "end"
    if node.label_pos.x > node.x + 1:
        return "start"
    return "middle"


def _render_labels(d: draw.Group, layout: LayoutGraph, theme: Theme) -> None:
    halo = theme.halo_color or theme.background_color
    halo_kwargs = {} if halo == "none" else {
        "stroke": halo,
        "stroke_width": 3,
        "paint_order": "stroke",
    }
    for node in layout.nodes:
        d.append(draw.Text(
            node.label,
            theme.label_font_size,
            node.label_pos.x, node.label_pos.y,
            fill=theme.label_color,
            font_family=theme.label_font_family,
            text_anchor=_text_anchor(node),
            dominant_baseline="central",
            **halo_kwargs,
        ))
    for edge in layout.edges:
        d.append(draw.Text(
            edge.label,
            theme.edge_label_font_size,
            edge.label_pos.x, edge.label_pos.y,
            fill=theme.edge_label_color,
            font_family=theme.label_font_family,
            font_style="italic",
            text_anchor="middle",
            dominant_baseline="central",
            **halo_kwargs,
        ))
