"""Dark grey theme (blueprint-style schematic)."""

from circuit_layout.render.style import Theme

DARK_THEME = Theme(
    name="dark",
    background_color="#2b2b2b",
    node_fill="#ffffff",
    node_stroke="#333333",
    node_radius=5.0,
    node_stroke_width=1.5,
    wire_color="#d0d0d0",
    wire_width=2.0,
    label_color="#e0e0e0",
    label_font_family="'Helvetica Neue', Helvetica, Arial, sans-serif",
    label_font_size=12.0,
    edge_label_color="#bbbbbb",
    edge_label_font_size=11.0,
    title_color="#ffffff",
    title_font_size=22.0,
    legend_background="rgba(0, 0, 0, 0.3)",
    legend_text_color="#e0e0e0",
    legend_font_size=12.0,
)
