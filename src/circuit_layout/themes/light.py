"""Light theme."""

from circuit_layout.render.style import Theme

LIGHT_THEME = Theme(
    name="light",
    background_color="none",
    node_fill="#ffffff",
    node_stroke="#333333",
    node_radius=5.0,
    node_stroke_width=2.0,
    wire_color="#333333",
    wire_width=2.0,
    label_color="#333333",
    label_font_family="'Helvetica Neue', Helvetica, Arial, sans-serif",
    label_font_size=12.0,
    edge_label_color="#555555",
    edge_label_font_size=11.0,
    title_color="#111111",
    title_font_size=22.0,
    legend_background="rgba(255, 255, 255, 0.8)",
    legend_text_color="#333333",
    legend_font_size=12.0,
    halo_color="#ffffff",
)
