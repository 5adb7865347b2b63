"""Theme and style constants for circuit diagram rendering."""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_KIND_PALETTE: tuple[str, ...] = (
    "#e6194b",
    "#3cb44b",
    "#4363d8",
    "#f58231",
    "#911eb4",
    "#42d4f4",
    "#f032e6",
    "#9a6324",
)


@dataclass
class Theme:
    """Visual theme for a circuit diagram."""

    name: str
    background_color: str
    node_fill: str
    node_stroke: str
    node_radius: float
    node_stroke_width: float
    wire_color: str
    wire_width: float
    label_color: str
    label_font_family: str
    label_font_size: float
    edge_label_color: str
    edge_label_font_size: float
    title_color: str
    title_font_size: float
    legend_background: str
    legend_text_color: str
    legend_font_size: float
    # Colours cycled through for branch kinds, in first-seen order
    kind_palette: tuple[str, ...] = field(default=DEFAULT_KIND_PALETTE)
    halo_color: str = ""  # empty = inherit background_color

    def kind_colors(self, kinds: list[str]) -> dict[str, str]:
        """Assign a palette colour to each distinct kind, in order."""
        colors: dict[str, str] = {}
        for kind in kinds:
            if kind not in colors:
                colors[kind] = self.kind_palette[len(colors) % len(self.kind_palette)]
        return colors
