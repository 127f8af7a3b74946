"""Theme and style constants for schematic rendering."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Theme:
    """Visual theme for a schematic preview."""

    name: str
    background_color: str
    station_fill: str
    station_stroke: str
    station_radius: float
    station_stroke_width: float
    line_width: float
    label_color: str
    label_font_family: str
    label_font_size: float
    legend_background: str
    legend_text_color: str
    legend_font_size: float
    # Transfer stations are drawn larger and with a heavier outline
    transfer_radius_scale: float = 1.4
    transfer_stroke_width: float = 2.5
    grid_color: str = ""  # empty = no grid
