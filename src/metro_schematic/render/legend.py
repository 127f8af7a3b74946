"""Route legend for schematic SVGs."""

from __future__ import annotations

import drawsvg as draw

from metro_schematic.layout.constants import DEFAULT_ROUTE_COLOR
from metro_schematic.parser.model import Network
from metro_schematic.render.constants import (
    LEGEND_BORDER_RADIUS,
    LEGEND_CHAR_WIDTH_RATIO,
    LEGEND_LINE_HEIGHT,
    LEGEND_PADDING,
    LEGEND_SWATCH_WIDTH,
    LEGEND_TEXT_GAP,
)
from metro_schematic.render.style import Theme


def legend_entries(network: Network) -> list[tuple[str, str]]:
    """``(name, color)`` for every route, in route order."""
    return [(r.name, r.color or DEFAULT_ROUTE_COLOR) for r in network.routes()]


def compute_legend_dimensions(network: Network, theme: Theme) -> tuple[float, float]:
    """Compute the width and height of the legend without rendering it.

    Returns (0, 0) if there are no routes.
    """
    entries = legend_entries(network)
    if not entries:
        return (0.0, 0.0)
    max_name_len = max(len(name) for name, _ in entries)
    char_width = theme.legend_font_size * LEGEND_CHAR_WIDTH_RATIO
    width = (
        LEGEND_PADDING * 2
        + LEGEND_SWATCH_WIDTH
        + LEGEND_TEXT_GAP
        + max_name_len * char_width
    )
    height = LEGEND_PADDING * 2 + len(entries) * LEGEND_LINE_HEIGHT
    return (width, height)


def render_legend(
    drawing: draw.Drawing,
    network: Network,
    theme: Theme,
    x: float,
    y: float,
) -> None:
    """Render one swatch and label per route, drawing downward from (x, y)."""
    entries = legend_entries(network)
    if not entries:
        return

    legend_width, legend_height = compute_legend_dimensions(network, theme)
    drawing.append(
        draw.Rectangle(
            x,
            y,
            legend_width,
            legend_height,
            rx=LEGEND_BORDER_RADIUS,
            ry=LEGEND_BORDER_RADIUS,
            fill=theme.legend_background,
        )
    )

    text_offset = LEGEND_SWATCH_WIDTH + LEGEND_TEXT_GAP
    for i, (name, color) in enumerate(entries):
        entry_y = y + LEGEND_PADDING + i * LEGEND_LINE_HEIGHT + LEGEND_LINE_HEIGHT / 2
        drawing.append(
            draw.Line(
                x + LEGEND_PADDING,
                entry_y,
                x + LEGEND_PADDING + LEGEND_SWATCH_WIDTH,
                entry_y,
                stroke=color,
                stroke_width=theme.line_width,
                stroke_linecap="round",
            )
        )
        drawing.append(
            draw.Text(
                name,
                theme.legend_font_size,
                x + LEGEND_PADDING + text_offset,
                entry_y,
                fill=theme.legend_text_color,
                font_family=theme.label_font_family,
                dominant_baseline="central",
            )
        )
