"""SVG preview of a schematic network using drawsvg."""

from __future__ import annotations

import drawsvg as draw

from metro_schematic.layout.constants import DEFAULT_ROUTE_COLOR
from metro_schematic.layout.geometry import corners
from metro_schematic.parser.model import Network, Node, Point
from metro_schematic.render.constants import (
    CANVAS_PADDING,
    CELL_SCALE,
    CURVE_RADIUS,
    LEGEND_GAP,
)
from metro_schematic.render.legend import compute_legend_dimensions, render_legend
from metro_schematic.render.style import Theme


def render_svg(
    network: Network,
    theme: Theme,
    scale: float = CELL_SCALE,
    padding: float = CANVAS_PADDING,
    legend: bool = True,
) -> str:
    """Render a network to an SVG string.

    Grid y grows upward, so it is flipped onto the SVG canvas.
    """
    points = network.all_points()
    if not points:
        return '<svg xmlns="http://www.w3.org/2000/svg"></svg>'

    min_x = min(p[0] for p in points)
    max_x = max(p[0] for p in points)
    min_y = min(p[1] for p in points)
    max_y = max(p[1] for p in points)

    def to_canvas(p: Point) -> Point:
        return (padding + (p[0] - min_x) * scale, padding + (max_y - p[1]) * scale)

    content_w = (max_x - min_x) * scale + padding * 2
    content_h = (max_y - min_y) * scale + padding * 2
    legend_w, legend_h = compute_legend_dimensions(network, theme) if legend else (0.0, 0.0)

    svg_width = int(max(content_w, legend_w + padding * 2))
    svg_height = int(content_h + (legend_h + LEGEND_GAP if legend_h else 0))

    d = draw.Drawing(svg_width, svg_height)
    d.append(draw.Rectangle(0, 0, svg_width, svg_height, fill=theme.background_color))

    if theme.grid_color:
        _render_grid(d, (min_x, max_x, min_y, max_y), to_canvas, theme)

    _render_routes(d, network, to_canvas, theme)
    _render_stations(d, network, to_canvas, theme)

    if legend_h:
        render_legend(d, network, theme, padding, content_h)

    return d.as_svg()


def _render_grid(d: draw.Drawing, bounds, to_canvas, theme: Theme) -> None:
    """Faint lines at every integer grid coordinate."""
    min_x, max_x, min_y, max_y = bounds
    for x in range(int(min_x), int(max_x) + 1):
        (x1, y1), (x2, y2) = to_canvas((x, min_y)), to_canvas((x, max_y))
        d.append(draw.Line(x1, y1, x2, y2, stroke=theme.grid_color, stroke_width=1.0))
    for y in range(int(min_y), int(max_y) + 1):
        (x1, y1), (x2, y2) = to_canvas((min_x, y)), to_canvas((max_x, y))
        d.append(draw.Line(x1, y1, x2, y2, stroke=theme.grid_color, stroke_width=1.0))


def _render_routes(d: draw.Drawing, network: Network, to_canvas, theme: Theme) -> None:
    """Draw every segment with rounded corners at direction changes."""
    for seg in network.segments:
        pts = [to_canvas(p) for p in corners(seg.points)]
        if len(pts) < 2:
            continue
        color = seg.color or DEFAULT_ROUTE_COLOR

        if len(pts) == 2:
            d.append(draw.Line(
                pts[0][0], pts[0][1],
                pts[1][0], pts[1][1],
                stroke=color,
                stroke_width=theme.line_width,
                stroke_linecap="round",
            ))
            continue

        path = draw.Path(
            stroke=color,
            stroke_width=theme.line_width,
            fill="none",
            stroke_linecap="round",
            stroke_linejoin="round",
        )
        path.M(*pts[0])
        for i in range(1, len(pts) - 1):
            prev, curr, nxt = pts[i - 1], pts[i], pts[i + 1]

            dx1, dy1 = curr[0] - prev[0], curr[1] - prev[1]
            len1 = (dx1**2 + dy1**2) ** 0.5
            dx2, dy2 = nxt[0] - curr[0], nxt[1] - curr[1]
            len2 = (dx2**2 + dy2**2) ** 0.5

            r = min(CURVE_RADIUS, len1 / 2, len2 / 2)
            if len1 > 0 and len2 > 0:
                path.L(curr[0] - (dx1 / len1) * r, curr[1] - (dy1 / len1) * r)
                path.Q(curr[0], curr[1], curr[0] + (dx2 / len2) * r, curr[1] + (dy2 / len2) * r)
            else:
                path.L(*curr)
        path.L(*pts[-1])
        d.append(path)


def _station_nodes(network: Network) -> dict[Point, Node]:
    """One node per station position; transfers win over plain stations."""
    found: dict[Point, Node] = {}
    for seg in network.segments:
        for p, node in zip(seg.points, seg.nodes):
            if not node.is_real_station:
                continue
            current = found.get(p)
            if current is None or (node.is_transfer and not current.is_transfer):
                found[p] = node
    return found


def _render_stations(d: draw.Drawing, network: Network, to_canvas, theme: Theme) -> None:
    """Stations as circles with their names beside them."""
    for p, node in _station_nodes(network).items():
        cx, cy = to_canvas(p)
        if node.is_transfer:
            r = theme.station_radius * theme.transfer_radius_scale
            stroke_width = theme.transfer_stroke_width
        else:
            r = theme.station_radius
            stroke_width = theme.station_stroke_width
        d.append(draw.Circle(
            cx, cy, r,
            fill=theme.station_fill,
            stroke=theme.station_stroke,
            stroke_width=stroke_width,
        ))
        if node.name:
            d.append(draw.Text(
                node.name,
                theme.label_font_size,
                cx + r + 3, cy - r - 2,
                fill=theme.label_color,
                font_family=theme.label_font_family,
            ))
