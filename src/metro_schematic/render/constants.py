"""Render constants used across render modules.

Theme-dependent values remain in style.py.
"""

# ---------------------------------------------------------------------------
# Canvas
# ---------------------------------------------------------------------------
CANVAS_PADDING: float = 60.0
"""Default padding around the entire SVG canvas."""

CELL_SCALE: float = 40.0
"""Pixels per grid unit of the schematic."""

CURVE_RADIUS: float = 10.0
"""Corner rounding radius for polylines with direction changes."""

LEGEND_GAP: float = 30.0
"""Gap between content area and legend."""

# ---------------------------------------------------------------------------
# Legend
# ---------------------------------------------------------------------------
LEGEND_LINE_HEIGHT: float = 24.0
"""Vertical height per route entry in legend."""

LEGEND_PADDING: float = 12.0
"""Internal padding of legend box."""

LEGEND_SWATCH_WIDTH: float = 24.0
"""Width of color swatch line in legend."""

LEGEND_TEXT_GAP: float = 12.0
"""Gap between swatch end and label text."""

LEGEND_CHAR_WIDTH_RATIO: float = 0.48
"""Character width as a fraction of font size for legend text sizing."""

LEGEND_BORDER_RADIUS: int = 6
"""Corner radius for legend background rectangle."""
