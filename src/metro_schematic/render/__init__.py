"""Preview rendering of pipeline output.

Public API:
- render_svg: Network to SVG string
- Theme: Visual theme dataclass
"""

from metro_schematic.render.style import Theme
from metro_schematic.render.svg import render_svg

__all__ = ["Theme", "render_svg"]
