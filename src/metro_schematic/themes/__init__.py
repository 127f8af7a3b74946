"""Theme definitions for schematic previews."""

from metro_schematic.themes.dark import DARK_THEME
from metro_schematic.themes.light import LIGHT_THEME

THEMES = {
    "dark": DARK_THEME,
    "light": LIGHT_THEME,
}

__all__ = ["THEMES", "DARK_THEME", "LIGHT_THEME"]
