"""metro-schematic: orthogonal metro-map schematics from geographic transit networks."""

__version__ = "0.3.0"
