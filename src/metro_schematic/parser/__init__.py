"""Network model and JSON record ingestion."""

from metro_schematic.parser.model import (
    Network,
    Node,
    NodeKind,
    PointKey,
    Route,
    Segment,
    WeightInterval,
)
from metro_schematic.parser.records import (
    dump_records,
    load_network,
    parse_records,
    save_network,
)

__all__ = [
    "Network",
    "Node",
    "NodeKind",
    "PointKey",
    "Route",
    "Segment",
    "WeightInterval",
    "dump_records",
    "load_network",
    "parse_records",
    "save_network",
]
