"""Drawing support: connector geometry, connection projection, Mermaid export."""

from funcflow.viz.connectors import (
    FINAL,
    INITIAL,
    AnchorBox,
    AnchorLookup,
    Connection,
    box_lookup,
    build_connections,
    render_paths,
    row_layout,
)
from funcflow.viz.geometry import ConnectorPath, PathKind, Point, build_path
from funcflow.viz.mermaid import MermaidDiagram, to_mermaid

__all__ = [
    "AnchorBox",
    "AnchorLookup",
    "Connection",
    "ConnectorPath",
    "FINAL",
    "INITIAL",
    "MermaidDiagram",
    "PathKind",
    "Point",
    "box_lookup",
    "build_connections",
    "build_path",
    "render_paths",
    "row_layout",
    "to_mermaid",
]
