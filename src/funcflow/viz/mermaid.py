"""Mermaid flowchart exporter for a Pipeline.

Usage:
    print(to_mermaid(pipeline))                # Raw Mermaid source
    to_mermaid(pipeline, direction="TD")       # Top-down layout
    to_mermaid(pipeline).source                # Access source directly
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from funcflow.nodes import ENTRY, TERMINAL

if TYPE_CHECKING:
    from funcflow.graph.core import Pipeline

# =============================================================================
# Constants
# =============================================================================

_VALID_DIRECTIONS = {"TD", "TB", "BT", "LR", "RL"}

_INITIAL_ID = "initial_value"
_FINAL_ID = "final_output"

DEFAULT_COLORS: dict[str, dict[str, str]] = {
    "function": {
        "fill": "#FFFFFF", "stroke": "#D3D3D3", "stroke-width": "1px", "color": "#374151",
    },
    "error": {
        "fill": "#FEF2F2", "stroke": "#EF4444", "stroke-width": "2px", "color": "#991B1B",
    },
    "input": {
        "fill": "#FFF7E6", "stroke": "#F5A524", "stroke-width": "2px", "color": "#92400E",
    },
    "output": {
        "fill": "#EAF7F0", "stroke": "#4CAF79", "stroke-width": "2px", "color": "#14532D",
    },
}


class MermaidDiagram:
    """A Mermaid diagram that renders in Jupyter notebooks.

    Example:
        >>> diagram = to_mermaid(Pipeline.seed())
        >>> print(diagram)           # prints raw Mermaid source
        >>> diagram.source           # raw string
    """

    def __init__(self, source: str) -> None:
        self.source = source

    def __str__(self) -> str:
        return self.source

    def __repr__(self) -> str:
        lines = self.source.split("\n")
        preview = lines[0] if lines else ""
        return f"MermaidDiagram({preview!r}, {len(lines)} lines)"

    def __contains__(self, item: str) -> bool:
        return item in self.source

    def _repr_mimebundle_(self, **kwargs: Any) -> dict[str, str]:
        return {
            "text/vnd.mermaid": self.source,
            "text/plain": str(self),
        }


def _node_id(node_id: int) -> str:
    # Mermaid ids cannot start with a digit
    return f"f{node_id}"


def _escape_label(text: str) -> str:
    """Escape characters that have special meaning in Mermaid labels."""
    return text.replace('"', "&quot;").replace("<", "&lt;").replace(">", "&gt;")


def _fmt_value(value: float | None) -> str:
    if value is None:
        return "—"
    return str(int(value)) if float(value).is_integer() else str(value)


def to_mermaid(pipeline: Pipeline, *, direction: str = "LR") -> MermaidDiagram:
    """Render a pipeline as a Mermaid flowchart.

    The initial value and final output appear as rounded anchor nodes;
    nodes with an equation error are styled as errors and their message
    is added to the label.

    Raises:
        ValueError: If direction is not a Mermaid flowchart direction
    """
    if direction not in _VALID_DIRECTIONS:
        raise ValueError(
            f"Invalid direction: {direction!r}. Use one of {sorted(_VALID_DIRECTIONS)}"
        )

    lines = [f"flowchart {direction}"]
    lines.append(f'    {_INITIAL_ID}(["x = {_fmt_value(pipeline.initial_value)}"])')

    class_map: dict[str, str] = {_INITIAL_ID: "input", _FINAL_ID: "output"}
    for node in pipeline.snapshot():
        label = f"Function {node.id}<br/>{_escape_label(node.equation)}"
        if node.has_error:
            label += f"<br/><i>{_escape_label(node.equation_error or '')}</i>"
        lines.append(f'    {_node_id(node.id)}["{label}"]')
        class_map[_node_id(node.id)] = "error" if node.has_error else "function"

    lines.append(f'    {_FINAL_ID}(["y = {_fmt_value(pipeline.final_output)}"])')

    for source, target in pipeline.edges():
        src = _INITIAL_ID if source == ENTRY else _node_id(source)
        tgt = _FINAL_ID if target == TERMINAL else _node_id(target)
        lines.append(f"    {src} --> {tgt}")

    lines.extend(_build_style_section(class_map))
    return MermaidDiagram("\n".join(lines))


def _build_style_section(class_map: dict[str, str]) -> list[str]:
    """Build classDef and class assignment lines."""
    lines: list[str] = []
    used = set(class_map.values())
    for cls_name, props in DEFAULT_COLORS.items():
        if cls_name not in used:
            continue
        prop_str = ",".join(f"{k}:{v}" for k, v in props.items())
        lines.append(f"    classDef {cls_name} {prop_str}")

    class_to_ids: dict[str, list[str]] = {}
    for node_id, cls in class_map.items():
        class_to_ids.setdefault(cls, []).append(node_id)
    for cls_name, ids in sorted(class_to_ids.items()):
        lines.append(f"    class {','.join(ids)} {cls_name}")
    return lines
