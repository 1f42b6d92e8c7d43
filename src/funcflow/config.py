"""Pipeline configuration: defaults and ``[tool.funcflow]`` loading.

Reads the [tool.funcflow] section of the nearest pyproject.toml to
override the execution order, seed nodes, initial value and connector
geometry constants::

    [tool.funcflow]
    initial_value = 3
    alignment_threshold = 8
    curvature = 0.4

    [tool.funcflow.order]
    1 = 2
    2 = -1

    [[tool.funcflow.nodes]]
    id = 1
    equation = "x^2"
    prev = 0
    next = 2
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from funcflow.graph.order import ExecutionOrder
from funcflow.nodes import ENTRY, TERMINAL, FunctionNode, function_node

# Pixels below which a connector counts as horizontal or vertical
ALIGNMENT_THRESHOLD = 10.0
# Fraction of the horizontal delta used to offset cubic control points
CURVE_CURVATURE = 0.5
INITIAL_VALUE = 2.0

FIXED_EXECUTION_ORDER: dict[int, int] = {
    1: 2,
    2: 4,
    4: 5,
    5: 3,
    3: TERMINAL,
}

SEED_NODES: tuple[dict[str, Any], ...] = (
    {"id": 1, "equation": "x^2", "prev": ENTRY, "next": 2},
    {"id": 2, "equation": "2x+4", "prev": 1, "next": 4},
    {"id": 3, "equation": "x^2+20", "prev": 5, "next": TERMINAL},
    {"id": 4, "equation": "x-2", "prev": 2, "next": 5},
    {"id": 5, "equation": "x/2", "prev": 4, "next": 3},
)


@dataclass(frozen=True)
class PipelineConfig:
    """Everything a session needs that is configured rather than computed."""

    order: ExecutionOrder = field(default_factory=lambda: ExecutionOrder(FIXED_EXECUTION_ORDER))
    nodes: tuple[dict[str, Any], ...] = SEED_NODES
    initial_value: float = INITIAL_VALUE
    alignment_threshold: float = ALIGNMENT_THRESHOLD
    curvature: float = CURVE_CURVATURE

    def build_nodes(self) -> list[FunctionNode]:
        """Fresh FunctionNodes for the seed specs, with validation errors filled in."""
        return [
            function_node(
                int(item["id"]),
                str(item["equation"]),
                next_link=_optional_int(item.get("next")),
                prev_link=_optional_int(item.get("prev")),
            )
            for item in self.nodes
        ]


def _optional_int(value: Any) -> int | None:
    return None if value is None else int(value)


def find_pyproject(start: Path | None = None) -> Path | None:
    """Walk up from start directory to find pyproject.toml."""
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / "pyproject.toml"
        if candidate.is_file():
            return candidate
    return None


def load_config(start: Path | None = None) -> PipelineConfig:
    """Load [tool.funcflow] from the nearest pyproject.toml.

    Returns default config if no pyproject.toml or no [tool.funcflow] section.
    """
    path = find_pyproject(start)
    if path is None:
        return PipelineConfig()

    if sys.version_info >= (3, 11):
        import tomllib
    else:
        try:
            import tomli as tomllib
        except ImportError:
            return PipelineConfig()

    with open(path, "rb") as f:
        data = tomllib.load(f)

    section = data.get("tool", {}).get("funcflow", {})
    if not section:
        return PipelineConfig()

    return config_from_dict(section)


def config_from_dict(section: dict[str, Any]) -> PipelineConfig:
    """Build a PipelineConfig from a parsed mapping, keeping defaults for missing keys."""
    defaults = PipelineConfig()
    order = section.get("order")
    nodes = section.get("nodes")
    return PipelineConfig(
        order=ExecutionOrder(order) if order else defaults.order,
        nodes=tuple(nodes) if nodes else defaults.nodes,
        initial_value=float(section.get("initial_value", defaults.initial_value)),
        alignment_threshold=float(section.get("alignment_threshold", defaults.alignment_threshold)),
        curvature=float(section.get("curvature", defaults.curvature)),
    )
