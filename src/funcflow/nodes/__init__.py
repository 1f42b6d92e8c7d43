"""Node types for funcflow."""

from funcflow.nodes.function import ENTRY, TERMINAL, FunctionNode, function_node

__all__ = [
    "FunctionNode",
    "function_node",
    "ENTRY",
    "TERMINAL",
]
