"""Rich-based printer for pipeline runs and edits."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from funcflow.events.processor import TypedEventProcessor
from funcflow.events.types import OutputStatus

if TYPE_CHECKING:
    from funcflow.events.types import (
        EquationChangedEvent,
        LinkRejectedEvent,
        NodeEvaluatedEvent,
        OutputComputedEvent,
    )


def _require_rich() -> None:
    """Raise a clear error if rich is not installed."""
    try:
        import rich  # noqa: F401
    except ImportError:
        raise ImportError(
            "The 'rich' package is required for RichTraceProcessor. Install it with: pip install 'funcflow[trace]' or pip install rich"
        ) from None


_STATUS_STYLE = {
    OutputStatus.COMPUTED: "bold green",
    OutputStatus.INVALID_EQUATION: "bold red",
    OutputStatus.EVALUATION_FAILED: "bold red",
    OutputStatus.NO_ENTRY: "yellow",
    OutputStatus.DANGLING: "yellow",
}


class RichTraceProcessor(TypedEventProcessor):
    """Prints each fold step and the final output as they happen.

    Visual conventions:
        - ``f1: x^2  2 -> 4`` one line per evaluated node
        - ``= 45`` final output, colored by status
        - edits and rejected links are shown dimmed when ``show_edits``
    """

    def __init__(self, *, console: Any = None, show_edits: bool = False) -> None:
        """Initialize the trace printer.

        Args:
            console: Rich Console to print to. Defaults to a new stdout console.
            show_edits: Also print equation edits and rejected links.
        """
        _require_rich()
        from rich.console import Console

        self._console = console if console is not None else Console()
        self._show_edits = show_edits

    def on_node_evaluated(self, event: NodeEvaluatedEvent) -> None:
        self._console.print(
            f"  [cyan]f{event.node_id}[/cyan]: {event.equation}  "
            f"{_fmt(event.input_value)} -> [bold]{_fmt(event.output_value)}[/bold]",
            highlight=False,
        )

    def on_output_computed(self, event: OutputComputedEvent) -> None:
        style = _STATUS_STYLE[event.status]
        if event.status is OutputStatus.COMPUTED:
            text = f"= {_fmt(event.value)}"
        elif event.status.has_output:
            text = f"= {_fmt(event.value)} ({event.status.value}: {event.error})"
        else:
            text = f"no output ({event.status.value})"
        self._console.print(f"[{style}]{text}[/{style}]", highlight=False)

    def on_equation_changed(self, event: EquationChangedEvent) -> None:
        if not self._show_edits:
            return
        suffix = f" [red]({event.error})[/red]" if event.error else ""
        self._console.print(f"[dim]f{event.node_id} := {event.equation}[/dim]{suffix}", highlight=False)

    def on_link_rejected(self, event: LinkRejectedEvent) -> None:
        if not self._show_edits:
            return
        target = "?" if event.target is None else _fmt_target(event.target)
        reason = event.reason.value if event.reason is not None else "unknown"
        self._console.print(
            f"[dim]f{event.source_id} -> {target} refused: {reason}[/dim]",
            highlight=False,
        )


def _fmt(value: float | None) -> str:
    if value is None:
        return "—"
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _fmt_target(target: int) -> str:
    return "output" if target == -1 else f"f{target}"
