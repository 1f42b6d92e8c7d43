"""Pipeline class for funcflow."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import networkx as nx

from funcflow.events.dispatcher import EventDispatcher
from funcflow.events.types import (
    EquationChangedEvent,
    LinkChangedEvent,
    LinkRejectedEvent,
    NodeEvaluatedEvent,
    OutputComputedEvent,
    OutputStatus,
    _generate_run_id,
)
from funcflow.exceptions import ExpressionError, UnknownNodeError
from funcflow.expression import ValidationResult, evaluate_strict
from funcflow.graph._helpers import build_link_graph, walk_from
from funcflow.graph.validation import (
    ConnectionResult,
    RejectionReason,
    check_connection,
    parse_target,
    validate_pipeline,
)
from funcflow.nodes import ENTRY, TERMINAL, FunctionNode

if TYPE_CHECKING:
    from funcflow.config import PipelineConfig
    from funcflow.events.processor import EventProcessor
    from funcflow.graph.order import ExecutionOrder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationStep:
    """One node applied during a run."""

    node_id: int
    equation: str
    input_value: float
    output_value: float


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of folding the initial value through the pipeline.

    Attributes:
        status: How the run ended
        value: Output value; 0.0 for failed runs, None when no output
        initial_value: Value fed to the entry node
        steps: Nodes applied, in order
        error: Detail for failed or incomplete runs
    """

    status: OutputStatus
    value: float | None
    initial_value: float
    steps: tuple[EvaluationStep, ...] = ()
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is OutputStatus.COMPUTED


@dataclass(frozen=True)
class LinkOption:
    """One entry of a next-function picker.

    ``value`` is the selector to pass to ``Pipeline.set_next_link``.
    """

    value: str
    label: str
    disabled: bool = False


class Pipeline:
    """A fixed set of function nodes wired into a linear chain.

    Nodes are never added or removed after construction. Equations and
    links are edited in place, and the output is recomputed in full after
    every edit.

    Link changes are checked against the execution order and graph rules.
    A refused change leaves the pipeline untouched and is reported only
    through the returned ``ConnectionResult`` (and a LinkRejectedEvent).

    Attributes:
        order: Execution order constraining which links are legal
        initial_value: Value fed to the entry node
        final_output: Output of the last run that produced one
        last_result: Full result of the last run

    Example:
        >>> p = Pipeline.seed()
        >>> p.final_output
        45.0
        >>> p.set_equation(3, "x+1").is_valid
        True
        >>> p.final_output
        6.0
        >>> bool(p.set_next_link(1, "3"))
        False
    """

    def __init__(
        self,
        nodes: Iterable[FunctionNode],
        order: ExecutionOrder,
        *,
        initial_value: float = 0.0,
        processors: list[EventProcessor] | None = None,
        strict_events: bool = False,
    ) -> None:
        """Create a pipeline from seed nodes.

        Args:
            nodes: Seed nodes. They are copied; later edits to the
                originals have no effect.
            order: Execution order for link checks
            initial_value: Value fed to the entry node
            processors: Event processors notified of edits and runs
            strict_events: If True, processor failures propagate

        Raises:
            PipelineConfigError: If the seed configuration is inconsistent
        """
        copies = [n.copy() for n in nodes]
        for n in copies:
            n.set_equation(n.equation)
        validate_pipeline(copies, order)
        self._nodes: dict[int, FunctionNode] = {n.id: n for n in copies}
        self._order = order
        self._initial_value = float(initial_value)
        self._dispatcher = EventDispatcher(processors, strict=strict_events)
        self._final_output = 0.0
        self._last_result: PipelineResult | None = None
        self._recompute()

    @classmethod
    def from_config(
        cls,
        config: PipelineConfig,
        *,
        processors: list[EventProcessor] | None = None,
    ) -> Pipeline:
        return cls(
            config.build_nodes(),
            config.order,
            initial_value=config.initial_value,
            processors=processors,
        )

    @classmethod
    def seed(cls, *, processors: list[EventProcessor] | None = None) -> Pipeline:
        """The default five-node pipeline with initial value 2."""
        from funcflow.config import PipelineConfig

        return cls.from_config(PipelineConfig(), processors=processors)

    # === Read access ===

    @property
    def order(self) -> ExecutionOrder:
        return self._order

    @property
    def initial_value(self) -> float:
        return self._initial_value

    @property
    def final_output(self) -> float:
        return self._final_output

    @property
    def last_result(self) -> PipelineResult:
        assert self._last_result is not None
        return self._last_result

    @property
    def node_ids(self) -> tuple[int, ...]:
        return tuple(self._nodes)

    def node(self, node_id: int) -> FunctionNode:
        """Copy of one node.

        Raises:
            UnknownNodeError: If no node has this id
        """
        return self._get(node_id).copy()

    def snapshot(self) -> list[FunctionNode]:
        """Copies of all nodes, in seed order, for display."""
        return [n.copy() for n in self._nodes.values()]

    @property
    def entry_node(self) -> FunctionNode | None:
        """The node fed by the initial value, if any."""
        for n in self._nodes.values():
            if n.is_entry:
                return n.copy()
        return None

    @property
    def terminal_node(self) -> FunctionNode | None:
        """The node feeding the final output, if any."""
        for n in self._nodes.values():
            if n.is_terminal:
                return n.copy()
        return None

    def edges(self) -> list[tuple[int, int]]:
        """All links as (source, target) pairs.

        The entry link appears as ``(ENTRY, id)`` and the terminal link as
        ``(id, TERMINAL)``.
        """
        result: list[tuple[int, int]] = []
        for n in self._nodes.values():
            if n.is_entry:
                result.append((ENTRY, n.id))
        for n in self._nodes.values():
            if n.next_link is not None:
                result.append((n.id, n.next_link))
        return result

    @property
    def nx_graph(self) -> nx.DiGraph:
        """NetworkX projection of the node-to-node links (rebuilt on access)."""
        return build_link_graph(self._nodes.values())

    def link_options(self, source_id: int) -> list[LinkOption]:
        """Picker entries for a node's next link, with illegal targets disabled.

        "None" is disabled for the entry node. "Final Output" is listed only
        while no other node already feeds the final output.
        """
        source = self._get(source_id)
        options = [LinkOption("", "None", disabled=source.is_entry)]
        for other in self._nodes:
            if other == source_id:
                continue
            allowed = check_connection(source_id, other, self._nodes, self._order).allowed
            options.append(LinkOption(str(other), f"Function: {other}", disabled=not allowed))
        terminal = self.terminal_node
        if terminal is None or terminal.id == source_id:
            allowed = check_connection(source_id, TERMINAL, self._nodes, self._order).allowed
            options.append(LinkOption(str(TERMINAL), "Final Output", disabled=not allowed))
        return options

    # === Mutations ===

    def set_equation(self, node_id: int, equation: str) -> ValidationResult:
        """Replace a node's equation and re-run the pipeline.

        The text is stored even when invalid; the validation error is kept
        on the node and forces the output to 0 until fixed.

        Raises:
            UnknownNodeError: If no node has this id
        """
        node = self._get(node_id)
        node.set_equation(equation)
        logger.debug("Function %d equation set to %r (error: %s)", node_id, equation, node.equation_error)
        self._dispatcher.emit(
            EquationChangedEvent(node_id=node_id, equation=equation, error=node.equation_error)
        )
        self._recompute()
        return ValidationResult(not node.has_error, node.equation_error)

    def set_next_link(self, source_id: int, selector: str | int | None) -> ConnectionResult:
        """Point a node's output at another node, the final output, or nothing.

        Args:
            source_id: Node whose next link changes
            selector: ``""`` to clear, ``"-1"`` for the final output, or a
                node id as a string

        Returns:
            The connection check result. When it is falsy nothing changed.
        """
        try:
            target = parse_target(selector)
        except ValueError:
            return self._reject(ConnectionResult(source_id, None, RejectionReason.UNKNOWN_NODE))

        if target is None:
            if source_id not in self._nodes:
                return self._reject(ConnectionResult(source_id, None, RejectionReason.UNKNOWN_NODE))
            self._set_link(source_id, None)
            self._recompute()
            return ConnectionResult(source_id, None)

        result = check_connection(source_id, target, self._nodes, self._order)
        if not result:
            return self._reject(result)
        self._set_link(source_id, target)
        self._recompute()
        return result

    def set_initial_value(self, value: float) -> float:
        """Change the value fed to the entry node. Returns the new output."""
        self._initial_value = float(value)
        return self._recompute()

    # === Execution ===

    def run(self, initial_value: float | None = None) -> PipelineResult:
        """Fold a value through the pipeline without touching stored output.

        Args:
            initial_value: Value for the entry node. Defaults to the
                pipeline's own initial value.
        """
        x = self._initial_value if initial_value is None else float(initial_value)
        run_id = _generate_run_id()
        result = self._fold(x, run_id)
        logger.debug("Run %s finished: %s (%s)", run_id, result.status.value, result.value)
        self._dispatcher.emit(
            OutputComputedEvent(
                run_id=run_id,
                initial_value=x,
                status=result.status,
                value=result.value,
                error=result.error,
            )
        )
        return result

    def compute_output(self, initial_value: float | None = None) -> float:
        """Run the pipeline and return the output number.

        Invalid or unevaluable equations give 0. A pipeline with no entry
        node or a chain that never reaches the final output leaves the
        previous output in place; ``last_result.status`` tells these
        cases apart.
        """
        result = self.run(initial_value)
        if result.status.has_output:
            assert result.value is not None
            self._final_output = result.value
        self._last_result = result
        return self._final_output

    def close(self) -> None:
        """Shut down event processors."""
        self._dispatcher.shutdown()

    # === Internals ===

    def _get(self, node_id: int) -> FunctionNode:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise UnknownNodeError(node_id, list(self._nodes)) from None

    def _recompute(self) -> float:
        return self.compute_output()

    def _reject(self, result: ConnectionResult) -> ConnectionResult:
        assert result.reason is not None
        logger.debug(
            "Link %s -> %s refused: %s", result.source_id, result.target, result.reason.value
        )
        self._dispatcher.emit(
            LinkRejectedEvent(source_id=result.source_id, target=result.target, reason=result.reason)
        )
        return result

    def _set_link(self, source_id: int, target: int | None) -> None:
        """The only place link fields are written.

        Updates the source's next_link, the new target's prev_link, and
        clears prev_link on the node the source used to feed.
        """
        source = self._nodes[source_id]
        previous = source.next_link
        old_target = source.next_node_id
        if old_target is not None and old_target != target:
            old_node = self._nodes[old_target]
            if old_node.prev_link == source_id:
                old_node.prev_link = None
        source.next_link = target
        if target is not None and target > 0:
            self._nodes[target].prev_link = source_id
        logger.debug("Link %d: %s -> %s", source_id, previous, target)
        self._dispatcher.emit(LinkChangedEvent(source_id=source_id, target=target, previous=previous))

    def _fold(self, x: float, run_id: str) -> PipelineResult:
        invalid = [n for n in self._nodes.values() if n.has_error]
        if invalid:
            first = invalid[0]
            return PipelineResult(
                OutputStatus.INVALID_EQUATION,
                0.0,
                x,
                error=f"Function {first.id}: {first.equation_error}",
            )

        entry = next((n for n in self._nodes.values() if n.is_entry), None)
        if entry is None:
            return PipelineResult(OutputStatus.NO_ENTRY, None, x, error="No function is fed by the initial value")

        value = x
        steps: list[EvaluationStep] = []
        logger.debug("Starting calculation with initial value: %s", x)
        for node in walk_from(entry.id, self._nodes):
            try:
                output = evaluate_strict(node.equation, value)
            except ExpressionError as e:
                return PipelineResult(
                    OutputStatus.EVALUATION_FAILED,
                    0.0,
                    x,
                    tuple(steps),
                    error=f"Function {node.id}: {e.message}",
                )
            logger.debug("Result after function %d (%s): %s", node.id, node.equation, output)
            steps.append(EvaluationStep(node.id, node.equation, value, output))
            self._dispatcher.emit(
                NodeEvaluatedEvent(
                    run_id=run_id,
                    node_id=node.id,
                    equation=node.equation,
                    input_value=value,
                    output_value=output,
                )
            )
            value = output
            if node.is_terminal:
                return PipelineResult(OutputStatus.COMPUTED, value, x, tuple(steps))

        return PipelineResult(
            OutputStatus.DANGLING,
            None,
            x,
            tuple(steps),
            error="The chain never reaches the final output",
        )

    def __repr__(self) -> str:
        return (
            f"Pipeline(nodes={list(self._nodes)}, initial_value={self._initial_value}, "
            f"final_output={self._final_output})"
        )
