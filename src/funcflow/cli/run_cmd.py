"""CLI commands for running pipelines and checking equations.

Provides `funcflow run`, `funcflow eval` and `funcflow validate` as
top-level commands.
"""

from __future__ import annotations

from typing import Annotated, Any

import typer

from funcflow.cli._format import format_number, print_json, print_lines, print_table
from funcflow.config import load_config

# ---------------------------------------------------------------------------
# Edit parsing
# ---------------------------------------------------------------------------


def _parse_edit(arg: str, flag: str) -> tuple[int, str]:
    """Parse 'ID=VALUE' into (id, value). VALUE may be empty."""
    if "=" not in arg:
        print(f"Error: {flag} expects ID=VALUE, got '{arg}'")
        raise typer.Exit(1)
    raw_id, _, value = arg.partition("=")
    try:
        return int(raw_id), value
    except ValueError:
        print(f"Error: {flag} expects a numeric function id, got '{raw_id}'")
        raise typer.Exit(1) from None


# ---------------------------------------------------------------------------
# Output formatting
# ---------------------------------------------------------------------------


def _result_to_dict(pipeline, result, rejected: list[dict[str, Any]]) -> dict[str, Any]:
    """Convert a PipelineResult to a JSON-friendly dict."""
    data: dict[str, Any] = {
        "status": result.status.value,
        "initial_value": result.initial_value,
        "value": result.value,
        "final_output": pipeline.final_output,
        "steps": [
            {
                "function": step.node_id,
                "equation": step.equation,
                "input": step.input_value,
                "output": step.output_value,
            }
            for step in result.steps
        ],
        "errors": {
            str(n.id): n.equation_error for n in pipeline.snapshot() if n.has_error
        },
    }
    if result.error:
        data["error"] = result.error
    if rejected:
        data["rejected_links"] = rejected
    return data


def _print_result(pipeline, result) -> None:
    print(f"\nPipeline: {len(pipeline.node_ids)} functions | initial value {format_number(result.initial_value)}\n")

    headers = ["Function", "Equation", "Input", "Output"]
    rows = [
        [f"f{s.node_id}", s.equation, format_number(s.input_value), format_number(s.output_value)]
        for s in result.steps
    ]
    print_lines(print_table(headers, rows))

    for n in pipeline.snapshot():
        if n.has_error:
            print(f"  f{n.id}: {n.equation!r} — {n.equation_error}")

    print(f"\nStatus: {result.status.value}")
    if result.error:
        print(f"Detail: {result.error}")
    print(f"Final output: {format_number(pipeline.final_output)}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def register_commands(app: typer.Typer) -> None:
    """Register `run`, `eval` and `validate` as top-level commands on the app."""

    @app.command("run")
    def run_cmd(
        initial: Annotated[float | None, typer.Option("--initial", "-x", help="Initial value of x")] = None,
        equation: Annotated[
            list[str] | None, typer.Option("--equation", "-e", help="Set an equation: ID=EXPR (repeatable)")
        ] = None,
        link: Annotated[
            list[str] | None,
            typer.Option("--link", "-l", help="Set a next link: ID=TARGET, TARGET an id, -1 or empty (repeatable)"),
        ] = None,
        trace: Annotated[bool, typer.Option("--trace", help="Print each step as it runs")] = False,
        as_json: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
        output: Annotated[str | None, typer.Option("--output", help="Write JSON to file")] = None,
    ):
        """Run the configured pipeline, optionally after editing it."""
        from funcflow.exceptions import UnknownNodeError
        from funcflow.graph import Pipeline

        config = load_config()
        processors = []
        if trace:
            from funcflow.events.rich_trace import RichTraceProcessor

            processors.append(RichTraceProcessor(show_edits=True))
        pipeline = Pipeline.from_config(config, processors=processors)

        for arg in equation or []:
            node_id, text = _parse_edit(arg, "--equation")
            try:
                pipeline.set_equation(node_id, text)
            except UnknownNodeError as e:
                print(f"Error: {e}")
                raise typer.Exit(1) from None

        rejected: list[dict[str, Any]] = []
        for arg in link or []:
            node_id, selector = _parse_edit(arg, "--link")
            result = pipeline.set_next_link(node_id, selector)
            if not result:
                rejected.append({"source": node_id, "target": selector, "reason": result.reason.value})
                if not as_json:
                    print(f"Link f{node_id} -> {selector or 'None'} refused: {result.reason.value}")

        if initial is not None:
            pipeline.set_initial_value(initial)

        result = pipeline.last_result
        pipeline.close()

        if as_json:
            print_json("run", _result_to_dict(pipeline, result, rejected), output)
            return
        _print_result(pipeline, result)

    @app.command("eval")
    def eval_cmd(
        expression: Annotated[str, typer.Argument(help="Equation in x, e.g. '2x+4'")],
        x: Annotated[float, typer.Argument(help="Value of x")],
    ):
        """Evaluate one equation for a value of x."""
        from funcflow.exceptions import ExpressionError
        from funcflow.expression import evaluate_strict

        try:
            value = evaluate_strict(expression, x)
        except ExpressionError as e:
            print(f"Error: {e.message}")
            raise typer.Exit(1) from None
        print(format_number(value))

    @app.command("validate")
    def validate_cmd(
        expression: Annotated[str, typer.Argument(help="Equation in x, e.g. '2x+4'")],
        as_json: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
    ):
        """Check an equation the way the editor does."""
        from funcflow.expression import validate

        result = validate(expression)
        if as_json:
            print_json("validate", {"equation": expression, "valid": result.is_valid, "error": result.error})
        elif result:
            print("valid")
        else:
            print(f"invalid: {result.error}")
        if not result:
            raise typer.Exit(1)
