"""Pipeline structure CLI commands: inspect, mermaid, paths, path."""

from __future__ import annotations

from typing import Annotated

import typer

from funcflow.cli._format import format_link, format_number, print_json, print_lines, print_table
from funcflow.config import load_config


def _load_pipeline():
    from funcflow.graph import Pipeline

    return Pipeline.from_config(load_config())


def register_commands(app: typer.Typer) -> None:
    """Register structure commands as top-level commands on the app."""

    @app.command("inspect")
    def inspect_cmd(
        as_json: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
        output: Annotated[str | None, typer.Option("--output", help="Write JSON to file")] = None,
    ):
        """Show the configured pipeline (nodes, links, execution order)."""
        pipeline = _load_pipeline()
        nodes = pipeline.snapshot()

        if as_json:
            data = {
                "initial_value": pipeline.initial_value,
                "final_output": pipeline.final_output,
                "status": pipeline.last_result.status.value,
                "order": {str(k): v for k, v in pipeline.order.successors.items()},
                "nodes": [
                    {
                        "id": n.id,
                        "equation": n.equation,
                        "error": n.equation_error,
                        "prev": n.prev_link,
                        "next": n.next_link,
                    }
                    for n in nodes
                ],
            }
            print_json("inspect", data, output)
            return

        edge_count = len(pipeline.edges())
        print(f"\nPipeline | {len(nodes)} functions | {edge_count} links\n")

        headers = ["Function", "Equation", "Prev", "Next", "Allowed next", "Error"]
        rows = []
        for n in nodes:
            allowed = pipeline.order.allowed_next(n.id)
            rows.append(
                [
                    f"f{n.id}",
                    n.equation,
                    format_link(n.prev_link),
                    format_link(n.next_link),
                    format_link(allowed),
                    n.equation_error or "—",
                ]
            )
        print_lines(print_table(headers, rows))

        entry = pipeline.entry_node
        if entry is not None:
            chain = " -> ".join(f"f{i}" for i in pipeline.order.chain(entry.id))
            print(f"\n  Execution order: {chain} -> output")
        print(f"  Initial value: {format_number(pipeline.initial_value)}")
        print(f"  Final output: {format_number(pipeline.final_output)} ({pipeline.last_result.status.value})")

    @app.command("mermaid")
    def mermaid_cmd(
        direction: Annotated[str, typer.Option("--direction", help="TD, TB, BT, LR or RL")] = "LR",
    ):
        """Print the pipeline as a Mermaid flowchart."""
        from funcflow.viz.mermaid import to_mermaid

        try:
            diagram = to_mermaid(_load_pipeline(), direction=direction)
        except ValueError as e:
            print(f"Error: {e}")
            raise typer.Exit(1) from None
        print(diagram)

    @app.command("paths")
    def paths_cmd(
        as_json: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
    ):
        """Print connector paths for the pipeline laid out in a single row."""
        from funcflow.viz.connectors import box_lookup, render_paths, row_layout

        config = load_config()
        pipeline = _load_pipeline()
        lookup = box_lookup(row_layout(pipeline))
        paths = render_paths(
            pipeline,
            lookup,
            alignment_threshold=config.alignment_threshold,
            curvature=config.curvature,
        )

        if as_json:
            data = [
                {"source": conn.source, "target": conn.target, "kind": path.kind.value, "d": path.to_svg()}
                for conn, path in paths
            ]
            print_json("paths", data)
            return

        headers = ["Source", "Target", "Kind", "Path"]
        rows = [[str(c.source), str(c.target), p.kind.value, p.to_svg()] for c, p in paths]
        print_lines(print_table(headers, rows))

    @app.command("path")
    def path_cmd(
        sx: Annotated[float, typer.Argument(help="Start x")],
        sy: Annotated[float, typer.Argument(help="Start y")],
        ex: Annotated[float, typer.Argument(help="End x")],
        ey: Annotated[float, typer.Argument(help="End y")],
        terminal: Annotated[bool, typer.Option("--terminal", help="Straight terminal connector")] = False,
    ):
        """Print the SVG path between two points."""
        from funcflow.viz.geometry import build_path

        config = load_config()
        path = build_path(
            (sx, sy),
            (ex, ey),
            terminal,
            alignment_threshold=config.alignment_threshold,
            curvature=config.curvature,
        )
        print(path.to_svg())
