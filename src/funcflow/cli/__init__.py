"""Funcflow CLI: run and inspect function pipelines.

Entry point for the `funcflow` command. Requires ``pip install funcflow[cli]``.

Commands:
    run         Run the configured pipeline, optionally after edits
    eval        Evaluate one equation for a value of x
    validate    Check an equation the way the editor does
    inspect     Show nodes, links and execution order
    mermaid     Print the pipeline as a Mermaid flowchart
    paths       Print connector paths for a single-row layout
    path        Print the SVG path between two points
"""

from __future__ import annotations


def _require_typer():
    """Check that typer is available."""
    try:
        import typer  # noqa: F401
    except ImportError:
        import sys

        print("Error: typer is required for the CLI. Install with: pip install funcflow[cli]", file=sys.stderr)
        raise SystemExit(1) from None


def create_app():
    """Create the Typer app with all commands."""
    _require_typer()

    import typer

    from funcflow.cli import graph_cmd, run_cmd

    app = typer.Typer(
        name="funcflow",
        help="Single-variable function pipeline CLI.",
        no_args_is_help=True,
    )
    run_cmd.register_commands(app)
    graph_cmd.register_commands(app)

    return app


def main():
    """CLI entry point."""
    app = create_app()
    app()
