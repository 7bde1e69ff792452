"""Policy graph CLI for checking and converting exported policies.

Provides command-line access to export validation and DOT conversion of
JSON policy files.
"""

import logging
import sys
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from policygraph.config import get_settings
from policygraph.editor import PolicyEditor
from policygraph.exceptions import ExportValidationError, ParseError
from policygraph.logging_setup import configure_logging
from policygraph.models import NodeType

logger = logging.getLogger(__name__)

console = Console()


def print_error(text: str) -> None:
    """Print error message."""
    console.print(f"[red]Error: {text}[/red]")


def load_editor(path: str) -> PolicyEditor:
    """Load a JSON policy file into a fresh editor, exiting on parse errors."""
    with open(path, encoding="utf-8") as f:
        text = f.read()
    editor = PolicyEditor()
    try:
        editor.import_json(text)
    except ParseError as e:
        print_error(escape(f"{path}: {e}"))
        sys.exit(2)
    return editor


@click.group()
@click.option("--log-level", default=None, help="Override the log level")
def cli(log_level: Optional[str]):
    """Policy graph CLI for validating and exporting policies."""
    settings = get_settings()
    if log_level:
        settings = settings.model_copy(update={"log_level": log_level})
    configure_logging(settings)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--single-root", is_flag=True, help="Also require exactly one root node"
)
def validate(path: str, single_root: bool):
    """Check that every non-leaf node can reach a leaf."""
    editor = load_editor(path)
    bad = editor.validate_graph_for_export()
    roots = editor.find_roots()

    if bad:
        table = Table(title="Incomplete Nodes")
        table.add_column("Node", style="cyan")
        table.add_column("Label", style="white")
        table.add_column("Type", style="blue")
        table.add_column("Problem", style="yellow")
        for node_id in bad:
            node = editor.graph.get_node(node_id)
            problem = (
                "no outgoing edges"
                if not editor.graph.outgoing(node_id)
                else "cannot reach a leaf"
            )
            table.add_row(
                escape(node_id),
                escape(node.label) if node else "",
                node.type.value if node and node.type else "",
                problem,
            )
        console.print(table)
    else:
        console.print("[green]Every non-leaf node reaches a leaf.[/green]")

    style = "green" if len(roots) == 1 else "yellow"
    listed = escape(", ".join(roots)) or "-"
    console.print(f"Roots ({len(roots)}): [{style}]{listed}[/{style}]")

    if bad or (single_root and len(roots) != 1):
        sys.exit(1)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def roots(path: str):
    """List nodes with no incoming edges."""
    editor = load_editor(path)
    for node_id in editor.find_roots():
        click.echo(node_id)


@cli.command("export-dot")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-o", "--output", type=click.Path(dir_okay=False), help="Write to this file"
)
def export_dot_command(path: str, output: Optional[str]):
    """Convert a JSON policy to DOT after export validation."""
    editor = load_editor(path)
    try:
        text = editor.request_export_dot()
    except ExportValidationError as e:
        title = "Root Check Failed" if e.reason == "roots" else "Incomplete Graph"
        message = f"[bold]{escape(str(e))}[/bold]"
        console.print(Panel(message, title=title, border_style="red"))
        sys.exit(1)

    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text)
        console.print(f"[green]Wrote {output}[/green]")
    else:
        click.echo(text, nl=False)


@cli.command("format")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def format_command(path: str):
    """Re-emit a JSON policy in canonical form."""
    editor = load_editor(path)
    leaves = sum(1 for n in editor.nodes if n.type == NodeType.LEAF)
    logger.debug(f"Formatting {path}: nodes={len(editor.nodes)}, leaves={leaves}")
    click.echo(editor.export_json(), nl=False)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
