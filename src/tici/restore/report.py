"""Rich rendering for snapshots and restore results."""

from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from ..snapshot.models import TopologySnapshot
from .restorer import RestoreResult


def snapshot_tree(snapshot: TopologySnapshot) -> Tree:
    """Build a tree view: session → windows → panes."""
    session = snapshot.session
    tree = Tree(
        Text.assemble(
            ("Session ", "bold"),
            (session.name, "bold cyan"),
            f"  {snapshot.directory}  ",
            (snapshot.captured_at.isoformat(timespec="seconds"), "dim"),
        )
    )
    for window in session.windows:
        label = Text.assemble(("Window ", "bold"), f"{window.index} ({window.name})")
        if session.is_active_window(window):
            label.append(" [active]", style="green")
        branch = tree.add(label)
        if window.layout:
            branch.add(Text(f"layout {window.layout}", style="dim"))
        for pane in window.panes:
            line = Text(f"Pane {pane.index}")
            if window.is_active_pane(pane):
                line.append(" [active]", style="green")
            line.append(f"  {pane.directory}")
            if pane.command:
                line.append(f"  $ {pane.command}", style="yellow")
            g = pane.geometry
            line.append(f"  {g.width:.0%}x{g.height:.0%} at ({g.left:.0%}, {g.top:.0%})", style="dim")
            branch.add(line)
    return tree


def render_snapshot(snapshot: TopologySnapshot, console: Console) -> None:
    console.print(snapshot_tree(snapshot))


def render_report(result: RestoreResult, console: Console) -> None:
    """Print the planned actions of a dry run."""
    console.print(Text("Dry run, no changes made:", style="bold"))
    for line in result.report:
        console.print(Text(line))


def summary_table(result: RestoreResult) -> Table:
    table = Table(title=f"Restore {result.session_name}: {result.state.value}")
    table.add_column("Window", justify="right")
    table.add_column("Name")
    table.add_column("Status")
    table.add_column("Details")
    for outcome in result.outcomes:
        status = Text("ok", style="green") if outcome.ok else Text("failed", style="bold red")
        details = outcome.error or "; ".join(outcome.warnings)
        table.add_row(str(outcome.index), Text(outcome.name), status, Text(details))
    return table


def render_summary(result: RestoreResult, console: Console) -> None:
    console.print(summary_table(result))
