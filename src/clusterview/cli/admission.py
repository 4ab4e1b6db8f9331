"""Admission check CLI commands.

This module provides dry-run checks against a cluster dump:
- relocate check: Would a shard move be admitted?
- bulk check: Which selected indices would a bulk operation affect?

Nothing is sent to a cluster; these commands only report verdicts.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from clusterview.admission import (
    BulkOperation,
    valid_destinations,
    validate_bulk_operation,
    validate_relocation,
)
from clusterview.cli.topology import load_snapshot
from clusterview.types import ClusterTopologySnapshot, ShardRecord

relocate_app = typer.Typer(help="Check shard relocations")
bulk_app = typer.Typer(help="Check bulk index operations")


def find_shard(
    snapshot: ClusterTopologySnapshot,
    index: str,
    shard_id: int,
    primary: bool,
    source: str,
) -> ShardRecord | None:
    """Find a shard copy, preferring the one on the source node."""

    def matches(shard: ShardRecord) -> bool:
        return shard.index == index and shard.shard_id == shard_id and shard.primary == primary

    source_topo = snapshot.find_node(source)
    if source_topo is not None:
        for shard in source_topo.shards_for(index):
            if matches(shard):
                return shard

    return next((s for s in snapshot.all_shards() if matches(s)), None)


@relocate_app.command("check")
def check_relocation(
    path: Path = typer.Argument(..., help="Cluster dump (JSON)"),
    index: str = typer.Option(..., "--index", help="Index name"),
    shard_id: int = typer.Option(..., "--shard", help="Shard number"),
    primary: bool = typer.Option(True, "--primary/--replica", help="Which copy to move"),
    source: str = typer.Option(..., "--from", help="Source node id, name or ip"),
    dest: str = typer.Option(..., "--to", help="Destination node id, name or ip"),
) -> None:
    """Check whether a shard may be relocated. Exits 1 when rejected."""
    console = Console()
    snapshot = load_snapshot(path, console)

    shard = find_shard(snapshot, index, shard_id, primary, source)
    result = validate_relocation(shard, source, dest, snapshot)

    copy = "primary" if primary else "replica"
    if result.approved:
        console.print(f"[green]Approved[/green]: {index}[{shard_id}] {copy} {source} -> {dest}")
        return

    console.print(f"[red]{result}[/red]: {result.reason.description}")
    if shard is not None:
        targets = [topo.name for topo in valid_destinations(shard, snapshot)]
        if targets:
            console.print(f"Valid destinations: {', '.join(targets)}")
    raise typer.Exit(1)


@bulk_app.command("check")
def check_bulk(
    path: Path = typer.Argument(..., help="Cluster dump (JSON)"),
    names: list[str] = typer.Argument(..., help="Index names"),
    operation: BulkOperation = typer.Option(..., "--operation", "-o", help="Bulk operation"),
) -> None:
    """Check which indices a bulk operation would affect. Exits 1 when none would."""
    console = Console()
    snapshot = load_snapshot(path, console)

    result = validate_bulk_operation(operation, names, snapshot.indices)

    table = Table(title=f"{operation.display_name} Indices")
    table.add_column("Index", style="cyan")
    table.add_column("Verdict")
    table.add_column("Reason", style="dim")

    for name in result.approved:
        table.add_row(name, "[green]approved[/green]", "-")
    for name, reason in result.rejected.items():
        table.add_row(name, "[red]rejected[/red]", reason.description)

    console.print(table)
    console.print(result.summary())

    if not result.has_approved:
        raise typer.Exit(1)
