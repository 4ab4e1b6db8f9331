"""Topology CLI commands.

This module provides CLI commands for inspecting a cluster dump:
- show: Display nodes, shard placement and indices in table format

Cluster dumps are flat JSON payloads with "nodes", "shards" and
"indices" lists, as returned by the management backend.
"""

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from clusterview.errors import ClusterDataShapeError
from clusterview.fetch import parse_cluster_payload
from clusterview.topology import build_topology, compute_shard_stats, sort_nodes_master_first
from clusterview.types import ClusterTopologySnapshot

topology_app = typer.Typer(help="Inspect cluster topology")


def _format_bytes(size: int) -> str:
    """Format a byte count with a binary unit."""
    value = float(size)
    for unit in ("B", "KiB", "MiB", "GiB", "TiB"):
        if value < 1024 or unit == "TiB":
            return f"{value:.0f}{unit}" if unit == "B" else f"{value:.1f}{unit}"
        value /= 1024
    return f"{size}B"


def load_snapshot(path: Path, console: Console) -> ClusterTopologySnapshot:
    """
    Load a cluster dump and aggregate it.

    Prints the error and exits with status 1 if the file cannot be read
    or does not match the payload schema.
    """
    try:
        raw = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Cannot read {path}: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    try:
        data = parse_cluster_payload(raw)
    except ClusterDataShapeError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    return build_topology(data.nodes, data.shards, data.indices)


@topology_app.command("show")
def show_topology(
    path: Path = typer.Argument(..., help="Cluster dump (JSON)"),
) -> None:
    """Show nodes, shard placement and indices."""
    console = Console()
    snapshot = load_snapshot(path, console)

    nodes = Table(title="Nodes")
    nodes.add_column("Name", style="cyan")
    nodes.add_column("ID", style="dim")
    nodes.add_column("Roles")
    nodes.add_column("Heap", justify="right")
    nodes.add_column("Disk", justify="right")
    nodes.add_column("Shards", justify="right")

    for topo in sort_nodes_master_first(snapshot.nodes):
        node = topo.node
        name = f"{node.name} *" if node.is_master else node.name
        nodes.add_row(
            name,
            node.id,
            ",".join(sorted(role.value for role in node.roles)) or "-",
            f"{node.heap_percent:.0f}%",
            f"{node.disk_percent:.0f}%",
            str(topo.shard_count),
        )
    console.print(nodes)

    indices = Table(title="Indices")
    indices.add_column("Name", style="cyan")
    indices.add_column("Health")
    indices.add_column("Status")
    indices.add_column("Shards", justify="right")
    indices.add_column("Docs", justify="right")
    indices.add_column("Size", justify="right")

    health_styles = {"green": "green", "yellow": "yellow", "red": "red"}
    for index in snapshot.indices:
        style = health_styles.get(index.health, "white")
        indices.add_row(
            index.name,
            f"[{style}]{index.health}[/{style}]",
            index.status.value,
            f"{index.primary_shard_count}p/{index.replica_shard_count}r",
            str(index.docs_count),
            _format_bytes(index.store_size_bytes),
        )
    console.print(indices)

    stats = compute_shard_stats(snapshot)
    console.print(
        f"Shards: {stats.total} total, {stats.primary} primary, {stats.replica} replica, "
        f"{stats.unassigned} unassigned, {stats.relocating} relocating, "
        f"{stats.initializing} initializing"
    )
    unknown = snapshot.unknown_node.shard_count
    if unknown:
        console.print(f"[yellow]{unknown} shard(s) reference unknown nodes[/yellow]")
