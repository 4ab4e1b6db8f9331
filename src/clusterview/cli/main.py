"""clusterview CLI - cluster topology and admission checks."""

import logging

import typer

from clusterview.cli.admission import bulk_app, relocate_app
from clusterview.cli.refresh import refresh_app
from clusterview.cli.topology import topology_app
from clusterview.config import load_settings

app = typer.Typer(
    name="clusterview",
    help="Cluster topology, relocation and bulk operation checks",
    no_args_is_help=True,
)

# Add command groups
app.add_typer(topology_app, name="topology")
app.add_typer(relocate_app, name="relocate")
app.add_typer(bulk_app, name="bulk")
app.add_typer(refresh_app, name="refresh")


@app.callback()
def configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging for all commands."""
    level = "DEBUG" if verbose else load_settings().log_level
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
