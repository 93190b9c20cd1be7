"""
Command-line interface for Guest Inventory.

Provides commands for gathering the instance inventory and writing it to
guest attributes.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from guest_inventory import __version__, core, tasker
from guest_inventory.attributes import DryRunSink, GuestAttributesClient
from guest_inventory.config import Config
from guest_inventory.inventory import FieldKind, InstanceInventory, build_inventory

console = Console()


def setup_logging(level: str, log_file: str | None = None) -> None:
    """Configure logging with rich handler."""
    handlers: list[logging.Handler] = [RichHandler(console=console, rich_tracebacks=True)]
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,
    )


@click.group()
@click.version_option(version=__version__, prog_name="guest-inventory")
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "-V",
    "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
@click.pass_context
def main(ctx: click.Context, config: Path | None, verbose: bool) -> None:
    """
    Guest Inventory - Instance inventory reporting for Linux.

    Gather the instance inventory and write it to guest attributes.
    """
    ctx.ensure_object(dict)

    ctx.obj["config"] = Config.load(config) if config else Config.load()

    log_level = "DEBUG" if verbose else ctx.obj["config"].log_level
    setup_logging(log_level, ctx.obj["config"].log_file)
    ctx.obj["verbose"] = verbose


@main.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Write the inventory as JSON to a file",
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["json", "pretty"]),
    default="pretty",
    help="Output format",
)
def collect(output: Path | None, format: str) -> None:
    """
    Gather the instance inventory without writing it.
    """
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Gathering instance inventory...", total=None)
        inventory = build_inventory()
        progress.update(task, completed=True)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(inventory.to_dict(), indent=2))
        console.print(f"[dim]Inventory saved to: {output}[/]")
    elif format == "json":
        console.print_json(json.dumps(inventory.to_dict()))
    else:
        _display_inventory(inventory)


def _display_inventory(inventory: InstanceInventory) -> None:
    """Display a table of inventory fields."""
    table = Table(title="Instance Inventory", show_header=True)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    for inventory_field, value in inventory.fields():
        if inventory_field.kind is FieldKind.COMPOSITE:
            groups = ", ".join(f"{k}: {len(v)}" for k, v in value.to_dict().items())
            shown = f"{value.count()} packages ({groups})" if groups else "[dim]none[/]"
        else:
            shown = value or "[dim]unknown[/]"
        table.add_row(inventory_field.name, shown)

    console.print(table)


@main.command()
@click.option(
    "--dry-run",
    is_flag=True,
    help="Log the writes instead of sending them",
)
@click.pass_context
def publish(ctx: click.Context, dry_run: bool) -> None:
    """
    Gather the instance inventory and write it to guest attributes.

    The cycle runs on the background task queue; results are reported in
    the log output.
    """
    config: Config = ctx.obj["config"]

    console.print(
        Panel.fit(
            f"[bold blue]Guest Inventory v{__version__}[/]\nWriting to {config.inventory_url}",
            border_style="blue",
        )
    )

    core.run(config, sink=DryRunSink() if dry_run else None)
    tasker.close(wait=True)


@main.command("version", short_help="Display version information")
def version() -> None:
    """Display version information for Guest Inventory."""
    console.print()
    console.print(
        Panel.fit(
            f"[bold blue]Guest Inventory[/]\nVersion: [cyan]{__version__}[/]",
            border_style="blue",
            title="Version Information",
        )
    )

    table = Table(show_header=False, box=None)
    table.add_column("Component", style="dim", width=20)
    table.add_column("Version", style="cyan")

    table.add_row("Guest Inventory", __version__)
    table.add_row("Python", sys.version.split()[0])

    console.print(table)
    console.print()


@main.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show current configuration and metadata server status."""
    config: Config = ctx.obj["config"]

    console.print()
    console.print(Panel.fit("[bold]Guest Inventory Status[/]", border_style="blue"))

    table = Table(show_header=False, box=None)
    table.add_column("Setting", style="dim")
    table.add_column("Value")

    table.add_row("Attributes URL", config.attributes_url)
    table.add_row("Inventory Key", config.inventory_url)
    table.add_row("Timeout", f"{config.attributes_timeout}s")
    table.add_row("Log Level", config.log_level)
    table.add_row("Log File", config.log_file or "[dim]Not set[/]")

    console.print(table)
    console.print()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Testing connection...", total=None)
        connected = GuestAttributesClient(config).test_connection()
        progress.update(task, completed=True)

    if connected:
        console.print("[green]✓ Metadata server is reachable[/]")
    else:
        console.print("[red]✗ Metadata server is not reachable[/]")


@main.command()
@click.argument("output_path", type=click.Path(path_type=Path))
def init_config(output_path: Path) -> None:
    """
    Generate a sample configuration file.

    Creates a YAML configuration file with all available options
    and helpful comments.
    """
    sample_config = """# Guest Inventory Configuration

# Guest attributes endpoint
attributes:
  # Root URL; fields are written under <url>/guestInventory/<Field>
  url: http://metadata.google.internal/computeMetadata/v1/instance/guest-attributes

  # Per-write request timeout in seconds
  timeout: 10

# Logging
log:
  # Log level: DEBUG, INFO, WARNING, ERROR
  level: INFO

  # Log file path (null = console only)
  file: null
"""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(sample_config)
    console.print(f"[green]✓ Configuration file created: {output_path}[/]")
    console.print()
    console.print("Next steps:")
    console.print("  1. Review the configuration file")
    console.print("  2. Preview the writes: [cyan]guest-inventory publish --dry-run[/]")
    console.print("  3. Publish: [cyan]guest-inventory publish[/]")


if __name__ == "__main__":
    main()
