"""Command-line interface for testdispatch."""

import json
import sys
from pathlib import Path
from typing import Any, Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from testdispatch import __version__
from testdispatch.config import DispatchConfig, create_example_config
from testdispatch.core.options import FilterSpec


console = Console()


def print_banner() -> None:
    """Print the testdispatch banner."""
    console.print(
        Panel.fit(
            "[bold blue]testdispatch[/bold blue] - test orchestration",
            subtitle=f"v{__version__}",
        )
    )


def parse_filter(value: str) -> FilterSpec:
    """Parse ``name`` or ``name:key=value,key=value`` into a FilterSpec.

    Values are decoded as JSON when possible, so ``count=3`` gives an int.
    """
    name, _, raw = value.partition(":")
    options: dict[str, Any] = {}

    for pair in filter(None, raw.split(",")):
        key, sep, text = pair.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"Expected key=value, got '{pair}'", param_hint="--filter")
        try:
            options[key.strip()] = json.loads(text)
        except json.JSONDecodeError:
            options[key.strip()] = text

    if not name.strip():
        raise click.BadParameter("Filter name cannot be empty", param_hint="--filter")
    return FilterSpec(name=name.strip(), apply=options)


def _load_config(config_path: Optional[str]) -> DispatchConfig:
    try:
        if config_path:
            return DispatchConfig.from_file(config_path)
        return DispatchConfig.find_and_load()
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        console.print("Run [bold]testdispatch init[/bold] to create a configuration file")
        sys.exit(1)
    except ValidationError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        sys.exit(1)


def _build_dispatcher(config: DispatchConfig, base_dir: Path):
    from testdispatch.core.discovery import PytestDiscovery
    from testdispatch.core.dispatcher import Dispatcher, DispatcherConfig
    from testdispatch.core.executor import CommandExecutor

    paths = config.get_absolute_paths(base_dir)

    discovery = PytestDiscovery(
        path=config.discovery.path,
        base_dir=paths["base_dir"],
        timeout_seconds=config.discovery.timeout_seconds,
    )
    executor = CommandExecutor(
        command=config.execution.command,
        working_directory=paths["working_directory"],
        timeout_seconds=config.execution.timeout_seconds,
        environment=config.execution.environment,
    )
    return Dispatcher(DispatcherConfig(executor=executor, discovery=discovery))


@click.group()
@click.version_option(version=__version__, prog_name="testdispatch")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=False),
    help="Path to configuration file (default: testdispatch.json)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def main(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """testdispatch - run test cases and groups through filter pipelines."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_path"] = config

    if verbose:
        from testdispatch.logging import enable_debug_logging

        enable_debug_logging()


@main.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="testdispatch.json",
    help="Output path for configuration file",
)
@click.option("--force", "-f", is_flag=True, help="Overwrite existing configuration")
def init(output: str, force: bool) -> None:
    """Initialize a new testdispatch configuration file."""
    print_banner()

    output_path = Path(output)
    if output_path.exists() and not force:
        console.print(f"[yellow]Configuration file already exists:[/yellow] {output_path}")
        console.print("Use --force to overwrite")
        sys.exit(1)

    create_example_config(output_path)
    console.print(f"[green]Created configuration file:[/green] {output_path}")
    console.print("\nNext steps:")
    console.print("  1. Edit the configuration file for your project")
    console.print("  2. Run [bold]testdispatch menu[/bold] to list the available tests")
    console.print("  3. Run [bold]testdispatch run --group tests[/bold] to execute them")


@main.command()
@click.option("--case", "case", help="Fully-qualified case to run")
@click.option("--group", "groups", multiple=True, help="Fully-qualified group to run (repeatable)")
@click.option(
    "--filter",
    "filters",
    multiple=True,
    help="Filter to apply after the configured ones: NAME or NAME:key=value,... (repeatable)",
)
@click.option("--json", "as_json", is_flag=True, help="Print the raw dispatch result as JSON")
@click.pass_context
def run(
    ctx: click.Context,
    case: Optional[str],
    groups: tuple[str, ...],
    filters: tuple[str, ...],
    as_json: bool,
) -> None:
    """Run a case or groups of cases."""
    from testdispatch.core.errors import FilterApplyError, ResolutionError

    config_path = ctx.obj.get("config_path")
    config = _load_config(config_path)

    if not as_json:
        print_banner()
        console.print(f"[dim]Loaded config for project:[/dim] {config.project.name}")

    base_dir = Path(config_path).parent if config_path else Path.cwd()
    dispatcher = _build_dispatcher(config, base_dir)

    specs = list(config.filters) + [parse_filter(value) for value in filters]

    try:
        result = dispatcher.run(
            options={
                "case": case,
                "group": list(groups),
                "filters": specs,
                "path": config.discovery.path,
            }
        )
    except (ResolutionError, FilterApplyError) as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(2)

    if result is None:
        console.print("[yellow]Nothing to run.[/yellow] Pass --case or --group")
        return

    stats = dispatcher.process(result.results)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        _display_stats(result.title, stats)
        _display_filters(result.to_dict()["filters"])

    if not stats.success:
        sys.exit(1)


@main.command()
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["html", "text"]),
    default=None,
    help="Menu format (default: from configuration)",
)
@click.pass_context
def menu(ctx: click.Context, fmt: Optional[str]) -> None:
    """Print the menu of discovered tests."""
    config_path = ctx.obj.get("config_path")
    config = _load_config(config_path)

    base_dir = Path(config_path).parent if config_path else Path.cwd()
    dispatcher = _build_dispatcher(config, base_dir)

    rendered = dispatcher.menu(fmt or config.menu.format)
    if not rendered:
        console.print("[yellow]No tests found[/yellow]")
        return

    click.echo(rendered)


def _display_stats(title: str, stats) -> None:
    """Display a summary of the run statistics."""
    console.print("\n" + "=" * 50)
    console.print(f"[bold]{title}[/bold]")
    console.print("=" * 50)

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Assertions", str(stats.asserts))
    table.add_row("Passes", f"[green]{len(stats.passes)}[/green]")
    table.add_row("Fails", f"[red]{len(stats.fails)}[/red]")
    table.add_row("Exceptions", f"[red]{len(stats.exceptions)}[/red]")

    if stats.asserts > 0:
        pass_rate = (len(stats.passes) / stats.asserts) * 100
        table.add_row("Pass Rate", f"{pass_rate:.1f}%")

    console.print(table)

    if stats.errors:
        console.print("\n[red]Some tests failed![/red]")
        for error in stats.errors[:10]:  # Show first 10
            label = error.get("case") or error.get("file") or "Unknown"
            console.print(f"  [red]✗[/red] {label} ({error.get('kind')})")
        if len(stats.errors) > 10:
            console.print(f"  ... and {len(stats.errors) - 10} more")
    else:
        console.print("\n[green]All tests passed![/green]")


def _display_filters(analyses: dict) -> None:
    """Display each filter's analysis."""
    for name, analysis in analyses.items():
        if analysis is None:
            continue
        console.print(f"\n[bold]Filter:[/bold] {name}")
        console.print_json(json.dumps(analysis, default=str))


if __name__ == "__main__":
    main()
