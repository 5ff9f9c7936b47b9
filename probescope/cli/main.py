"""
ProbeScope CLI - Command Line Interface
"""

import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from probescope.cli.completions import (
    CompleteKind,
    CompletionRequest,
    ShellKind,
    generate_completion,
    get_invocation_name,
)
from probescope.core.chips import ChipCatalog, ChipVariant
from probescope.core.config import ConfigManager, get_config
from probescope.core.errors import ConfigError, ProbescopeError
from probescope.core.logging_setup import setup_logging
from probescope.core.probes import ProbeDescriptor, ProbeSelector, find_probe, list_all


app = typer.Typer(
    name="probescope",
    help="ProbeScope - debug probe and target chip utility",
    add_completion=False,
    no_args_is_help=True
)

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)


class WireProtocol(str, Enum):
    """Debug wire protocols."""
    SWD = "swd"
    JTAG = "jtag"


def fail(message: str) -> None:
    """Print an error on stderr and exit with status 1."""
    err_console.print(f"[red]Error:[/red] {escape(message)}")
    raise typer.Exit(1)


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", metavar="LEVEL",
        help="Log level: DEBUG, INFO, WARNING, ERROR (overrides config)"
    ),
):
    """ProbeScope - debug probe and target chip utility."""
    try:
        advanced = get_config().advanced
    except ConfigError as e:
        fail(str(e))
    setup_logging(log_level or advanced.log_level, advanced.log_file)


def _select_probe(selector: Optional[str]) -> ProbeDescriptor:
    """Resolve ``--probe``, or the only attached probe when it is omitted."""
    if selector:
        probe = find_probe(ProbeSelector.parse(selector))
        if probe is None:
            fail(f"No attached probe matches '{selector}'")
        return probe

    attached = list_all()
    if not attached:
        fail("No debug probe found")
    if len(attached) > 1:
        choices = ", ".join(p.selector for p in attached)
        fail(f"Several probes attached ({choices}); select one with --probe")
    return attached[0]


def _select_chip(name: str) -> ChipVariant:
    variant = ChipCatalog.from_config().find_variant(name)
    if variant is None:
        fail(f"Unknown chip '{name}'. Run 'probescope chips' to list known chips")
    return variant


@app.command(name="list")
def list_probes_cmd():
    """List the debug probes attached to this host."""
    try:
        attached = list_all()
    except ProbescopeError as e:
        fail(str(e))

    if not attached:
        console.print("[yellow]No debug probes found[/yellow]")
        return

    table = Table(title="Debug Probes", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim")
    table.add_column("Probe", style="cyan")
    table.add_column("Type", style="white")
    table.add_column("Selector", style="green")
    table.add_column("Port", style="dim")

    for index, probe in enumerate(attached):
        table.add_row(
            str(index),
            probe.identifier,
            probe.probe_type.name,
            probe.selector,
            probe.device or "",
        )

    console.print(table)


@app.command(name="chips")
def list_chips_cmd(
    family: Optional[str] = typer.Option(None, "--family", "-f", help="Only show families whose name contains this text"),
):
    """List the chip families and variants known to ProbeScope."""
    try:
        families = ChipCatalog.from_config().families()
    except ProbescopeError as e:
        fail(str(e))

    if family:
        families = [f for f in families if family.lower() in f.name.lower()]
    if not families:
        console.print("[yellow]No matching chip families[/yellow]")
        return

    for chip_family in families:
        table = Table(title=chip_family.name, show_header=True, header_style="bold cyan")
        table.add_column("Variant", style="cyan")
        table.add_column("Core", style="white")
        table.add_column("Flash (KiB)", justify="right")
        table.add_column("RAM (KiB)", justify="right")
        for variant in chip_family.variants:
            table.add_row(
                variant.name,
                variant.core or "-",
                str(variant.flash_kb) if variant.flash_kb is not None else "-",
                str(variant.ram_kb) if variant.ram_kb is not None else "-",
            )
        console.print(table)


@app.command(name="info")
def info_cmd(
    chip: Optional[str] = typer.Option(None, "--chip", metavar="CHIP", help="Target chip name"),
    probe: Optional[str] = typer.Option(None, "--probe", metavar="PROBE_SELECTOR", help="Probe to use, as VID:PID[:SERIAL]"),
    speed: Optional[int] = typer.Option(None, "--speed", metavar="KHZ", help="Protocol speed in kHz"),
    protocol: WireProtocol = typer.Option(WireProtocol.SWD, "--protocol", help="Debug wire protocol"),
):
    """Show the selected debug probe and target chip."""
    try:
        selected = _select_probe(probe)
        variant = _select_chip(chip) if chip else None
    except ProbescopeError as e:
        fail(str(e))

    lines = [
        f"[bold]Probe:[/bold] {selected.identifier} ({selected.probe_type.name})",
        f"[bold]Selector:[/bold] {selected.selector}",
        f"[bold]Port:[/bold] {selected.device or '-'}",
        f"[bold]Protocol:[/bold] {protocol.value.upper()}"
        + (f" @ {speed} kHz" if speed else ""),
    ]
    if variant is not None:
        lines.extend([
            f"[bold]Chip:[/bold] {variant.name}",
            f"[bold]Core:[/bold] {variant.core or '-'}",
        ])
    console.print(Panel("\n".join(lines), title="Target", border_style="cyan"))


@app.command(name="config")
def manage_config(
    action: str = typer.Argument(..., help="Action: show, init, get, validate"),
    key: Optional[str] = typer.Argument(None, help="Config key (e.g., advanced.log_level)"),
    section: Optional[str] = typer.Option(None, "--section", "-s", help="Show specific section"),
    file_path: Optional[Path] = typer.Option(None, "--file", help="Config file path"),
):
    """
    Manage ProbeScope configuration.

    Configuration priority (highest to lowest):
      1. Environment variables (PROBESCOPE_*)
      2. Project config (.probescope.toml)
      3. User config (~/.probescope/config.toml)
      4. Built-in defaults
    """
    manager = ConfigManager()

    try:
        if action == "show":
            manager.load()
            console.print(f"[dim]Loaded from: {', '.join(manager.get_loaded_sources())}[/dim]\n")
            console.print(manager.show_config(section=section), markup=False)

        elif action == "init":
            path = manager.init_config(path=file_path)
            console.print(f"[green]✓[/green] Configuration file created: {path}")

        elif action == "get":
            if not key:
                fail("Key required (e.g., advanced.log_level)")
            manager.load()
            console.print(f"{key} = {manager.get_value(key)}")

        elif action == "validate":
            manager.load()
            errors = manager.validate()
            if errors:
                err_console.print("[red]Configuration validation failed:[/red]\n")
                for error in errors:
                    err_console.print(f"  • {error}")
                raise typer.Exit(1)
            console.print("[green]✓[/green] Configuration is valid")

        else:
            fail(f"Unknown action '{action}'. Valid actions: show, init, get, validate")

    except (ConfigError, KeyError) as e:
        fail(str(e).strip("'\""))


@app.command(name="version")
def show_version():
    """Show version information."""
    from probescope import __version__
    console.print(f"[bold cyan]ProbeScope[/bold cyan] version [yellow]{__version__}[/yellow]")


@app.command(name="complete")
def complete_cmd(
    shell: str = typer.Argument(..., help="Shell: bash or zsh"),
    kind: CompleteKind = typer.Argument(..., help="What to print: script, chip-list or probe-list"),
    prefix: str = typer.Argument("", help="Text already typed for the argument"),
):
    """
    Shell completion support.

    Examples:

      # Enable completion in the current bash session
      source <(probescope complete bash script)

      # Install completion for zsh
      probescope complete zsh script > ~/.zsh/completions/_probescope

      # Chip names starting with STM32F4
      probescope complete bash chip-list STM32F4
    """
    try:
        request = CompletionRequest(
            shell=ShellKind.parse(shell),
            kind=kind,
            prefix=prefix,
            prog_name=get_invocation_name(sys.argv[0]),
        )
        generate_completion(
            request,
            sys.stdout,
            verify_syntax=get_config().completion.verify_syntax,
        )
    except ProbescopeError as e:
        logger.debug("Completion failed", exc_info=True)
        fail(str(e))


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
