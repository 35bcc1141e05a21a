"""Rich output formatting helpers for the versolve CLI.

Resolution results are shown as a table of chosen versions; failures as a
red panel followed by the conflict explanation, printed verbatim.
"""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from versolve.core.solver import UnitVersion, is_prerelease

console = Console()


def print_resolution_summary(versions: dict[str, str]) -> None:
    """Print the chosen version of every resolved package.

    Args:
        versions: Package name to version mapping.
    """
    console.print(
        Panel("[bold green]Resolution successful[/bold green]",
              title="Version Resolution")
    )
    if not versions:
        console.print("[dim]No packages to resolve.[/dim]")
        return
    table = Table(show_header=True, header_style="bold")
    table.add_column("Package", style="bold")
    table.add_column("Version")
    for name in sorted(versions):
        version = versions[name]
        style = "yellow" if is_prerelease(version) else ""
        table.add_row(name, Text(version, style=style))
    console.print(table)
    console.print(f"[bold]{len(versions)}[/bold] packages resolved")


def print_failure(title: str, messages: Sequence[str]) -> None:
    """Print a failure panel followed by each message verbatim."""
    console.print(Panel(f"[bold red]{title}[/bold red]", title="Version Resolution"))
    for message in messages:
        console.print(Text(message, style="red"))


def print_versions(name: str, versions: Sequence[UnitVersion]) -> None:
    """Print every known version of a package, lowest first."""
    if not versions:
        console.print(Text(f"Unknown package: {name}", style="dim"))
        return
    table = Table(title=f"Versions of {name}", show_header=True, header_style="bold")
    table.add_column("Version")
    table.add_column("Prerelease", justify="center")
    table.add_column("Dependencies", style="dim")
    for uv in versions:
        pre = Text("yes", style="yellow") if is_prerelease(uv.version) else Text("-", style="dim")
        deps = ", ".join(uv.dependencies) or "-"
        table.add_row(uv.version, pre, deps)
    console.print(table)
