"""Rich-based console output for job summaries"""

from typing import Iterable

from rich.console import Console
from rich.table import Table
from rich.text import Text

console = Console()

# Status value -> (icon, style); shared by job, tier and thumbnail statuses
STATUS_STYLES = {
    "Pending": ("…", "dim"),
    "Running": ("▶", "blue"),
    "Succeeded": ("✓", "green"),
    "PartiallySucceeded": ("◐", "yellow"),
    "Failed": ("✗", "red"),
    "Skipped": ("–", "dim"),
}

def _status_style(status_value: str):
    return STATUS_STYLES.get(status_value, ("?", "white"))

def print_header(title: str, width: int = 80) -> None:
    """Print a title between two rules."""
    console.rule(style="bold blue", characters="=")
    console.print(title.center(width), style="bold blue")
    console.rule(style="bold blue", characters="=")

def print_field(name: str, value) -> None:
    """Print an aligned 'name value' line."""
    console.print(Text(f"{name:<10}", style="bold") + Text(str(value)))

def print_stage(name: str, status_value: str, detail: str = "") -> None:
    """Print one stage outcome with its status icon, e.g. a tier or the thumbnail."""
    icon, style = _status_style(status_value)
    text = Text(f"{icon} ", style=f"bold {style}") + Text(f"{name:<10}", style="bold")
    if detail:
        text += Text(detail, style=style)
    console.print(text)

def print_renditions(renditions: Iterable) -> None:
    """Print a tier table: label, status and manifest URL or error."""
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Tier")
    table.add_column("Status")
    table.add_column("Manifest / error", overflow="fold")
    for rendition in renditions:
        icon, style = _status_style(rendition.status.value)
        if rendition.succeeded and rendition.location is not None:
            detail = rendition.location.public_url
        else:
            detail = str(rendition.error) if rendition.error is not None else ""
        table.add_row(rendition.tier.label, Text(f"{icon} {rendition.status.value}", style=style), detail)
    console.print(table)

def print_warning(message: str) -> None:
    """Print a warning message in bold yellow."""
    console.print(Text("⚠ ", style="bold yellow") + Text(message, style="yellow"))

def print_error(message: str) -> None:
    """Print an error message in bold red."""
    console.print(Text("✗ ", style="bold red") + Text(message, style="bold"))

def print_info(message: str) -> None:
    console.print(Text("ℹ ", style="bold blue") + Text(message, style="blue"))
