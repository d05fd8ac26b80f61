"""Rich output formatting helpers for the cm2intune CLI.

Readiness colors: Ready = bold green, Check = yellow, Not Ready = bold red.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterator

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TaskID, TextColumn
from rich.table import Table
from rich.text import Text

from cm2intune.core.classifier import MigratabilityVerdict
from cm2intune.core.manifest import PackageManifest
from cm2intune.core.status import ReadinessStatus
from cm2intune.staging import ProgressCallback

if TYPE_CHECKING:
    from cm2intune.workflow import ApplicationStatus, MigrationOutcome

_STATUS_STYLES: dict[ReadinessStatus, str] = {
    ReadinessStatus.READY: "bold green",
    ReadinessStatus.CHECK: "yellow",
    ReadinessStatus.NOT_READY: "bold red",
}

console = Console()


def status_style(status: ReadinessStatus) -> str:
    """Return the Rich style string for a readiness status."""
    return _STATUS_STYLES.get(status, "white")


def format_size(size: int) -> str:
    """Human readable byte count."""
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def print_applications(statuses: list[ApplicationStatus]) -> None:
    """Print the application search results table."""
    table = Table(title="Configuration Manager Applications", show_header=True, header_style="bold")
    table.add_column("Application", style="bold")
    table.add_column("Manufacturer")
    table.add_column("Version", style="dim")
    table.add_column("Deployments", justify="right")
    table.add_column("Deployment Types", justify="right")
    table.add_column("Status", justify="center")

    for item in statuses:
        app = item.application
        table.add_row(
            app.name,
            app.manufacturer or "-",
            app.version or "-",
            str(app.deployment_count),
            str(app.deployment_type_count),
            Text(item.status.value, style=status_style(item.status)),
        )
    console.print(table)
    ready = sum(1 for item in statuses if item.status is ReadinessStatus.READY)
    console.print(f"[bold]{len(statuses)}[/bold] applications | [green]{ready} ready[/green]")


def applications_to_json(statuses: list[ApplicationStatus]) -> list[dict[str, Any]]:
    return [
        {
            "name": item.application.name,
            "manufacturer": item.application.manufacturer,
            "version": item.application.version,
            "deployment_count": item.application.deployment_count,
            "deployment_type_count": item.application.deployment_type_count,
            "status": item.status.value,
        }
        for item in statuses
    ]


def verdict_to_json(name: str, verdict: MigratabilityVerdict) -> dict[str, Any]:
    return {
        "application": name,
        "is_migratable": verdict.is_migratable,
        "category": verdict.category,
        "reason": verdict.reason,
        "selected_index": verdict.selected_index,
        "deployment_types": [facts.to_dict() for facts in verdict.facts],
    }


def print_verdict(name: str, verdict: MigratabilityVerdict) -> None:
    """Print the classifier verdict and every deployment type's facts."""
    if verdict.is_migratable:
        badge = Text("MIGRATABLE", style="bold green")
    else:
        badge = Text("NOT MIGRATABLE", style="bold red")
    header = Text.assemble(
        ("Application: ", "bold"), (name, ""),
        ("  Verdict: ", "bold"), badge,
        ("  Category: ", "bold"), (verdict.category, "cyan"),
    )
    console.print(Panel(header, title="Migration Analysis"))
    console.print(f"  Reason: {verdict.reason}")

    if not verdict.facts:
        console.print("[dim]No deployment types found.[/dim]")
        return

    table = Table(title="Deployment Types", show_header=True)
    table.add_column("#", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("Technology")
    table.add_column("Install Command")
    table.add_column("Content")
    table.add_column("Detection", justify="center")
    for index, facts in enumerate(verdict.facts):
        marker = "*" if index == verdict.selected_index else ""
        table.add_row(
            f"{index}{marker}",
            facts.name or "-",
            facts.technology or "-",
            facts.install_command or "-",
            facts.primary_location or "-",
            "yes" if facts.has_detection_method else "no",
        )
    console.print(table)


def print_manifest(manifest: PackageManifest) -> None:
    """Print the key fields of a package manifest."""
    table = Table(title="Package Manifest", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    detection = manifest.detection.to_dict()
    rows = [
        ("Display name", manifest.display_name),
        ("Publisher", manifest.publisher),
        ("Version", manifest.version),
        ("Install", manifest.install_command),
        ("Uninstall", manifest.uninstall_command or "-"),
        ("Detection", ", ".join(f"{k}={v}" for k, v in detection.items())),
        ("Setup file", manifest.setup_file),
    ]
    for field, value in rows:
        table.add_row(field, value)
    console.print(table)


def print_outcome(outcome: MigrationOutcome) -> None:
    """Print the result line of a migration or publish attempt."""
    if outcome.succeeded:
        console.print(f"[bold green]OK[/bold green] {outcome.message}")
    else:
        console.print(f"[bold red]FAILED[/bold red] {outcome.message}")


@contextmanager
def copy_progress() -> Iterator[ProgressCallback]:
    """Yield a staging progress callback backed by a rich progress bar.

    The bar appears on the first copied file, so prompts shown before
    copying starts are not disturbed.
    """
    progress = Progress(
        TextColumn("[bold]Copying[/bold]"),
        BarColumn(),
        MofNCompleteColumn(),
        TextColumn("{task.description}", style="dim", markup=False),
        console=console,
        transient=True,
    )
    task: list[TaskID] = []

    def update(done: int, total: int, current: Path) -> None:
        if not task:
            progress.start()
            task.append(progress.add_task("", total=total))
        progress.update(task[0], completed=done, description=str(current))

    try:
        yield update
    finally:
        if task:
            progress.stop()
