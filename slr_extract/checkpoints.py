"""
Console checkpoints and progress display for a run.
"""

from rich.console import Console
from rich.table import Table
from rich import box

from slr_extract.orchestrator import RunSnapshot, RunState
from slr_extract.progress import UnitStatus
from slr_extract.utils import truncate_text

console = Console()

STATUS_STYLES = {
    UnitStatus.QUEUED: "dim",
    UnitStatus.PROCESSING: "yellow",
    UnitStatus.COMPLETED: "green",
    UnitStatus.ERROR: "red",
}


def banner(title: str) -> None:
    console.print()
    console.print("=" * 78, style="bold blue")
    console.print(f"  {title}", style="bold white")
    console.print("=" * 78, style="bold blue")
    console.print()


def checkpoint_confirm_run(
    mode: str,
    units: list,
    paper_count: int,
    header: str,
    settings
) -> str:
    """
    Checkpoint: show the work plan before any model call.

    Returns: User choice ('a'=approve, 'q'=quit)
    """
    banner("SYSTEMATIC REVIEW TABLE EXTRACTION")

    console.print(f"  Mode:        [bold]{mode}[/bold]")
    console.print(f"  Model:       {settings.extraction_model} (temperature {settings.temperature})")
    if mode == "text":
        console.print(f"  Papers:      {paper_count}")
        console.print(f"  Batches:     {len(units)} (up to {settings.batch_size} papers each)")
    else:
        console.print(f"  Files:       {len(units)}")
        for unit in units[:10]:
            console.print(f"    - {truncate_text(unit.name, 60)}")
        if len(units) > 10:
            console.print(f"      ... and {len(units) - 10} more")

    console.print()
    console.print("-" * 78)
    console.print("  TABLE HEADER", style="bold")
    console.print("-" * 78)
    for line in header.split("\n"):
        console.print(f"  {line}", markup=False)

    console.print()
    console.print("  [bold]Options:[/bold]")
    console.print("    [A] Approve and start extraction")
    console.print("    [Q] Quit")
    console.print()

    choice = console.input("  Your choice: ").strip().lower()
    return choice if choice in ['a', 'q'] else 'a'


class ProgressPrinter:
    """Pipeline subscriber that prints a line whenever a unit changes status."""

    def __init__(self):
        self.seen = {}

    def __call__(self, snap: RunSnapshot) -> None:
        for unit_id, name, status in snap.units:
            if self.seen.get(unit_id) == status or status == UnitStatus.QUEUED:
                continue
            self.seen[unit_id] = status
            display_progress(snap.completed, snap.total, name, status)

    def reset(self) -> None:
        self.seen.clear()


def display_progress(current: int, total: int, name: str, status: UnitStatus) -> None:
    """Display a simple progress indicator."""
    pct = (current / total * 100) if total > 0 else 0
    bar_filled = int(pct / 5)  # 20 chars = 100%
    bar_empty = 20 - bar_filled
    bar = "#" * bar_filled + "-" * bar_empty

    style = STATUS_STYLES[status]
    console.print(
        f"  \\[{bar}] {current}/{total} | [{style}]{status.value:<10}[/{style}] {truncate_text(name, 40)}"
    )


def display_run_summary(snap: RunSnapshot, output_files: dict) -> None:
    """Final review: per-unit status table, error if any, written files."""
    title = {
        RunState.SUCCEEDED: "EXTRACTION COMPLETE",
        RunState.FAILED: "EXTRACTION STOPPED ON ERROR",
        RunState.CANCELLED: "EXTRACTION CANCELLED",
    }.get(snap.state, "EXTRACTION")
    banner(title)

    unit_label = "papers" if snap.mode == "text" else "files"
    console.print(f"  Processed:  {snap.completed}/{snap.total} {unit_label}")
    row_count = max(len(snap.result.split("\n")) - 2, 0)
    console.print(f"  Rows:       {row_count}")
    console.print()

    table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Unit")
    table.add_column("Status")
    for i, (_, name, status) in enumerate(snap.units, 1):
        style = STATUS_STYLES[status]
        table.add_row(str(i), truncate_text(name, 50), f"[{style}]{status.value}[/{style}]")
    console.print(table)

    if snap.error:
        display_error(snap.error)

    if output_files:
        console.print("-" * 78)
        console.print("  OUTPUT FILES", style="bold")
        console.print("-" * 78)
        console.print()
        for name, path in output_files.items():
            console.print(f"  {name}: {path}")
        console.print()


def display_error(message: str) -> None:
    console.print()
    console.print("  [red][!] ERROR:[/red]", end=" ")
    console.print(message, style="red", markup=False)
    console.print()
