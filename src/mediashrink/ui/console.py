"""
Rich console output for mediashrink.

Run summaries and the utility commands (--show-skip, --check-requirements,
--show-dirs) are rendered as tables. Per-file progress is logged, not
printed here.

Respects:
- NO_COLOR environment variable
- MEDIASHRINK_SCRIPT_MODE environment variable
- sys.stdout.isatty() for automatic detection
"""

from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.table import Table

from mediashrink.config import is_script_mode
from mediashrink.skip import SkipRecord
from mediashrink.ui.text import fmt_hms, format_size, shorten

if TYPE_CHECKING:
    from mediashrink.transcoder import RunStats


class ConsoleUI:
    """Table output on stdout."""

    def __init__(self, console: Optional[Console] = None):
        if console is None:
            use_color = not is_script_mode()
            console = Console(no_color=not use_color, highlight=False)
        self.console = console

    def log(self, msg: str, style: str = "") -> None:
        if style:
            self.console.print(msg, style=style)
        else:
            self.console.print(msg)

    def print_summary(self, stats: "RunStats") -> None:
        """Print final summary."""
        self.console.print()

        table = Table(title="Summary", box=None, show_header=False)
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right")

        table.add_row("✓ Transcoded", f"[green]{stats.ok}[/green]")
        table.add_row("⊘ Skipped", f"[yellow]{stats.skipped}[/yellow]")
        table.add_row("✗ Failed", f"[red]{stats.failed}[/red]")
        if stats.cancelled:
            table.add_row("🛑 Interrupted", "[yellow]yes[/yellow]")
        table.add_row("⏱ Total time", fmt_hms(stats.elapsed))

        self.console.print(table)

    def print_skip_records(self, records: Sequence[Tuple[Path, Optional[SkipRecord]]]) -> None:
        """Print the .skip records of a set of inputs."""
        table = Table(title="Skip markers")
        table.add_column("File", style="cyan")
        table.add_column("Reason")
        table.add_column("Encoder")
        table.add_column("Quality", justify="right")
        table.add_column("Original", justify="right")
        table.add_column("Estimated", justify="right")
        table.add_column("Required", justify="right")
        table.add_column("When", style="dim")

        for path, rec in records:
            name = shorten(path.name, 48)
            if rec is None:
                table.add_row(name, "[dim]none[/dim]", "", "", "", "", "", "")
                continue
            table.add_row(
                name,
                rec.reason,
                rec.encoder,
                str(rec.quality),
                format_size(rec.original_size_bytes),
                format_size(rec.estimated_size_bytes),
                format_size(rec.required_size_bytes),
                rec.timestamp,
            )
        self.console.print(table)

    def print_requirements(self, rows: List[Tuple[str, bool, str]]) -> None:
        """Print (name, ok, detail) rows of a requirements check."""
        table = Table(title="Requirements", box=None)
        table.add_column("Component", style="bold")
        table.add_column("Status")
        table.add_column("Details", style="dim")
        for name, ok, detail in rows:
            status = "[green]✓ available[/green]" if ok else "[red]✗ missing[/red]"
            table.add_row(name, status, detail)
        self.console.print(table)

    def print_dirs(self, dirs: Dict[str, Path]) -> None:
        table = Table(title="Directories", box=None, show_header=False)
        table.add_column("Name", style="bold")
        table.add_column("Path")
        for name, path in dirs.items():
            table.add_row(name, str(path))
        self.console.print(table)
