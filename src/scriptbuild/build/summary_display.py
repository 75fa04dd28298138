"""Rich summary table of build file outcomes.

Printed after all build files were processed, one row per build file:

    Build file          Status        Projects   Time   Detail
    build.py            ✓ compiled           2  0.38s
    lib/build.py        up to date           1  0.01s
    tools/build.py      ✗ failed             0  0.02s   tools/build.py:3: invalid syntax
"""

from typing import Sequence

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .compiler import CompileOutcome
from .orchestrator import BuildFileReport
from .task_result import TaskResult

_DETAIL_LIMIT = 120


def _status_text(outcome: CompileOutcome | None) -> Text:
    if outcome == CompileOutcome.COMPILED:
        return Text("✓ compiled", style="green")
    elif outcome == CompileOutcome.UP_TO_DATE:
        return Text("up to date", style="dim")
    elif outcome == CompileOutcome.FAILED:
        return Text("✗ failed", style="bold red")
    return Text("-", style="dim")


class BuildSummaryDisplay:
    """Renders BuildFileReports as a table.

    Args:
        console: Rich Console instance for rendering. If None, creates a new one.
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console = console if console is not None else Console()

    def build_table(self, reports: Sequence[BuildFileReport]) -> Table:
        table = Table(title="Build files", show_lines=False)
        table.add_column("Build file", style="cyan", no_wrap=True)
        table.add_column("Status")
        table.add_column("Projects", justify="right")
        table.add_column("Time", justify="right")
        table.add_column("Detail", overflow="fold")

        for report in reports:
            detail = report.error_message or ""
            if len(detail) > _DETAIL_LIMIT:
                detail = detail[:_DETAIL_LIMIT] + "... (truncated)"
            table.add_row(
                report.name,
                _status_text(report.outcome),
                str(report.project_count),
                f"{report.elapsed:.2f}s",
                detail,
            )
        return table

    def render(self, reports: Sequence[BuildFileReport], task_result: TaskResult) -> None:
        self._console.print(self.build_table(reports))
        total_projects = sum(r.project_count for r in reports)
        if task_result.success:
            self._console.print(Text(f"{total_projects} project(s) found", style="green"))
        else:
            self._console.print(Text(f"{total_projects} project(s) found, build files failed", style="red"))
