# stackwright/cli/utils/progress.py
"""Pipeline progress display"""

from typing import Dict, Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from ...models.result import Stage


class PipelineProgress:
    """Live per-function stage display with an overall counter

    Pass ``on_stage`` to the pipeline as its stage callback. The
    pipeline reports from the event loop thread only.
    """

    def __init__(self, total: Optional[int] = None, console: Console = None, disabled: bool = False):
        self.console = console or Console()
        self.total = total
        self.completed = 0
        self.failed = 0
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
            disable=disabled,
        )
        self._overall: Optional[TaskID] = None
        self._tasks: Dict[str, TaskID] = {}

    def __enter__(self) -> 'PipelineProgress':
        self._progress.__enter__()
        self._overall = self._progress.add_task("[bold]Pipeline", total=self.total)
        return self

    def __exit__(self, *args) -> None:
        self._progress.__exit__(*args)

    def _task(self, subject: str) -> TaskID:
        if subject not in self._tasks:
            self._tasks[subject] = self._progress.add_task(subject, total=None)
        return self._tasks[subject]

    def on_stage(self, subject: str, stage: Stage, message: Optional[str] = None) -> None:
        """Record a stage change of a function or the project"""
        task = self._task(subject)

        if stage in (Stage.DONE, Stage.FAILED):
            if stage == Stage.DONE:
                self.completed += 1
                mark = "[green]✓[/green]"
            else:
                self.failed += 1
                mark = "[red]✗[/red]"

            note = f" [dim]{message}[/dim]" if message else ""
            self._progress.console.print(f"  {mark} {subject}{note}")
            self._progress.remove_task(task)
            del self._tasks[subject]
            if self._overall is not None:
                self._progress.advance(self._overall)
            return

        self._progress.update(task, description=f"[bold]{stage.value:>12}[/bold] {subject}")
