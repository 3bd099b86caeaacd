# stackwright/cli/utils/output.py
"""Output formatting utilities"""

from typing import List

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

from ...api.exceptions import DeploymentFailedError, PipelineError, StackwrightError
from ...constants import EMOJI_ERROR, EMOJI_SUCCESS, EMOJI_WARNING
from ...models.function import CronParams, EndpointParams, Function, WorkerParams
from ...models.result import (
    DeploymentState,
    DeploymentStatus,
    OperationStatus,
    PipelineResult,
    ProvisionOutcome,
)

console = Console()


def print_error(error: StackwrightError) -> None:
    """Print an error with its diagnostics"""
    code = f" [dim]({error.error_code})[/dim]" if error.error_code else ""

    if isinstance(error, PipelineError):
        console.print(f"[red]{EMOJI_ERROR} {len(error.failures)} function(s) failed{code}[/red]")
        for name, message in sorted(error.failures.items()):
            console.print(f"  [bold]{name}[/bold]: {message}")
        return

    if isinstance(error, DeploymentFailedError):
        console.print(f"[red]{EMOJI_ERROR} Deployment failed{code}[/red]")
        for diagnostic in error.errors:
            console.print(f"  • {diagnostic}")
        return

    console.print(f"[red]{EMOJI_ERROR} {error}{code}[/red]")


def format_pipeline_result(result: PipelineResult, project_name: str) -> None:
    """Format and display a pipeline run"""
    table = Table(box=box.SIMPLE, show_header=True)
    table.add_column("Function", style="cyan")
    table.add_column("Status")
    table.add_column("Artifact")

    for job in result.jobs:
        if job.status == OperationStatus.FAILED:
            status = "[red]failed[/red]"
        elif job.status == OperationStatus.SKIPPED:
            status = "[dim]not selected[/dim]"
        else:
            status = "[green]ok[/green]"

        if not result.deployed and job.bundle_checksum is None:
            artifact = "[dim]-[/dim]"
        elif job.updated:
            artifact = "uploaded"
        else:
            artifact = "[yellow]no changes[/yellow]"
        table.add_row(job.function_name, status, artifact)

    if result.jobs:
        console.print(table)

    duration = f" in {result.duration:.2f}s" if result.duration is not None else ""

    if result.outcome == ProvisionOutcome.UNCHANGED:
        console.print(f"{EMOJI_WARNING} [yellow]No changes[/yellow] to deploy for "
                      f"[bold]{project_name}[/bold]{duration}")
    elif result.deployed:
        console.print(f"{EMOJI_SUCCESS} [green]Deployed[/green] [bold]{project_name}[/bold] "
                      f"({result.outcome.value}){duration}")
    else:
        console.print(f"{EMOJI_SUCCESS} [green]Finished[/green] building "
                      f"[bold]{project_name}[/bold]{duration}")


def format_status(status: DeploymentStatus, stack_name: str) -> None:
    """Format and display a deployment status"""
    colors = {
        DeploymentState.COMPLETE: "green",
        DeploymentState.IN_PROGRESS: "yellow",
        DeploymentState.FAILED: "red",
    }
    color = colors[status.state]
    lines = [
        f"[bold]Stack:[/bold] {stack_name}",
        f"[bold]State:[/bold] [{color}]{status.state.name}[/{color}]",
    ]
    if status.errors:
        lines.append("")
        lines.append("[bold]Errors:[/bold]")
        lines.extend(f"  • {error}" for error in status.errors)

    console.print(Panel("\n".join(lines), title="Deployment Status", border_style=color))


def _describe(function: Function) -> str:
    params = function.params
    if isinstance(params, EndpointParams):
        queues = f" → {', '.join(params.queues)}" if params.queues else ""
        return f"{params.url_path}{queues}"
    if isinstance(params, WorkerParams):
        fifo = ", fifo" if params.fifo else ""
        return f"queue {params.queue_alias} (concurrency {params.concurrency}{fifo})"
    if isinstance(params, CronParams):
        return params.schedule
    raise ValueError(f"Unknown params type: {type(params).__name__}")


def functions_table(functions: List[Function]) -> Table:
    """Table of discovered functions"""
    table = Table(title="Functions", box=box.ROUNDED)
    table.add_column("Name", style="cyan")
    table.add_column("Role", style="magenta")
    table.add_column("Trigger")
    table.add_column("Source", style="dim")

    for function in functions:
        name = function.name
        if function.params.is_disabled:
            name = f"{name} [dim](disabled)[/dim]"
        table.add_row(
            name,
            function.role.value,
            _describe(function),
            f"{function.parsed.relative_path}:{function.parsed.line}",
        )
    return table
