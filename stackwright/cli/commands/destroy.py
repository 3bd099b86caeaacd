"""Destroy command implementation"""

import sys

import click
from rich.prompt import Confirm

from ..decorators import credentials_required, project_required
from ..utils.output import console, format_status, print_error
from ...api.exceptions import StackwrightError
from ...constants import EMOJI_SUCCESS
from ...services.deploy_service import DeployService
from ...utils.async_utils import run_async


@click.command()
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
@click.pass_context
@project_required
@credentials_required
def destroy(ctx, yes):
    """Delete the deployed stack of the project

    Every function, queue, table and the distribution go away with the
    stack. Uploaded bundles stay in the artifact bucket.
    """
    obj = ctx.obj
    service = DeployService(obj.project, obj.config, obj.username)

    if not yes and not Confirm.ask(f"Destroy [bold]{service.stack_name}[/bold]?", default=False):
        console.print("[dim]Destroy cancelled[/dim]")
        return

    try:
        final = run_async(service.destroy())
    except StackwrightError as e:
        print_error(e)
        sys.exit(1)

    if final is None:
        console.print(f"[yellow]Project {obj.project.name} is not deployed[/yellow]")
        return

    format_status(final, service.stack_name)
    console.print(f"{EMOJI_SUCCESS} Destroyed [bold]{obj.project.name}[/bold]")
