"""Status command implementation"""

import sys

import click

from ..decorators import credentials_required, project_required
from ..utils.output import format_status, print_error
from ...api.exceptions import StackwrightError
from ...models.result import DeploymentState
from ...services.deploy_service import DeployService


@click.command()
@click.pass_context
@project_required
@credentials_required
def status(ctx):
    """Show the state of the latest deployment"""
    obj = ctx.obj

    try:
        service = DeployService(obj.project, obj.config, obj.username)
        current = service.status()
    except StackwrightError as e:
        print_error(e)
        sys.exit(1)

    format_status(current, service.stack_name)
    if current.state == DeploymentState.FAILED:
        sys.exit(1)
