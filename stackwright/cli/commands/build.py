"""Build command implementation"""

import sys

import click

from ..decorators import project_required
from ..utils.output import console, format_pipeline_result, print_error
from ..utils.progress import PipelineProgress
from ...api.exceptions import StackwrightError
from ...services.deploy_service import DeployService
from ...utils.async_utils import run_async


@click.command()
@click.option('--function', 'function_names', multiple=True,
              help='Build only this function (repeatable)')
@click.option('--max-concurrency', type=click.IntRange(min=1),
              help='Functions built at the same time')
@click.pass_context
@project_required
def build(ctx, function_names, max_concurrency):
    """Build functions without deploying them

    Prepares the build workspace and installs every function with its
    dependencies. Unchanged files are not rewritten.

    Examples:

        # Build everything
        stackwright build

        # Build a single function
        stackwright build --function UsersApiGetUser
    """
    obj = ctx.obj

    try:
        with PipelineProgress(console=console, disabled=obj.quiet) as progress:
            service = DeployService(obj.project, obj.config, on_stage=progress.on_stage)
            result = run_async(service.build(function_names, max_concurrency))
    except StackwrightError as e:
        print_error(e)
        sys.exit(1)

    format_pipeline_result(result, obj.project.name)
