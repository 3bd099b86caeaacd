"""Deploy command implementation"""

import sys

import click

from ..decorators import credentials_required, project_required
from ..utils.output import console, format_pipeline_result, print_error
from ..utils.progress import PipelineProgress
from ...api.exceptions import StackwrightError
from ...services.deploy_service import DeployService
from ...utils.async_utils import run_async


@click.command()
@click.option('--function', 'function_names', multiple=True,
              help='Deploy only this function (repeatable)')
@click.option('--max-concurrency', type=click.IntRange(min=1),
              help='Functions built and uploaded at the same time')
@click.option('--hotswap/--no-hotswap', default=False,
              help='Update function code directly when nothing else changed')
@click.pass_context
@project_required
@credentials_required
def deploy(ctx, function_names, max_concurrency, hotswap):
    """Build, upload and provision the project

    Every function of the project is part of the deployed stack. With
    --function only the selected functions are rebuilt and uploaded;
    the others keep their last uploaded code.

    Examples:

        # Deploy the whole project
        stackwright deploy

        # Redeploy one function, skipping the stack update if possible
        stackwright deploy --function UsersApiGetUser --hotswap
    """
    obj = ctx.obj

    try:
        with PipelineProgress(console=console, disabled=obj.quiet) as progress:
            service = DeployService(obj.project, obj.config, obj.username,
                                    on_stage=progress.on_stage)
            result = run_async(service.deploy(function_names, hotswap, max_concurrency))
    except StackwrightError as e:
        print_error(e)
        sys.exit(1)

    format_pipeline_result(result, obj.project.name)
