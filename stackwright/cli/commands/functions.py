"""Functions command implementation"""

import json
import sys

import click

from ..decorators import project_required
from ..utils.output import console, functions_table, print_error
from ...api.exceptions import StackwrightError
from ...services.deploy_service import DeployService


@click.command()
@click.option('--json', 'as_json', is_flag=True, help='Output as JSON')
@click.pass_context
@project_required
def functions(ctx, as_json):
    """List the functions declared in the project"""
    obj = ctx.obj

    try:
        found = DeployService(obj.project, obj.config).discover()
    except StackwrightError as e:
        print_error(e)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps([
            {
                'name': f.name,
                'role': f.role.value,
                'source': f.parsed.relative_path,
                'function': f.parsed.function_name,
                'is_disabled': f.params.is_disabled,
            }
            for f in found
        ], indent=2))
        return

    if not found:
        console.print("[yellow]No functions found[/yellow]")
        return

    console.print(functions_table(found))
