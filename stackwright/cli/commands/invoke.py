"""Invoke command implementation"""

import json
import sys

import click

from ..decorators import project_required
from ..utils.output import print_error
from ...api.exceptions import StackwrightError
from ...services.deploy_service import DeployService
from ...services.invoke_service import InvokeService


def _parse_headers(ctx, param, value):
    if not value:
        return None
    try:
        headers = json.loads(value)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}")
    if not isinstance(headers, dict):
        raise click.BadParameter("must be a JSON object")
    return {str(k): str(v) for k, v in headers.items()}


@click.command()
@click.argument('name')
@click.option('--payload', help='Request or message body')
@click.option('--headers', callback=_parse_headers, help='Request headers as a JSON object')
@click.option('--url-path', help='Request path (endpoints only)')
@click.pass_context
@project_required
def invoke(ctx, name, payload, headers, url_path):
    """Run a function locally

    The function is built first, then its local entry point runs with
    secrets from the project's .env file.

    Examples:

        stackwright invoke UsersApiGetUser --url-path /users/42

        stackwright invoke send_email --payload '{"to": "a@b.c"}'
    """
    obj = ctx.obj

    try:
        service = InvokeService(DeployService(obj.project, obj.config))
        code = service.invoke(name, payload, headers, url_path)
    except StackwrightError as e:
        print_error(e)
        sys.exit(1)

    sys.exit(code)
