"""Secrets command group"""

import sys

import boto3
import click
from rich.table import Table

from ..decorators import credentials_required, project_required
from ..utils.output import console, print_error
from ...api.exceptions import StackwrightError
from ...constants import EMOJI_SUCCESS, EMOJI_WARNING
from ...services.secret_service import SecretService


@click.group()
def secrets():
    """Manage project secrets"""
    pass


@secrets.command('list')
@click.pass_context
@project_required
def list_secrets(ctx):
    """List local secret names (values are never shown)"""
    obj = ctx.obj

    try:
        local = SecretService(obj.project, "", obj.config).local()
    except StackwrightError as e:
        print_error(e)
        sys.exit(1)

    if not local:
        console.print(f"{EMOJI_WARNING} No local secrets found")
        return

    table = Table(title="Local Secrets")
    table.add_column("Name", style="cyan")
    for name in sorted(local):
        table.add_row(name)
    console.print(table)


@secrets.command('sync')
@click.pass_context
@project_required
@credentials_required
def sync(ctx):
    """Push local secrets to the parameter store"""
    obj = ctx.obj

    try:
        service = SecretService(obj.project, obj.username, obj.config,
                                boto3.client('ssm', **obj.config.client_kwargs()))
        local = service.local()
        if not local:
            console.print(f"{EMOJI_WARNING} No local secrets to sync")
            return
        names = service.sync(local)
    except StackwrightError as e:
        print_error(e)
        sys.exit(1)

    console.print(f"{EMOJI_SUCCESS} Synced {len(names)} secret(s)")
    for name in names:
        console.print(f"  • {name}")
