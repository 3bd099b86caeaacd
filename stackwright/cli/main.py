# stackwright/cli/main.py
"""Main CLI entry point for stackwright"""

import sys
import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from ..__version__ import __version__
from ..constants import APP_NAME, LOG_FORMAT
from ..models.config import BuildConfig
from ..models.project import Project
from ..services.credential_service import Credentials

# Import all commands
from .commands import (
    build,
    deploy,
    destroy,
    init,
    status,
    secrets,
    functions,
    invoke,
)

console = Console()


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Setup logging configuration

    Args:
        verbose: Enable verbose output (INFO level)
        debug: Enable debug output (DEBUG level)
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    # Configure rich handler
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            RichHandler(
                console=console,
                show_time=debug,
                show_path=debug,
                rich_tracebacks=True,
                tracebacks_suppress=[click]
            )
        ]
    )

    # Adjust third-party loggers
    for name in ("asyncio", "aiofiles", "boto3", "botocore", "urllib3", "s3transfer"):
        logging.getLogger(name).setLevel(logging.WARNING)


class Context:
    """CLI context object

    Project, configuration and credentials are filled in by the
    decorators of the commands that need them.
    """

    def __init__(self):
        self.verbose: bool = False
        self.debug: bool = False
        self.quiet: bool = False
        self.project_root: Optional[Path] = None
        self.project: Optional[Project] = None
        self.config: Optional[BuildConfig] = None
        self.credentials: Optional[Credentials] = None

    @property
    def username(self) -> Optional[str]:
        return self.credentials.username if self.credentials else None


@click.group(name=APP_NAME)
@click.version_option(__version__, prog_name=APP_NAME)
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose output')
@click.option('-d', '--debug', is_flag=True, help='Enable debug output')
@click.option('-q', '--quiet', is_flag=True, help='Suppress all output except errors')
@click.pass_context
def cli(ctx, verbose, debug, quiet):
    """Stackwright - Deploy annotated Python functions as a serverless stack

    Mark functions with @endpoint, @worker or @cron, then build and
    deploy the whole project with one command. Every function becomes
    its own compute unit, and request handlers are routed through a
    shared CDN distribution.
    """
    # Setup logging
    if quiet:
        logging.disable(logging.CRITICAL)
    else:
        setup_logging(verbose=verbose, debug=debug)

    ctx.obj = Context()
    ctx.obj.verbose = verbose
    ctx.obj.debug = debug
    ctx.obj.quiet = quiet


# Register commands
cli.add_command(init.init)
cli.add_command(build.build)
cli.add_command(deploy.deploy)
cli.add_command(destroy.destroy)
cli.add_command(status.status)
cli.add_command(secrets.secrets)
cli.add_command(functions.functions)
cli.add_command(invoke.invoke)


def main():
    """Main entry point for the CLI application

    This function handles:
    - Keyboard interrupts
    - Unexpected exceptions with proper error display
    """
    try:
        cli(prog_name=APP_NAME)

    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(130)

    except Exception as e:
        console.print(f"[red]Unexpected error: {e}[/red]")
        if '--debug' in sys.argv or '-d' in sys.argv:
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
