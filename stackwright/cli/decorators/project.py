"""Project context decorators for CLI commands"""

from functools import wraps
from pathlib import Path
from typing import Callable, Optional

import click

from ..utils.output import console, print_error
from ...api.exceptions import StackwrightError
from ...constants import PROJECT_CONFIG_FILE, EMOJI_ERROR
from ...services.config_service import ConfigService
from ...services.credential_service import CredentialService


def project_required(func: Callable) -> Callable:
    """Decorator that ensures command runs in a valid project context

    This decorator:
    1. Finds the project root directory
    2. Loads and validates the project configuration
    3. Loads the build configuration
    4. Adds both to the click context object

    Args:
        func: Command function to decorate

    Returns:
        Decorated function
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        ctx = click.get_current_context()

        # Find project root
        project_root = find_project_root()

        if not project_root:
            console.print(
                f"{EMOJI_ERROR} Not in a stackwright project directory "
                f"(no {PROJECT_CONFIG_FILE} found)."
            )
            ctx.exit(1)

        config_service = ConfigService()
        try:
            project = config_service.load_project(project_root)
            config = config_service.load_build_config()
        except StackwrightError as e:
            print_error(e)
            ctx.exit(1)

        ctx.obj.project_root = project_root
        ctx.obj.project = project
        ctx.obj.config = config

        return func(*args, **kwargs)

    return wrapper


def credentials_required(func: Callable) -> Callable:
    """Decorator that loads valid credentials into the click context"""
    @wraps(func)
    def wrapper(*args, **kwargs):
        ctx = click.get_current_context()

        try:
            ctx.obj.credentials = CredentialService().load()
        except StackwrightError as e:
            print_error(e)
            ctx.exit(1)

        return func(*args, **kwargs)

    return wrapper


def find_project_root(start_path: Optional[Path] = None) -> Optional[Path]:
    """Find the project root directory by looking for the project config file

    Args:
        start_path: Starting directory (defaults to current directory)

    Returns:
        Project root path or None if not found
    """
    if start_path is None:
        start_path = Path.cwd()
    else:
        start_path = Path(start_path).resolve()

    current = start_path

    # Check each directory up to root
    while current != current.parent:
        if (current / PROJECT_CONFIG_FILE).exists():
            return current
        current = current.parent

    # Check root directory
    if (current / PROJECT_CONFIG_FILE).exists():
        return current

    return None
