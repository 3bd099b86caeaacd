# stackwright/cli/commands/__init__.py
"""CLI commands"""

from . import build
from . import deploy
from . import destroy
from . import init
from . import status
from . import secrets
from . import functions
from . import invoke

__all__ = [
    "build",
    "deploy",
    "destroy",
    "init",
    "status",
    "secrets",
    "functions",
    "invoke",
]
