# stackwright/core/compiler.py
"""Installation of a function's code and dependencies

The workspace project is built into a wheel once per run. Every
function then installs that wheel into its own target directory, so
concurrent jobs never build inside the shared workspace.
"""

import asyncio
import logging
import shutil
import sys
from pathlib import Path
from typing import List, Sequence

from ..api.exceptions import BuildError, CompileError
from ..constants import WHEELS_DIR
from ..models.function import Function

logger = logging.getLogger(__name__)

PIP_FLAGS = ["--quiet", "--disable-pip-version-check", "--no-input"]


def wheel_command(workspace: Path, wheel_dir: Path) -> List[str]:
    """pip command building the workspace project into a wheel"""
    return [
        sys.executable, "-m", "pip", "wheel",
        *PIP_FLAGS,
        "--no-deps",
        "--wheel-dir", str(wheel_dir),
        str(workspace),
    ]


def install_command(source: Path, target: Path) -> List[str]:
    """pip command installing a wheel or project into a target directory"""
    return [
        sys.executable, "-m", "pip", "install",
        *PIP_FLAGS,
        "--upgrade",
        "--target", str(target),
        str(source),
    ]


async def run_command(command: Sequence[str], cwd: Path) -> tuple:
    """
    Run a command without blocking the event loop

    Returns:
        Tuple of (exit code, stdout, stderr)
    """
    process = await asyncio.create_subprocess_exec(
        *command,
        cwd=str(cwd),
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await process.communicate()
    return process.returncode, stdout.decode(errors='replace'), stderr.decode(errors='replace')


async def build_wheel(workspace: Path) -> Path:
    """
    Build the workspace project into a single wheel

    Args:
        workspace: Prepared build workspace

    Returns:
        Path of the wheel

    Raises:
        BuildError: If pip fails or does not produce exactly one wheel
    """
    wheel_dir = workspace / WHEELS_DIR
    shutil.rmtree(wheel_dir, ignore_errors=True)
    wheel_dir.mkdir(parents=True)

    command = wheel_command(workspace, wheel_dir)
    logger.debug(f"Building wheel: {' '.join(command)}")

    try:
        code, _, stderr = await run_command(command, workspace)
    except OSError as e:
        raise BuildError(f"Cannot run pip: {e}", str(workspace)) from e

    if code != 0:
        raise BuildError(f"Failed to build a wheel:\n{stderr}", str(workspace))

    wheels = sorted(wheel_dir.glob("*.whl"))
    if len(wheels) != 1:
        raise BuildError(f"Expected one wheel, found {len(wheels)}", str(wheel_dir))
    return wheels[0]


async def compile_function(function: Function) -> Path:
    """
    Install the project wheel into the function's build directory

    Falls back to installing the workspace directly when no wheel was
    built for the function.

    Args:
        function: Function to build

    Returns:
        The function's build output directory

    Raises:
        CompileError: If pip exits with a non-zero status
    """
    target = function.build_path
    target.mkdir(parents=True, exist_ok=True)

    command = install_command(function.wheel_path or function.workspace, target)
    logger.debug(f"Building {function.name}: {' '.join(command)}")

    try:
        code, _, stderr = await run_command(command, function.workspace)
    except OSError as e:
        raise CompileError(function.name, str(e)) from e

    if code != 0:
        raise CompileError(function.name, stderr)

    return target
