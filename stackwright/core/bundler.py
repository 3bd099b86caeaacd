# stackwright/core/bundler.py
"""Deterministic zip bundles of built functions"""

import logging
import os
import uuid
import zipfile
from pathlib import Path
from typing import List

from ..api.exceptions import BundleError
from ..utils.async_utils import run_blocking
from ..utils.hash_utils import calculate_sha256_async

logger = logging.getLogger(__name__)

# Zip timestamps cannot predate 1980
FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)


def _collect_files(source_dir: Path) -> List[Path]:
    files = []
    for current, dirs, names in os.walk(source_dir):
        dirs[:] = sorted(d for d in dirs if d != '__pycache__')
        files.extend(Path(current) / name for name in sorted(names))
    return files


def create_bundle(source_dir: Path, bundle_path: Path) -> Path:
    """
    Zip a directory with stable entry order and timestamps

    Identical directory contents always produce identical bytes, so
    the bundle checksum can decide whether an upload is needed.

    Args:
        source_dir: Directory to archive
        bundle_path: Output zip path

    Returns:
        Path of the written bundle

    Raises:
        BundleError: If the source is missing or the archive cannot be written
    """
    source_dir = Path(source_dir)
    if not source_dir.is_dir():
        raise BundleError(f"Nothing to bundle, build output missing: {source_dir}")

    try:
        bundle_path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(bundle_path, 'w', compression=zipfile.ZIP_DEFLATED) as archive:
            for path in _collect_files(source_dir):
                info = zipfile.ZipInfo(path.relative_to(source_dir).as_posix(), FIXED_DATE_TIME)
                executable = os.access(path, os.X_OK)
                info.external_attr = (0o755 if executable else 0o644) << 16
                info.compress_type = zipfile.ZIP_DEFLATED
                archive.writestr(info, path.read_bytes())
    except OSError as e:
        raise BundleError(f"Failed to create bundle {bundle_path}: {e}") from e

    logger.debug(f"Bundled {source_dir} into {bundle_path}")
    return bundle_path


async def bundle_function(source_dir: Path, workspace: Path) -> Path:
    """
    Bundle a function's build output into a uniquely named zip

    Args:
        source_dir: Function build output
        workspace: Directory receiving the bundle

    Returns:
        Path of the bundle; the caller removes it
    """
    bundle_path = Path(workspace) / f"{uuid.uuid4()}.zip"
    return await run_blocking(create_bundle, source_dir, bundle_path)


async def bundle_checksum(bundle_path: Path) -> str:
    """SHA256 of a bundle, read without blocking the event loop"""
    return await calculate_sha256_async(bundle_path)
