# stackwright/build/checksums.py
"""Persistent content hashes of a build workspace"""

import json
import logging
import shutil
from pathlib import Path
from typing import Dict, Iterable, List

from ..api.exceptions import ChecksumError
from ..constants import (
    CHECKSUMS_FILE,
    CLEANUP_WHITELIST,
    CLEANUP_WHITELIST_SUFFIXES,
)

logger = logging.getLogger(__name__)


class ChecksumStore:
    """Map of workspace-relative path to content hash

    The store is the only record of which files in the workspace are
    still wanted: ``cleanup`` removes anything it does not cover.
    Deleting the checksums file is safe and forces a full rewrite.
    """

    def __init__(self, directory: Path, checksums: Dict[str, str] = None):
        self.directory = Path(directory)
        self.checksums: Dict[str, str] = dict(checksums or {})

    @property
    def path(self) -> Path:
        return self.directory / CHECKSUMS_FILE

    @classmethod
    def load(cls, directory: Path) -> 'ChecksumStore':
        """Load the store of a workspace

        An absent or unreadable checksums file yields an empty store.

        Args:
            directory: Workspace root

        Returns:
            ChecksumStore instance
        """
        store = cls(directory)

        if not store.path.exists():
            return store

        try:
            data = json.loads(store.path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable checksums file {store.path}: {e}")
            return store

        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed checksums file {store.path}")
            return store

        store.checksums = {str(k): str(v) for k, v in data.items()}
        return store

    def get(self, path: str):
        return self.checksums.get(path)

    def update(self, path: str, new_hash: str) -> bool:
        """Record the hash of a path

        Args:
            path: Workspace-relative path
            new_hash: Content hash

        Returns:
            True if the stored hash changed, including a first insert
        """
        old_hash = self.checksums.get(path)
        self.checksums[path] = new_hash
        return old_hash != new_hash

    def has_file(self, path: str) -> bool:
        """Check whether any entry starts with the given path"""
        return any(key.startswith(path) for key in self.checksums)

    def has_folder(self, prefix: str) -> bool:
        """Check whether any entry lives under the given folder"""
        prefix = prefix.rstrip('/') + '/'
        return any(key.startswith(prefix) for key in self.checksums)

    def retain(self, paths: Iterable[str]) -> List[str]:
        """Drop every entry not in paths

        Returns:
            The dropped paths
        """
        keep = set(paths)
        dropped = [key for key in self.checksums if key not in keep]
        for key in dropped:
            del self.checksums[key]
        return dropped

    def save(self) -> None:
        """Persist the store

        Raises:
            ChecksumError: If the file cannot be written
        """
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(self.checksums, indent=2, sort_keys=True) + '\n',
                encoding='utf-8'
            )
        except OSError as e:
            raise ChecksumError(f"Failed to save checksums: {e}", str(self.path)) from e

    def cleanup(self) -> List[str]:
        """Delete workspace files and folders no entry covers

        The checksums file, the build cache and lock files are kept.

        Returns:
            Workspace-relative paths that were removed

        Raises:
            ChecksumError: If a stale path cannot be removed
        """
        removed: List[str] = []
        if not self.directory.exists():
            return removed

        self._cleanup_dir(self.directory, removed)
        return removed

    def _cleanup_dir(self, directory: Path, removed: List[str]) -> None:
        for entry in sorted(directory.iterdir()):
            relative = entry.relative_to(self.directory).as_posix()

            if directory == self.directory and entry.name in CLEANUP_WHITELIST:
                continue
            if entry.name.endswith(CLEANUP_WHITELIST_SUFFIXES):
                continue

            try:
                if entry.is_dir() and not entry.is_symlink():
                    if self.has_folder(relative):
                        self._cleanup_dir(entry, removed)
                        continue
                    shutil.rmtree(entry)
                elif relative not in self.checksums:
                    entry.unlink()
                else:
                    continue
            except OSError as e:
                raise ChecksumError(f"Failed to remove stale path: {e}", str(entry)) from e

            logger.debug(f"Removed stale build path {relative}")
            removed.append(relative)
