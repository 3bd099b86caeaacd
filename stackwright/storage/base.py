# stackwright/storage/base.py
"""Artifact store interface"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Dict, Any, Callable

# (bytes_transferred, total_bytes)
ProgressCallback = Callable[[int, int], None]

CHECKSUM_METADATA_KEY = 'checksum'


class StorageBackend(ABC):
    """Where function bundles are kept between deployments

    Keys are ``<user>/<project>/<Function>-<checksum>.zip``. Every bundle is stored
    with its checksum as user metadata so an unchanged bundle is never
    uploaded twice.
    """

    def __init__(self, config: Dict[str, Any] = None):
        self.config = config or {}
        self._initialized = False

    async def initialize(self) -> None:
        if not self._initialized:
            await self._do_initialize()
            self._initialized = True

    @abstractmethod
    async def _do_initialize(self) -> None:
        """Open the connection to the store"""

    @abstractmethod
    async def upload(self,
                     local_path: Path,
                     remote_path: str,
                     metadata: Optional[Dict[str, str]] = None,
                     callback: Optional[ProgressCallback] = None) -> bool:
        """
        Store a local bundle under a key

        Raises:
            UploadError: If the store rejects the object
        """

    @abstractmethod
    async def download(self, remote_path: str, local_path: Path) -> bool:
        """Fetch a stored bundle; False when the key is absent"""

    @abstractmethod
    async def exists(self, remote_path: str) -> bool:
        pass

    @abstractmethod
    async def delete(self, remote_path: str) -> bool:
        pass

    @abstractmethod
    async def list(self, prefix: str = "") -> List[str]:
        """Keys starting with prefix, sorted"""

    @abstractmethod
    async def get_metadata(self, remote_path: str) -> Optional[Dict[str, Any]]:
        """
        Describe a stored bundle

        Returns:
            Dict with at least ``metadata`` (the user metadata), or None
            when the key is absent
        """

    async def upload_if_changed(self,
                                local_path: Path,
                                remote_path: str,
                                checksum: str,
                                callback: Optional[ProgressCallback] = None) -> bool:
        """
        Upload a bundle unless the stored one carries the same checksum

        Args:
            local_path: Bundle to upload
            remote_path: Artifact key
            checksum: Content checksum of the bundle
            callback: Progress callback

        Returns:
            True if the bundle was uploaded, False if it was unchanged
        """
        current = await self.get_metadata(remote_path)
        if current and current.get('metadata', {}).get(CHECKSUM_METADATA_KEY) == checksum:
            return False

        return await self.upload(local_path, remote_path,
                                 metadata={CHECKSUM_METADATA_KEY: checksum},
                                 callback=callback)

    async def close(self) -> None:
        if self._initialized:
            await self._do_close()
            self._initialized = False

    async def _do_close(self) -> None:
        pass

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
