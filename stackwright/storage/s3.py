# stackwright/storage/s3.py
"""AWS S3 storage backend"""

import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from .base import ProgressCallback, StorageBackend
from ..api.exceptions import UploadError
from ..utils.async_utils import run_blocking

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


class S3Storage(StorageBackend):
    """AWS S3 storage implementation

    boto3 clients are blocking, so every call runs in the default
    executor to keep concurrent uploads from stalling the event loop.
    """

    def __init__(self, config: Dict[str, Any] = None, client=None):
        """
        Initialize S3 storage

        Args:
            config: S3 configuration including:
                - bucket: S3 bucket name
                - region: AWS region
                - endpoint_url: Custom endpoint (for S3-compatible services)
            client: Pre-built boto3 S3 client
        """
        super().__init__(config)
        self.bucket = self.config.get('bucket', '')
        self._client = client

        if not self.bucket:
            raise ValueError("S3 storage requires 'bucket'")

    @property
    def client(self):
        if self._client is None:
            raise RuntimeError("S3 storage used before initialize()")
        return self._client

    async def _do_initialize(self) -> None:
        """Create the S3 client"""
        if self._client is None:
            kwargs = {'region_name': self.config.get('region')}
            if self.config.get('endpoint_url'):
                kwargs['endpoint_url'] = self.config['endpoint_url']
            self._client = boto3.client('s3', **kwargs)

    async def upload(self,
                     local_path: Path,
                     remote_path: str,
                     metadata: Optional[Dict[str, str]] = None,
                     callback: Optional[ProgressCallback] = None) -> bool:
        """Upload file to S3"""
        total = Path(local_path).stat().st_size
        progress_callback = None

        if callback:
            transferred = 0
            lock = threading.Lock()

            # boto3 reports increments from its transfer threads
            def progress_callback(amount: int) -> None:
                nonlocal transferred
                with lock:
                    transferred += amount
                    callback(transferred, total)

        extra_args = {'Metadata': metadata} if metadata else None

        try:
            await run_blocking(
                self.client.upload_file,
                str(local_path),
                self.bucket,
                remote_path,
                ExtraArgs=extra_args,
                Callback=progress_callback,
            )
        except (BotoCoreError, ClientError, S3UploadFailedError) as e:
            raise UploadError(f"Failed to upload {remote_path}: {e}") from e

        logger.debug(f"Uploaded {local_path} to s3://{self.bucket}/{remote_path}")
        return True

    async def download(self, remote_path: str, local_path: Path) -> bool:
        """Download file from S3"""
        Path(local_path).parent.mkdir(parents=True, exist_ok=True)
        try:
            await run_blocking(self.client.download_file, self.bucket, remote_path, str(local_path))
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') in NOT_FOUND_CODES:
                return False
            raise UploadError(f"Failed to download {remote_path}: {e}") from e
        return True

    async def exists(self, remote_path: str) -> bool:
        """Check if file exists in S3"""
        return await self.get_metadata(remote_path) is not None

    async def delete(self, remote_path: str) -> bool:
        """Delete file from S3"""
        try:
            await run_blocking(self.client.delete_object, Bucket=self.bucket, Key=remote_path)
        except (BotoCoreError, ClientError) as e:
            raise UploadError(f"Failed to delete {remote_path}: {e}") from e
        return True

    async def list(self, prefix: str = "") -> List[str]:
        """List files in S3"""

        def collect() -> List[str]:
            keys = []
            paginator = self.client.get_paginator('list_objects_v2')
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                keys.extend(item['Key'] for item in page.get('Contents', []))
            return keys

        try:
            return await run_blocking(collect)
        except (BotoCoreError, ClientError) as e:
            raise UploadError(f"Failed to list {prefix}: {e}") from e

    async def get_metadata(self, remote_path: str) -> Optional[Dict[str, Any]]:
        """Get file metadata from S3"""
        try:
            response = await run_blocking(self.client.head_object,
                                          Bucket=self.bucket, Key=remote_path)
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') in NOT_FOUND_CODES:
                return None
            raise UploadError(f"Failed to read metadata of {remote_path}: {e}") from e
        except BotoCoreError as e:
            raise UploadError(f"Failed to read metadata of {remote_path}: {e}") from e

        return {
            'size': response.get('ContentLength'),
            'etag': response.get('ETag'),
            'last_modified': response.get('LastModified'),
            'metadata': response.get('Metadata', {}),
        }
