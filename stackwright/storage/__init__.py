"""Artifact storage backends"""

from .base import StorageBackend
from .s3 import S3Storage

__all__ = ["StorageBackend", "S3Storage"]
