"""Utility functions for stackwright"""

from .async_utils import AsyncPool, run_async, run_blocking
from .hash_utils import hash_bytes, calculate_sha256_async
from .template_utils import render_template

__all__ = [
    "AsyncPool",
    "run_async",
    "run_blocking",
    "hash_bytes",
    "calculate_sha256_async",
    "render_template",
]
