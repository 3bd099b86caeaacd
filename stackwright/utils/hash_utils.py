"""Hash calculation utilities"""

import hashlib
from pathlib import Path
from typing import Union

import aiofiles

# Size of the fast content digest used by the checksum store, in bytes
FAST_DIGEST_SIZE = 8


def hash_bytes(data: Union[bytes, str]) -> str:
    """
    Calculate the fast content hash of in-memory data

    Args:
        data: Bytes, or text encoded as UTF-8

    Returns:
        Lowercase hex digest string
    """
    if isinstance(data, str):
        data = data.encode('utf-8')
    return hashlib.blake2b(data, digest_size=FAST_DIGEST_SIZE).hexdigest()


async def calculate_sha256_async(file_path: Path, chunk_size: int = 65536) -> str:
    """
    Calculate SHA256 hash of file without blocking the event loop

    Args:
        file_path: Path to file
        chunk_size: Read chunk size

    Returns:
        Hex digest string
    """
    sha256_hash = hashlib.sha256()

    async with aiofiles.open(file_path, 'rb') as f:
        while chunk := await f.read(chunk_size):
            sha256_hash.update(chunk)

    return sha256_hash.hexdigest()
