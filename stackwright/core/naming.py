# stackwright/core/naming.py
"""Names shared by templates, stacks, secrets and artifacts"""

from typing import Optional

# Hex characters of the bundle checksum kept in artifact keys
ARTIFACT_CHECKSUM_LENGTH = 16

_ESCAPES = (
    ("@", "AT"),
    (".", "DOT"),
    ("-", "HYPHEN"),
    ("_", "UNDRSC"),
)


def escape_resource_name(name: str) -> str:
    """Replace characters not allowed in logical names with letters"""
    for char, replacement in _ESCAPES:
        name = name.replace(char, replacement)
    return name


def stack_name(username: str, project_name: str) -> str:
    """Name of the stack holding a user's project"""
    return f"{escape_resource_name(username)}-{escape_resource_name(project_name)}"


def secret_storage_name(username: str, project_name: str, secret_name: str) -> str:
    """Parameter store key of a project secret"""
    return f"{escape_resource_name(username)}-{escape_resource_name(project_name)}-{secret_name}"


def artifact_key(username: str,
                 project_name: str,
                 function_name: str,
                 checksum: Optional[str] = None) -> str:
    """Object key of a function bundle in the artifact bucket

    The key carries the bundle checksum, so new code always changes the
    template that references it.
    """
    prefix = f"{escape_resource_name(username)}/{escape_resource_name(project_name)}"
    if checksum:
        return f"{prefix}/{function_name}-{checksum[:ARTIFACT_CHECKSUM_LENGTH]}.zip"
    return f"{prefix}/{function_name}.zip"
