# stackwright/api/__init__.py
"""API layer for stackwright"""

from .exceptions import (
    StackwrightError,
    ConfigError,
    ProjectNotFoundError,
    CredentialsError,
    ParseError,
    FunctionNameTooLongError,
    BuildError,
    ChecksumError,
    CompileError,
    BundleError,
    UploadError,
    SynthesisError,
    MissingQueueError,
    DuplicateResourceError,
    ProvisionError,
    DeploymentFailedError,
    DocumentShapeError,
    PipelineError,
)

__all__ = [
    "StackwrightError",
    "ConfigError",
    "ProjectNotFoundError",
    "CredentialsError",
    "ParseError",
    "FunctionNameTooLongError",
    "BuildError",
    "ChecksumError",
    "CompileError",
    "BundleError",
    "UploadError",
    "SynthesisError",
    "MissingQueueError",
    "DuplicateResourceError",
    "ProvisionError",
    "DeploymentFailedError",
    "DocumentShapeError",
    "PipelineError",
]
