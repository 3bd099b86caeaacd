"""Stackwright - Deploy annotated Python functions as a serverless stack.

Functions marked with ``@endpoint``, ``@worker`` or ``@cron`` are built
into standalone bundles, uploaded, and provisioned together with their
queues, tables, roles and routing as one CloudFormation stack.
"""

from .__version__ import __version__, __version_info__, __author__, __license__

# Function decorators
from .decorators import endpoint, worker, cron

# Data models
from .models.config import BuildConfig
from .models.project import Project
from .models.result import DeploymentState, DeploymentStatus, PipelineResult

# Exceptions
from .api.exceptions import (
    StackwrightError,
    ConfigError,
    CredentialsError,
    ParseError,
    BuildError,
    SynthesisError,
    MissingQueueError,
    ProvisionError,
    DeploymentFailedError,
    PipelineError,
)

__all__ = [
    # Version info
    "__version__",
    "__version_info__",
    "__author__",
    "__license__",

    # Decorators
    "endpoint",
    "worker",
    "cron",

    # Models
    "BuildConfig",
    "Project",
    "DeploymentState",
    "DeploymentStatus",
    "PipelineResult",

    # Exceptions
    "StackwrightError",
    "ConfigError",
    "CredentialsError",
    "ParseError",
    "BuildError",
    "SynthesisError",
    "MissingQueueError",
    "ProvisionError",
    "DeploymentFailedError",
    "PipelineError",
]
