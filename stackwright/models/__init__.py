"""Data models for stackwright"""

from .config import BuildConfig
from .document import Document
from .function import (
    CronParams,
    EndpointParams,
    Function,
    ParsedFunction,
    WorkerParams,
    function_name_for,
)
from .project import KvTable, Project, Queue
from .result import (
    DeploymentState,
    DeploymentStatus,
    JobResult,
    OperationStatus,
    PipelineResult,
    ProvisionOutcome,
    Result,
    Stage,
)
from .template import CfnResource, Template

__all__ = [
    "BuildConfig",
    "Document",
    "CronParams",
    "EndpointParams",
    "Function",
    "ParsedFunction",
    "WorkerParams",
    "function_name_for",
    "KvTable",
    "Project",
    "Queue",
    "DeploymentState",
    "DeploymentStatus",
    "JobResult",
    "OperationStatus",
    "PipelineResult",
    "ProvisionOutcome",
    "Result",
    "Stage",
    "CfnResource",
    "Template",
]
