"""Operation result models"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


def _now() -> datetime:
    return datetime.now(timezone.utc)


class OperationStatus(Enum):
    """Operation status"""
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"
    IN_PROGRESS = "in_progress"


class DeploymentState(Enum):
    """State of a remote deployment"""
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not DeploymentState.IN_PROGRESS


class ProvisionOutcome(Enum):
    """What a provisioning call did"""
    CREATED = "created"
    UPDATED = "updated"
    HOTSWAPPED = "hotswapped"
    UNCHANGED = "unchanged"


class Stage(Enum):
    """Per-function pipeline stage"""
    QUEUED = "Queued"
    BUILDING = "Building"
    BUNDLING = "Bundling"
    UPLOADING = "Uploading"
    PROVISIONING = "Provisioning"
    DONE = "Done"
    FAILED = "Failed"


@dataclass
class DeploymentStatus:
    """Deployment state computed from one read of the event stream"""
    state: DeploymentState
    errors: List[str] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal


@dataclass
class ErrorDetail:
    """Detailed error information"""

    code: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_now)


@dataclass
class Result:
    """Base result class"""

    status: OperationStatus
    message: str = ""
    errors: List[ErrorDetail] = field(default_factory=list)
    start_time: datetime = field(default_factory=_now)
    end_time: Optional[datetime] = None

    @property
    def is_failed(self) -> bool:
        """Check if operation failed"""
        return self.status == OperationStatus.FAILED

    @property
    def duration(self) -> Optional[float]:
        """Get operation duration in seconds"""
        if self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None

    def add_error(self, code: str, message: str, **context) -> None:
        """Add an error"""
        self.errors.append(ErrorDetail(code=code, message=message, context=context))

    def complete(self, status: Optional[OperationStatus] = None) -> None:
        """Mark operation as complete"""
        self.end_time = _now()
        if status:
            self.status = status


@dataclass
class JobResult(Result):
    """Outcome of one function's build/bundle/upload job"""

    function_name: str = ""
    bundle_checksum: Optional[str] = None
    updated: bool = False

    @property
    def error_message(self) -> Optional[str]:
        return self.errors[0].message if self.errors else None


@dataclass
class PipelineResult(Result):
    """Aggregate outcome of a pipeline run"""

    jobs: List[JobResult] = field(default_factory=list)
    deployed: bool = False
    outcome: Optional[ProvisionOutcome] = None
    deployment: Optional[DeploymentStatus] = None

    @property
    def failures(self) -> Dict[str, str]:
        """Function name to error message for every failed job"""
        return {job.function_name: job.error_message or "unknown error"
                for job in self.jobs if job.is_failed}

    @property
    def updated_functions(self) -> List[str]:
        return [job.function_name for job in self.jobs if job.updated]
