"""Function data models"""

import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Union

from .project import Project, Queue, Resource
from ..api.exceptions import FunctionNameTooLongError
from ..constants import (
    Role,
    LAMBDA_TARGET_DIR,
    LOCAL_SUFFIX,
    MAX_FUNCTION_NAME_LENGTH,
)

_NAME_SEPARATORS = re.compile(r"[/_\-.]+")


@dataclass(frozen=True)
class EndpointParams:
    """Parameters of a request-handler function"""
    url_path: str
    queues: List[str] = field(default_factory=list)
    name: Optional[str] = None
    is_disabled: bool = False


@dataclass(frozen=True)
class WorkerParams:
    """Parameters of a queue-consumer function"""
    queue_alias: str
    concurrency: int = 1
    fifo: bool = False
    name: Optional[str] = None
    is_disabled: bool = False


@dataclass(frozen=True)
class CronParams:
    """Parameters of a timer-triggered function"""
    schedule: str
    name: Optional[str] = None
    is_disabled: bool = False


Params = Union[EndpointParams, WorkerParams, CronParams]


@dataclass(frozen=True)
class ParsedFunction:
    """A function declaration discovered in project sources"""
    function_name: str
    relative_path: str
    role: Role
    params: Params
    environment: Dict[str, str] = field(default_factory=dict)
    line: int = 0

    @property
    def module_path(self) -> str:
        """Dotted import path of the module defining the function"""
        parts = list(PurePosixPath(self.relative_path).with_suffix('').parts)
        if parts and parts[0] == 'src':
            parts = parts[1:]
        if parts and parts[-1] == '__init__':
            parts = parts[:-1]
        return '.'.join(parts)


def function_name_for(relative_path: str, function_name: str, is_local: bool = False) -> str:
    """Build the deployable name of a function

    The source path and function name are split on path and word
    separators, capitalised and concatenated, dropping a leading
    ``src`` directory. For example ``src/users/api.py`` and
    ``get_user`` give ``UsersApiGetUser``.

    Args:
        relative_path: Source file path relative to the project root
        function_name: Name of the decorated function
        is_local: Whether the name is for the local-invocation variant

    Returns:
        CamelCase name

    Raises:
        FunctionNameTooLongError: If the result exceeds the platform limit
    """
    path = relative_path[:-3] if relative_path.endswith('.py') else relative_path
    full = f"{path}/{function_name}"
    name = ''.join(part[:1].upper() + part[1:]
                   for part in _NAME_SEPARATORS.split(full) if part)

    if name.startswith('Src'):
        name = name[len('Src'):]

    if is_local:
        name = f"{name}{LOCAL_SUFFIX}"

    if len(name) > MAX_FUNCTION_NAME_LENGTH:
        raise FunctionNameTooLongError(name, MAX_FUNCTION_NAME_LENGTH)

    return name


@dataclass
class Function:
    """A deployable unit derived from a ParsedFunction

    The pipeline attaches bundle and upload results to it.
    """
    parsed: ParsedFunction
    project: Project
    name: str
    workspace: Path
    is_deploying: bool = True
    resources: List[Resource] = field(default_factory=list)

    # Set by the pipeline
    wheel_path: Optional[Path] = None
    bundle_path: Optional[Path] = None
    checksum: Optional[str] = None
    artifact_key: Optional[str] = None
    updated: bool = False

    @classmethod
    def from_parsed(cls,
                    parsed: ParsedFunction,
                    project: Project,
                    workspace: Path,
                    is_deploying: bool = True) -> 'Function':
        name = function_name_for(parsed.relative_path, parsed.function_name)
        resources: List[Resource] = []
        if isinstance(parsed.params, WorkerParams):
            resources.append(Queue(
                name=name,
                alias=parsed.params.queue_alias,
                concurrency=parsed.params.concurrency,
                fifo=parsed.params.fifo,
            ))

        return cls(
            parsed=parsed,
            project=project,
            name=name,
            workspace=Path(workspace),
            is_deploying=is_deploying,
            resources=resources,
        )

    @property
    def role(self) -> Role:
        return self.parsed.role

    @property
    def params(self) -> Params:
        return self.parsed.params

    @property
    def local_name(self) -> str:
        return function_name_for(self.parsed.relative_path, self.parsed.function_name,
                                 is_local=True)

    @property
    def display_name(self) -> str:
        return self.params.name or self.parsed.function_name

    @property
    def build_path(self) -> Path:
        """Directory the function's dependencies are installed into"""
        return self.workspace / LAMBDA_TARGET_DIR / self.name

    @property
    def environment(self) -> Dict[str, str]:
        """Project-wide environment overlaid with the function's own"""
        merged = dict(self.project.environment)
        merged.update(self.parsed.environment)
        return merged

    @property
    def queue(self) -> Optional[Queue]:
        """First queue among the function's resources"""
        for resource in self.resources:
            if isinstance(resource, Queue):
                return resource
        return None

    @property
    def url_path(self) -> Optional[str]:
        if isinstance(self.params, EndpointParams):
            return self.params.url_path
        return None

    @property
    def schedule(self) -> Optional[str]:
        if isinstance(self.params, CronParams):
            return self.params.schedule
        return None
