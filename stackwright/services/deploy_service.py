"""Build and deploy orchestration service"""

import logging
from typing import Callable, List, Optional, Sequence

import boto3

from .secret_service import SecretService
from ..api.exceptions import ConfigError, DeploymentFailedError, PipelineError
from ..build.engine import BuildEngine
from ..build.parser import parse_project
from ..core.naming import stack_name
from ..core.pipeline import Pipeline, StageCallback
from ..core.provisioner import Provisioner
from ..core.status import StatusPoller
from ..models.config import BuildConfig
from ..models.function import Function
from ..models.project import Project
from ..models.result import DeploymentState, DeploymentStatus, PipelineResult
from ..storage.s3 import S3Storage

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], object]


class DeployService:
    """Runs builds and deployments of one project"""

    def __init__(self,
                 project: Project,
                 config: BuildConfig,
                 username: Optional[str] = None,
                 on_stage: Optional[StageCallback] = None,
                 client_factory: Optional[ClientFactory] = None):
        """Initialize deploy service

        Args:
            project: Project to build
            config: Build configuration
            username: Owner of the deployment, required for remote operations
            on_stage: Progress callback passed to the pipeline
            client_factory: Creates boto3 clients by service name
        """
        self.project = project
        self.config = config
        self.username = username
        self.on_stage = on_stage
        self._client_factory = client_factory
        self._clients = {}

    def client(self, service: str):
        """Cached boto3 client for a service"""
        if service not in self._clients:
            if self._client_factory:
                self._clients[service] = self._client_factory(service)
            else:
                self._clients[service] = boto3.client(service, **self.config.client_kwargs())
        return self._clients[service]

    def _require_username(self) -> str:
        if not self.username:
            raise ConfigError("This operation requires credentials")
        return self.username

    @property
    def stack_name(self) -> str:
        return stack_name(self._require_username(), self.project.name)

    def discover(self) -> List[Function]:
        """Functions declared in the project, without touching the workspace"""
        workspace = self.config.build_path / self.project.name
        return [Function.from_parsed(parsed, self.project, workspace)
                for parsed in parse_project(self.project)]

    def prepare(self, function_names: Optional[Sequence[str]] = None) -> List[Function]:
        """
        Parse the project and prepare its build workspace

        Args:
            function_names: Functions to deploy, all if empty

        Returns:
            All functions, flagged with whether they are deployed

        Raises:
            ConfigError: If a requested function does not exist
        """
        parsed = parse_project(self.project)
        names = list(function_names or [])
        functions = BuildEngine(self.project, self.config).prepare(parsed, names or None)

        if names and not any(f.is_deploying for f in functions):
            raise ConfigError(f"No function matches {', '.join(names)}")
        return functions

    def poller(self) -> StatusPoller:
        return StatusPoller(self.client('cloudformation'), self.stack_name)

    async def build(self,
                    function_names: Optional[Sequence[str]] = None,
                    max_concurrency: Optional[int] = None) -> PipelineResult:
        """Build functions locally without deploying them

        Raises:
            PipelineError: If any function failed to build
        """
        functions = self.prepare(function_names)
        selected = [f for f in functions if f.is_deploying]

        pipeline = Pipeline(self.config, self.project, self.username or "", on_stage=self.on_stage)
        result = await pipeline.run(selected, deploy_enabled=False,
                                    max_concurrency=max_concurrency)
        if result.is_failed:
            raise PipelineError(result.failures)
        return result

    async def deploy(self,
                     function_names: Optional[Sequence[str]] = None,
                     hotswap: bool = False,
                     max_concurrency: Optional[int] = None) -> PipelineResult:
        """
        Build, upload and provision the project

        The template is checked before anything leaves the machine.
        Local secrets are then synced to the parameter store, and every
        function of the project is part of the template even when only
        some are rebuilt.

        Raises:
            ConfigError: If the artifact bucket or credentials are missing
            SynthesisError: If the functions cannot be deployed as declared
            PipelineError: If any function failed
            DeploymentFailedError: If the stack ends in a failed state
        """
        username = self._require_username()
        if not self.config.bucket:
            raise ConfigError("No artifact bucket configured")

        functions = self.prepare(function_names)

        secrets = SecretService(self.project, username, self.config, self.client('ssm'))
        local_secrets = secrets.local()
        Pipeline(self.config, self.project, username).validate(
            functions, secrets.storage_names(list(local_secrets)))

        secret_names = secrets.sync(local_secrets) if local_secrets else []

        storage = S3Storage({
            'bucket': self.config.bucket,
            'region': self.config.region,
            'endpoint_url': self.config.endpoint_url,
        }, client=self.client('s3'))

        pipeline = Pipeline(
            self.config,
            self.project,
            username,
            storage=storage,
            provisioner=Provisioner(self.client('cloudformation'), self.stack_name,
                                    self.client('lambda')),
            poller=self.poller(),
            on_stage=self.on_stage,
        )

        async with storage:
            result = await pipeline.run(
                functions,
                secret_names,
                deploy_enabled=True,
                hotswap_enabled=hotswap,
                max_concurrency=max_concurrency,
            )

        if result.is_failed:
            raise PipelineError(result.failures)
        return result

    async def destroy(self) -> Optional[DeploymentStatus]:
        """
        Delete the project stack and wait for the deletion to finish

        Bundles stay in the artifact bucket.

        Returns:
            Final status, or None if the project was not deployed

        Raises:
            ConfigError: If credentials are missing
            ProvisionError: If the delete call fails
            DeploymentFailedError: If the deletion fails
        """
        stack = self.stack_name
        provisioner = Provisioner(self.client('cloudformation'), stack)
        poller = self.poller()

        await poller.wait(self.config.poll_interval)
        if not await provisioner.delete_async():
            logger.info(f"Stack {stack} does not exist")
            return None

        status = await poller.wait(self.config.poll_interval)
        if status.state is DeploymentState.FAILED:
            raise DeploymentFailedError(status.errors)
        return status

    def status(self) -> DeploymentStatus:
        """Current deployment status of the project stack"""
        return self.poller().status()
