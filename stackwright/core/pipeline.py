# stackwright/core/pipeline.py
"""Concurrent build, bundle, upload and provisioning pipeline"""

import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .bundler import bundle_checksum, bundle_function
from .compiler import build_wheel, compile_function
from .naming import artifact_key
from .provisioner import Provisioner
from .status import StatusPoller
from .synthesizer import TemplateSynthesizer, prefixed
from ..api.exceptions import DeploymentFailedError, StackwrightError
from ..constants import ErrorCode
from ..models.config import BuildConfig
from ..models.function import Function
from ..models.project import Project
from ..models.result import (
    DeploymentState,
    JobResult,
    OperationStatus,
    PipelineResult,
    ProvisionOutcome,
    Stage,
)
from ..models.template import Template
from ..storage.base import StorageBackend
from ..utils.async_utils import AsyncPool

logger = logging.getLogger(__name__)

# (subject, stage, message) where subject is a function name or the project name
StageCallback = Callable[[str, Stage, Optional[str]], None]


class Pipeline:
    """Runs per-function jobs under a concurrency bound, then provisions

    A deploying run checks the template before any job starts. The
    project wheel is built once, then jobs install it in parallel.
    Jobs never cancel each other: every job runs to completion and the
    run fails as a whole if any of them failed, before anything is
    provisioned.
    """

    def __init__(self,
                 config: BuildConfig,
                 project: Project,
                 username: str,
                 storage: Optional[StorageBackend] = None,
                 provisioner: Optional[Provisioner] = None,
                 poller: Optional[StatusPoller] = None,
                 on_stage: Optional[StageCallback] = None):
        """
        Initialize pipeline

        Args:
            config: Build configuration
            project: Project being deployed
            username: Owner of the deployment
            storage: Artifact storage, required when deploying
            provisioner: Stack provisioner, required when deploying
            poller: Stack status poller, required when deploying
            on_stage: Called whenever a function or the project changes stage
        """
        self.config = config
        self.project = project
        self.username = username
        self.storage = storage
        self.provisioner = provisioner
        self.poller = poller
        self.on_stage = on_stage
        self.pool: Optional[AsyncPool] = None

    def _report(self, subject: str, stage: Stage, message: Optional[str] = None) -> None:
        if self.on_stage:
            self.on_stage(subject, stage, message)

    async def run(self,
                  functions: List[Function],
                  secrets: Sequence[str] = (),
                  deploy_enabled: bool = True,
                  hotswap_enabled: bool = False,
                  max_concurrency: Optional[int] = None) -> PipelineResult:
        """
        Build every function and, if enabled, deploy the project

        Args:
            functions: All functions of the project
            secrets: Parameter store names of the project secrets
            deploy_enabled: Bundle, upload and provision after building
            hotswap_enabled: Update function code directly when the
                stack is otherwise unchanged
            max_concurrency: Jobs allowed to run at once

        Returns:
            PipelineResult

        Raises:
            SynthesisError: If the functions cannot be deployed as declared
            BuildError: If the project wheel cannot be built
            DeploymentFailedError: If the stack ends in a failed state
            ProvisionError: If a provisioning call fails
        """
        result = PipelineResult(status=OperationStatus.IN_PROGRESS)
        if deploy_enabled and (self.storage is None or self.provisioner is None
                               or self.poller is None):
            raise ValueError("Deploying requires storage, a provisioner and a poller")

        secrets = list(secrets)
        if deploy_enabled:
            self.validate(functions, secrets)

        limit = max_concurrency or self.config.max_concurrency
        self.pool = AsyncPool(limit)

        if functions:
            wheel = await build_wheel(functions[0].workspace)
            for function in functions:
                function.wheel_path = wheel

        if deploy_enabled:
            await self.storage.initialize()
            await self._resolve_artifacts(functions)

        for function in functions:
            self._report(function.name, Stage.QUEUED)
            self.pool.submit(self._job(function, deploy_enabled))

        outcomes = await self.pool.wait_all()
        for function, outcome in zip(functions, outcomes):
            result.jobs.append(self._job_result(function, outcome))

        failures = result.failures
        if failures:
            for name, message in failures.items():
                result.add_error(ErrorCode.PIPELINE_FAILED, message, function=name)
            result.message = f"{len(failures)} of {len(functions)} function(s) failed"
            result.complete(OperationStatus.FAILED)
            return result

        if not deploy_enabled:
            result.message = f"Built {len(functions)} function(s)"
            result.complete(OperationStatus.SUCCESS)
            return result

        await self._provision(functions, secrets, hotswap_enabled, result)
        result.complete(OperationStatus.SUCCESS)
        return result

    def validate(self, functions: List[Function], secrets: Sequence[str] = ()) -> Template:
        """
        Synthesize the template from local inputs only

        Raises:
            SynthesisError: If the functions cannot be deployed as declared
        """
        return TemplateSynthesizer(self.config, self.username).synthesize(
            self.project, functions, secrets)

    async def _resolve_artifacts(self, functions: List[Function]) -> None:
        """Keep the deployed bundles of functions that are not redeployed

        A function the stack does not run yet is deployed regardless.
        """
        if all(function.is_deploying for function in functions):
            return

        deployed = await self.provisioner.deployed_artifacts_async()
        for function in functions:
            if function.is_deploying:
                continue
            key = deployed.get(prefixed(self.username, self.project.name, [function.name]))
            if key:
                function.artifact_key = key
            else:
                logger.info(f"{function.name} is not deployed yet, deploying it too")
                function.is_deploying = True

    def _job_result(self, function: Function, outcome) -> JobResult:
        job = JobResult(status=OperationStatus.SUCCESS, function_name=function.name)

        if isinstance(outcome, BaseException):
            code = getattr(outcome, 'error_code', None) or ErrorCode.PIPELINE_FAILED
            job.add_error(code, str(outcome))
            job.complete(OperationStatus.FAILED)
            self._report(function.name, Stage.FAILED, str(outcome))
            return job

        job.bundle_checksum = function.checksum
        job.updated = function.updated
        if not function.is_deploying:
            job.complete(OperationStatus.SKIPPED)
        else:
            job.complete()
        return job

    async def _job(self, function: Function, deploy_enabled: bool) -> Function:
        """Build, bundle and upload one function"""
        self._report(function.name, Stage.BUILDING)
        build_path = await compile_function(function)

        if not deploy_enabled or not function.is_deploying:
            self._report(function.name, Stage.DONE)
            return function

        self._report(function.name, Stage.BUNDLING)
        bundle_path: Optional[Path] = None
        try:
            bundle_path = await bundle_function(build_path, function.workspace)
            function.bundle_path = bundle_path
            function.checksum = await bundle_checksum(bundle_path)
            function.artifact_key = artifact_key(
                self.username, self.project.name, function.name, function.checksum)

            self._report(function.name, Stage.UPLOADING)
            function.updated = await self.storage.upload_if_changed(
                bundle_path, function.artifact_key, function.checksum)
        finally:
            if bundle_path is not None:
                try:
                    bundle_path.unlink()
                except FileNotFoundError:
                    pass
                except OSError as e:
                    logger.warning(f"Failed to remove bundle {bundle_path}: {e}")

        self._report(function.name, Stage.DONE, None if function.updated else "No changes, skipped")
        return function

    async def _provision(self,
                         functions: List[Function],
                         secrets: List[str],
                         hotswap_enabled: bool,
                         result: PipelineResult) -> None:
        self._report(self.project.name, Stage.PROVISIONING)

        logger.debug("Waiting for any previous deployment to finish")
        await self.poller.wait(self.config.poll_interval)

        synthesizer = TemplateSynthesizer(self.config, self.username)
        template = synthesizer.synthesize(self.project, functions, secrets)

        if hotswap_enabled and await self.provisioner.can_hotswap_async(template):
            updated = [synthesizer.logical_name(f) for f in functions if f.updated]
            await self.provisioner.hotswap_async(template, updated, self.config.bucket)
            result.outcome = ProvisionOutcome.HOTSWAPPED
            result.deployed = True
            result.message = f"Hotswapped {len(updated)} function(s)"
            self._report(self.project.name, Stage.DONE, result.message)
            return

        try:
            outcome = await self.provisioner.provision_async(template)
        except StackwrightError:
            self._report(self.project.name, Stage.FAILED)
            raise

        result.outcome = outcome
        if outcome is ProvisionOutcome.UNCHANGED:
            result.deployed = True
            result.message = "Nothing to update"
            self._report(self.project.name, Stage.DONE, result.message)
            return

        status = await self.poller.wait(self.config.poll_interval)
        result.deployment = status
        if status.state is DeploymentState.FAILED:
            self._report(self.project.name, Stage.FAILED)
            raise DeploymentFailedError(status.errors)

        result.deployed = True
        result.message = f"Deployment {outcome.value}"
        self._report(self.project.name, Stage.DONE)
