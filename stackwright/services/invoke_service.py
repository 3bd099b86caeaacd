"""Local invocation of built functions"""

import json
import logging
import os
import subprocess
import sys
from typing import Dict, List, Mapping, Optional

from .secret_service import SecretService
from ..api.exceptions import ConfigError
from ..constants import (
    BIN_DIR,
    ENV_INVOKE_HEADERS,
    ENV_INVOKE_PAYLOAD,
    ENV_INVOKE_URL_PATH,
    ENV_SECRET_PREFIX,
)
from ..core.compiler import compile_function
from ..models.function import Function
from ..utils.async_utils import run_async

logger = logging.getLogger(__name__)


def find_function(functions: List[Function], name: str) -> Function:
    """Find a function by deployable, local, source or display name"""
    for function in functions:
        aliases = {function.name, function.local_name,
                   function.parsed.function_name, function.params.name}
        if name in aliases:
            return function
    known = ", ".join(sorted(f.name for f in functions)) or "none"
    raise ConfigError(f"Unknown function '{name}' (known: {known})")


class InvokeService:
    """Runs the local entry point of one function"""

    def __init__(self, deploy_service, environ: Optional[Mapping[str, str]] = None):
        """
        Initialize invoke service

        Args:
            deploy_service: DeployService of the project, used to prepare the workspace
            environ: Base environment of the child process
        """
        self.deploy_service = deploy_service
        self.environ = dict(os.environ if environ is None else environ)

    def command(self, function: Function) -> List[str]:
        module = f"{function.project.package_name}.{BIN_DIR}.{function.local_name}"
        return [sys.executable, "-m", module]

    def environment(self,
                    function: Function,
                    payload: Optional[str] = None,
                    headers: Optional[Dict[str, str]] = None,
                    url_path: Optional[str] = None) -> Dict[str, str]:
        """Environment of the child process running a local entry point"""
        env = dict(self.environ)
        env.update(function.environment)

        secrets = SecretService(function.project, "", self.deploy_service.config,
                                environ=self.environ).local()
        for name, value in secrets.items():
            env[f"{ENV_SECRET_PREFIX}{name}"] = value

        if payload is not None:
            env[ENV_INVOKE_PAYLOAD] = payload
        if headers:
            env[ENV_INVOKE_HEADERS] = json.dumps(headers)
        if url_path:
            env[ENV_INVOKE_URL_PATH] = url_path

        python_path = [str(function.build_path)]
        if env.get('PYTHONPATH'):
            python_path.append(env['PYTHONPATH'])
        env['PYTHONPATH'] = os.pathsep.join(python_path)
        return env

    def invoke(self,
               name: str,
               payload: Optional[str] = None,
               headers: Optional[Dict[str, str]] = None,
               url_path: Optional[str] = None) -> int:
        """
        Build a function and run its local entry point

        Args:
            name: Function to run
            payload: Request body or message body
            headers: Request headers (endpoints only)
            url_path: Request path (endpoints only)

        Returns:
            Exit code of the entry point
        """
        functions = self.deploy_service.prepare()
        function = find_function(functions, name)

        logger.info(f"Building {function.name}")
        run_async(compile_function(function))

        command = self.command(function)
        logger.debug(f"Running {' '.join(command)}")
        completed = subprocess.run(
            command,
            cwd=str(function.build_path),
            env=self.environment(function, payload, headers, url_path),
        )
        return completed.returncode
