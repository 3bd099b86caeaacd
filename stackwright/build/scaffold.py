# stackwright/build/scaffold.py
"""Entry point and new project generation"""

import json
import re
from typing import Dict, Optional

from ..api.exceptions import ConfigError
from ..constants import ENV_PREFIX, PROJECT_CONFIG_FILE, PROJECT_MANIFEST_FILE, Role
from ..models.function import EndpointParams, Function
from ..templates import get_template, project as project_templates
from ..utils.template_utils import render_template

# Characters of a URL pattern that have no meaning in a concrete path
URL_PATTERN_CHARS = "{}+*"

SAMPLE_MODULES = {
    Role.ENDPOINT: ("api.py", project_templates.ENDPOINT),
    Role.WORKER: ("tasks.py", project_templates.WORKER),
    Role.CRON: ("tasks.py", project_templates.CRON),
}


def default_invoke_path(url_path: str) -> str:
    """Concrete path used when invoking an endpoint locally"""
    return ''.join(c for c in url_path if c not in URL_PATTERN_CHARS)


def render_entry_point(import_path: str,
                       function_symbol: str,
                       role: Role,
                       is_local: bool,
                       function_name: str = "",
                       url_path: Optional[str] = None,
                       env_prefix: str = ENV_PREFIX) -> str:
    """
    Render the source of a function's entry point

    Remote entry points fetch secrets from the parameter store and
    expose ``handler(event, context)``. Local ones read secrets and
    the invocation payload from environment variables and expose
    ``main()``.

    Args:
        import_path: Dotted module path holding the function
        function_symbol: Function name inside that module
        role: Function role
        is_local: Render the local-invocation variant
        function_name: Deployable name, used as the log service name
        url_path: Endpoint URL pattern, required for local endpoints
        env_prefix: Prefix of every environment variable read

    Returns:
        Python source text
    """
    if role == Role.ENDPOINT and is_local and url_path is None:
        raise ValueError("Local endpoint entry points need a url_path")

    variables = {
        'import_statement': f"from {import_path} import {function_symbol}",
        'function_symbol': function_symbol,
        'function_name': function_name or function_symbol,
        'env_prefix': env_prefix,
        'url_path': json.dumps(default_invoke_path(url_path or "")),
    }
    return render_template(get_template(role, is_local), variables)


def render_function(function: Function, is_local: bool) -> str:
    """Render the entry point of a Function for one execution target"""
    params = function.params
    url_path = params.url_path if isinstance(params, EndpointParams) else None
    return render_entry_point(
        import_path=function.parsed.module_path,
        function_symbol=function.parsed.function_name,
        role=function.role,
        is_local=is_local,
        function_name=function.local_name if is_local else function.name,
        url_path=url_path,
    )


def render_project(name: str, role: Role = Role.ENDPOINT) -> Dict[str, str]:
    """
    Render the files of a new project

    Args:
        name: Project name
        role: Role of the sample function

    Returns:
        File contents by path relative to the project root

    Raises:
        ConfigError: If the name cannot be used as a package name
    """
    package = re.sub(r'[-.]', '_', name)
    if not package.isidentifier():
        raise ConfigError(f"Cannot derive a package name from '{name}'")

    variables = {'name': name}
    module, source = SAMPLE_MODULES[role]
    config = render_template(project_templates.PROJECT_CONFIG, variables)
    if package != name.replace('-', '_'):
        config = config.replace('\n\n', f'\npackage: {package}\n\n', 1)

    return {
        PROJECT_CONFIG_FILE: config,
        PROJECT_MANIFEST_FILE: render_template(project_templates.PYPROJECT, variables),
        f"{package}/__init__.py": "",
        f"{package}/{module}": render_template(source, variables),
    }
