# stackwright/build/manifest.py
"""Build manifest (pyproject.toml) patching"""

import logging
import re
from typing import Any, Dict, List

import toml

from ..api.exceptions import BuildError, DocumentShapeError
from ..constants import (
    BIN_DIR,
    COMMON_DEPENDENCIES,
    DECORATOR_PACKAGE,
    DEV_DEPENDENCY_GROUPS,
    HANDLERS_ENTRY_POINT_GROUP,
    MANIFEST_TOOL_TABLE,
    ROLE_DEPENDENCIES,
)
from ..models.document import Document
from ..models.function import EndpointParams, Function, WorkerParams
from ..models.project import Project

logger = logging.getLogger(__name__)

_REQUIREMENT_NAME = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")


def requirement_name(requirement: str) -> str:
    """Normalized distribution name of a PEP 508 requirement string"""
    match = _REQUIREMENT_NAME.match(requirement)
    if not match:
        return requirement.strip().lower()
    return re.sub(r"[-_.]+", "-", match.group(1)).lower()


def function_metadata(function: Function, is_local: bool) -> Dict[str, Any]:
    """Metadata table describing one function for one execution target"""
    params = function.params
    meta: Dict[str, Any] = {
        'name': function.display_name,
        'role': function.role.value,
        'is_local': is_local,
        'is_disabled': params.is_disabled,
    }

    if isinstance(params, EndpointParams):
        meta['url_path'] = params.url_path
        meta['queues'] = list(params.queues)
    elif isinstance(params, WorkerParams):
        meta['queue_alias'] = params.queue_alias
    elif function.schedule is not None:
        meta['schedule'] = function.schedule

    table: Dict[str, Any] = {'function': meta}

    queue = function.queue
    if queue is not None:
        table['queue'] = {
            queue.name: {
                'alias': queue.alias,
                'concurrency': queue.concurrency,
                'fifo': queue.fifo,
            }
        }

    table['environment'] = dict(sorted(function.environment.items()))
    return table


class ManifestPatcher:
    """Rewrites a project manifest for deployment builds

    The patch adds runtime dependencies, drops development-only ones,
    registers one entry point per function and target, and records
    per-function metadata under ``[tool.stackwright]``.
    """

    def __init__(self, manifest_text: str, source: str = "pyproject.toml"):
        self.source = source
        try:
            self.data: Dict[str, Any] = toml.loads(manifest_text)
        except toml.TomlDecodeError as e:
            raise BuildError(f"Failed to parse manifest: {e}", source) from e

    def patch(self, project: Project, functions: List[Function]) -> str:
        """
        Apply the deployment patch

        Args:
            project: Project being built
            functions: Every function of the project

        Returns:
            Patched manifest text

        Raises:
            BuildError: If the manifest has an unexpected shape
        """
        try:
            Document(self.data).require('project').as_dict()
            self._patch_dependencies(functions)
            self._patch_entry_points(project, functions)
            self._patch_package_discovery(project)
            self._patch_metadata(project, functions)
        except DocumentShapeError as e:
            raise BuildError(f"Malformed manifest: {e}", self.source) from e

        return toml.dumps(self.data)

    def _patch_dependencies(self, functions: List[Function]) -> None:
        project = self.data['project']
        doc = Document(project, 'project')

        declared = doc.get('dependencies')
        dependencies = [d.as_str() for d in declared.as_list()] if declared else []
        dependencies = [d for d in dependencies
                        if requirement_name(d) != DECORATOR_PACKAGE]

        wanted = list(COMMON_DEPENDENCIES)
        for role in sorted({f.role.value for f in functions}):
            wanted.extend(ROLE_DEPENDENCIES.get(role, []))

        present = {requirement_name(d) for d in dependencies}
        for requirement in wanted:
            name = requirement_name(requirement)
            if name not in present:
                dependencies.append(requirement)
                present.add(name)

        project['dependencies'] = dependencies

        optional = doc.get('optional-dependencies')
        if optional is not None:
            groups = {name: value for name, value in optional.as_dict().items()
                      if name not in DEV_DEPENDENCY_GROUPS}
            project['optional-dependencies'] = {name: value.raw for name, value in groups.items()}
            if not groups:
                del project['optional-dependencies']

        dependency_groups = Document(self.data).get('dependency-groups')
        if dependency_groups is not None:
            for name in DEV_DEPENDENCY_GROUPS:
                self.data['dependency-groups'].pop(name, None)

    def _patch_entry_points(self, project: Project, functions: List[Function]) -> None:
        manifest_project = self.data['project']
        package = project.package_name

        entry_points = manifest_project.setdefault('entry-points', {})
        Document(entry_points, 'project.entry-points').as_dict()
        entry_points[HANDLERS_ENTRY_POINT_GROUP] = {
            f.name: f"{package}.{BIN_DIR}.{f.name}:handler" for f in functions
        }

        scripts = manifest_project.setdefault('scripts', {})
        Document(scripts, 'project.scripts').as_dict()
        for function in functions:
            scripts[function.local_name] = f"{package}.{BIN_DIR}.{function.local_name}:main"

    def _patch_package_discovery(self, project: Project) -> None:
        tool = self.data.setdefault('tool', {})
        Document(tool, 'tool').as_dict()
        setuptools = tool.setdefault('setuptools', {})
        Document(setuptools, 'tool.setuptools').as_dict()
        if 'packages' in setuptools or 'py-modules' in setuptools:
            return

        # Build outputs sit beside the package in the workspace
        package_dir = project.package_dir()
        where = package_dir.parent.relative_to(project.root).as_posix()
        setuptools['packages'] = {'find': {
            'where': [where],
            'include': [package_dir.name, f"{package_dir.name}.*"],
        }}

    def _patch_metadata(self, project: Project, functions: List[Function]) -> None:
        tool = self.data.setdefault('tool', {})
        Document(tool, 'tool').as_dict()

        table: Dict[str, Any] = {
            'project': project.name,
            'kvdb': {t.name: {'name': t.name} for t in project.tables},
            # Recorded for the deployed code; no database is provisioned
            'sqldb': project.sqldb,
            'functions': {},
        }
        for function in functions:
            table['functions'][function.name] = function_metadata(function, is_local=False)
            table['functions'][function.local_name] = function_metadata(function, is_local=True)

        tool[MANIFEST_TOOL_TABLE] = table
