# stackwright/build/engine.py
"""Build workspace preparation"""

import logging
import os
import re
from pathlib import Path
from typing import Iterable, List, Optional, Set

from .checksums import ChecksumStore
from .manifest import ManifestPatcher
from .scaffold import render_function
from ..api.exceptions import BuildError, StackwrightError
from ..constants import (
    BIN_DIR,
    CHECKSUMS_FILE,
    CLONE_SKIP_DIRS,
    DECORATOR_PACKAGE,
    LOCAL_SECRETS_FILE,
    PROJECT_CONFIG_FILE,
    PROJECT_MANIFEST_FILE,
)
from ..models.config import BuildConfig
from ..models.function import Function, ParsedFunction
from ..models.project import Project
from ..utils.hash_utils import hash_bytes

logger = logging.getLogger(__name__)

# Decorator argument list: quoted strings and one level of nested brackets
_ARGUMENTS = r"""\((?:[^()'"]|'[^'\n]*'|"[^"\n]*"|\([^()]*\))*\)"""

# Role decorators, including a multi-line argument list
DECORATOR_PATTERN = re.compile(
    rf"^[ \t]*@(?:{DECORATOR_PACKAGE}\.)?(?:endpoint|worker|cron)\s*{_ARGUMENTS}[ \t]*\r?\n",
    re.MULTILINE,
)
IMPORT_PATTERN = re.compile(
    rf"^[ \t]*(?:from[ \t]+{DECORATOR_PACKAGE}(?:\.\w+)*[ \t]+import[ \t]+(?:\([^)]*\)|[^\n]*)"
    rf"|import[ \t]+{DECORATOR_PACKAGE}(?:[ \t]+as[ \t]+\w+)?)[ \t]*\r?\n",
    re.MULTILINE,
)
RELATIVE_IMPORT_PATTERN = re.compile(r"^\s*from\s+\.\s+import\s+(.+)$", re.MULTILINE)


def strip_annotations(source: str) -> str:
    """Remove role decorators and their import from module source"""
    source = DECORATOR_PATTERN.sub('', source)
    return IMPORT_PATTERN.sub('', source)


def merge_exports(existing: str, modules: Iterable[str]) -> str:
    """
    Prepend relative imports for modules not already imported

    Args:
        existing: Current package ``__init__.py`` content
        modules: Submodule names that must be importable from the package

    Returns:
        Merged content, hand-written lines kept below the imports
    """
    imported: Set[str] = set()
    for match in RELATIVE_IMPORT_PATTERN.finditer(existing):
        names = match.group(1).strip().strip('()')
        for name in names.split(','):
            name = name.strip().split(' as ')[0].strip()
            if name:
                imported.add(name)

    missing = [m for m in sorted(set(modules)) if m not in imported]
    if not missing:
        return existing

    header = ''.join(f"from . import {m}\n" for m in missing)
    if existing and not existing.startswith('\n'):
        header += '\n'
    return header + existing


class BuildEngine:
    """Produces a build-ready copy of a project

    The workspace holds a stripped clone of the project, one entry
    point per function and execution target, and a patched manifest.
    Files are only rewritten when their content hash changed, and
    files no longer produced are pruned at the end of the pass.
    """

    def __init__(self, project: Project, config: BuildConfig):
        self.project = project
        self.config = config
        self.workspace = config.build_path / project.name
        self.store: Optional[ChecksumStore] = None
        self.written: List[str] = []
        self.removed: List[str] = []
        self._touched: Set[str] = set()

    @property
    def package_relative(self) -> Path:
        """Package directory relative to the project root"""
        return self.project.package_dir().relative_to(self.project.root)

    def prepare(self,
                parsed_functions: List[ParsedFunction],
                deploy_names: Optional[Iterable[str]] = None) -> List[Function]:
        """
        Prepare the workspace for a build

        Args:
            parsed_functions: Functions discovered in the project
            deploy_names: Names of the functions to deploy, all if None

        Returns:
            Functions ready for the pipeline

        Raises:
            BuildError: If any file cannot be produced
        """
        functions = [Function.from_parsed(parsed, self.project, self.workspace)
                     for parsed in parsed_functions]
        self._check_unique(functions)

        if deploy_names is not None:
            selected = set(deploy_names)
            for function in functions:
                aliases = {function.name, function.parsed.function_name, function.params.name}
                function.is_deploying = bool(aliases & selected)

        try:
            self.workspace.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BuildError(f"Cannot create build workspace: {e}", str(self.workspace)) from e

        self.store = ChecksumStore.load(self.workspace)
        self.written = []
        self._touched = set()

        self._clone()
        self._write_exports(functions)
        self._write_entry_points(functions)
        self._write_manifest(functions)

        self.store.retain(self._touched)
        self.store.save()
        self.removed = self.store.cleanup()

        logger.info(f"Prepared {len(functions)} function(s) in {self.workspace} "
                    f"({len(self.written)} file(s) written, {len(self.removed)} removed)")
        return functions

    def _check_unique(self, functions: List[Function]) -> None:
        seen = {}
        for function in functions:
            if function.name in seen:
                other = seen[function.name]
                raise BuildError(
                    f"Functions {other.parsed.function_name} and "
                    f"{function.parsed.function_name} resolve to the same name {function.name}",
                    function.parsed.relative_path,
                )
            seen[function.name] = function

    def _write(self, relative: str, content: bytes) -> bool:
        """Write a workspace file unless its content hash is unchanged

        Returns:
            True if bytes were written
        """
        target = self.workspace / relative
        self._touched.add(relative)
        changed = self.store.update(relative, hash_bytes(content))

        if not changed and target.exists():
            return False

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as e:
            raise BuildError(f"Failed to write file: {e}", relative) from e

        logger.debug(f"Wrote {relative}")
        self.written.append(relative)
        return True

    def _generated_paths(self) -> Set[str]:
        """Source paths the clone leaves to later steps"""
        return {
            PROJECT_MANIFEST_FILE,
            (self.package_relative / '__init__.py').as_posix(),
        }

    def _clone(self) -> None:
        root = self.project.root
        skip_files = self._generated_paths() | {
            CHECKSUMS_FILE,
            LOCAL_SECRETS_FILE,
            PROJECT_CONFIG_FILE,
        }
        build_path = self.config.build_path.resolve()

        for current, dirs, files in os.walk(root):
            current_path = Path(current)
            dirs[:] = sorted(
                d for d in dirs
                if d not in CLONE_SKIP_DIRS and (current_path / d).resolve() != build_path
            )

            for name in sorted(files):
                source = current_path / name
                relative = source.relative_to(root).as_posix()
                if relative in skip_files:
                    continue

                try:
                    content = source.read_bytes()
                    if name.endswith('.py'):
                        content = strip_annotations(content.decode('utf-8')).encode('utf-8')
                except (OSError, UnicodeDecodeError) as e:
                    raise BuildError(f"Failed to read source: {e}", relative) from e

                self._write(relative, content)

    def _write_exports(self, functions: List[Function]) -> None:
        package = self.project.package_name
        modules = set()
        for function in functions:
            parts = function.parsed.module_path.split('.')
            if len(parts) > 1 and parts[0] == package:
                modules.add(parts[1])

        init_relative = (self.package_relative / '__init__.py').as_posix()
        source = self.project.root / init_relative
        existing = ''
        if source.exists():
            try:
                existing = strip_annotations(source.read_text(encoding='utf-8'))
            except (OSError, UnicodeDecodeError) as e:
                raise BuildError(f"Failed to read source: {e}", init_relative) from e

        self._write(init_relative, merge_exports(existing, modules).encode('utf-8'))

    def _write_entry_points(self, functions: List[Function]) -> None:
        bin_relative = self.package_relative / BIN_DIR
        self._write((bin_relative / '__init__.py').as_posix(), b'')

        for function in functions:
            for is_local in (False, True):
                name = function.local_name if is_local else function.name
                relative = (bin_relative / f"{name}.py").as_posix()
                try:
                    source = render_function(function, is_local)
                except (KeyError, ValueError) as e:
                    raise BuildError(f"Failed to render entry point: {e}", relative) from e
                self._write(relative, source.encode('utf-8'))

    def _write_manifest(self, functions: List[Function]) -> None:
        source = self.project.manifest_path
        try:
            text = source.read_text(encoding='utf-8')
        except OSError as e:
            raise BuildError(f"Failed to read manifest: {e}", PROJECT_MANIFEST_FILE) from e

        try:
            patched = ManifestPatcher(text, PROJECT_MANIFEST_FILE).patch(self.project, functions)
        except BuildError:
            raise
        except StackwrightError as e:
            raise BuildError(str(e), PROJECT_MANIFEST_FILE) from e

        self._write(PROJECT_MANIFEST_FILE, patched.encode('utf-8'))
