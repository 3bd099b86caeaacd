# stackwright/build/parser.py
"""Discovery of annotated functions in project sources"""

import ast
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..api.exceptions import ParseError
from ..constants import BIN_DIR, CLONE_SKIP_DIRS, DECORATOR_PACKAGE, Role
from ..models.function import CronParams, EndpointParams, ParsedFunction, WorkerParams
from ..models.project import Project

logger = logging.getLogger(__name__)

DECORATOR_ROLES = {role.value: role for role in Role}

# Queue aliases become environment variable name suffixes
QUEUE_ALIAS_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")


def _decorator_role(node: ast.expr) -> Optional[Role]:
    """Role named by a decorator expression, None if it is not ours"""
    if not isinstance(node, ast.Call):
        return None

    func = node.func
    if isinstance(func, ast.Name):
        return DECORATOR_ROLES.get(func.id)
    if (isinstance(func, ast.Attribute)
            and isinstance(func.value, ast.Name)
            and func.value.id == DECORATOR_PACKAGE):
        return DECORATOR_ROLES.get(func.attr)
    return None


def _keywords(call: ast.Call, path: str) -> Dict[str, Any]:
    """Evaluate the literal keyword arguments of a decorator call"""
    if call.args:
        raise ParseError("Decorator arguments must be passed by keyword", path, call.lineno)

    values: Dict[str, Any] = {}
    for keyword in call.keywords:
        if keyword.arg is None:
            raise ParseError("Decorator arguments cannot be unpacked", path, call.lineno)
        if keyword.arg in values:
            raise ParseError(f"Duplicate attribute `{keyword.arg}`", path, call.lineno)
        try:
            values[keyword.arg] = ast.literal_eval(keyword.value)
        except (ValueError, TypeError, SyntaxError) as e:
            raise ParseError(f"Attribute `{keyword.arg}` must be a literal",
                             path, call.lineno) from e
    return values


def _expect(values: Dict[str, Any], key: str, kind: type, path: str, line: int,
            default: Any = None, required: bool = False) -> Any:
    if key not in values:
        if required:
            raise ParseError(f"Missing required attribute `{key}`", path, line)
        return default

    value = values[key]
    # bool is an int subclass; reject it where a number is expected
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ParseError(f"Attribute `{key}` must be of type {kind.__name__}", path, line)
    return value


def _environment(values: Dict[str, Any], path: str, line: int) -> Dict[str, str]:
    environment = _expect(values, 'environment', dict, path, line, default={})
    for key, value in environment.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise ParseError("Attribute `environment` must map strings to strings", path, line)
    return dict(environment)


def _params(role: Role, values: Dict[str, Any], function_name: str, path: str, line: int):
    name = _expect(values, 'name', str, path, line)
    is_disabled = _expect(values, 'is_disabled', bool, path, line, default=False)

    if role == Role.ENDPOINT:
        queues = _expect(values, 'queues', list, path, line, default=[])
        if not all(isinstance(q, str) and QUEUE_ALIAS_PATTERN.match(q) for q in queues):
            raise ParseError("Attribute `queues` must be a list of queue aliases "
                             "made of letters, digits and underscores", path, line)
        return EndpointParams(
            url_path=_expect(values, 'url_path', str, path, line, required=True),
            queues=list(queues),
            name=name,
            is_disabled=is_disabled,
        )
    elif role == Role.WORKER:
        concurrency = _expect(values, 'concurrency', int, path, line, default=1)
        if concurrency < 1:
            raise ParseError("Attribute `concurrency` must be positive", path, line)
        queue_alias = _expect(values, 'queue_alias', str, path, line, default=function_name)
        if not QUEUE_ALIAS_PATTERN.match(queue_alias):
            raise ParseError("Attribute `queue_alias` must be made of letters, "
                             "digits and underscores", path, line)
        return WorkerParams(
            queue_alias=queue_alias,
            concurrency=concurrency,
            fifo=_expect(values, 'fifo', bool, path, line, default=False),
            name=name,
            is_disabled=is_disabled,
        )
    elif role == Role.CRON:
        return CronParams(
            schedule=_expect(values, 'schedule', str, path, line, required=True),
            name=name,
            is_disabled=is_disabled,
        )
    raise ParseError(f"Unknown role: {role}", path, line)


def parse_source(source: str, relative_path: str) -> List[ParsedFunction]:
    """
    Extract annotated functions from one module's source

    Args:
        source: Module source text
        relative_path: POSIX path of the module relative to the project root

    Returns:
        Functions in declaration order

    Raises:
        ParseError: If the module or an annotation is malformed
    """
    try:
        tree = ast.parse(source, filename=relative_path)
    except SyntaxError as e:
        raise ParseError(f"Invalid Python syntax: {e.msg}", relative_path, e.lineno) from e

    functions: List[ParsedFunction] = []
    for node in tree.body:
        if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            continue

        annotations = [(d, _decorator_role(d)) for d in node.decorator_list]
        annotations = [(d, role) for d, role in annotations if role is not None]
        if not annotations:
            continue
        if len(annotations) > 1:
            raise ParseError(f"Function `{node.name}` has more than one role",
                             relative_path, node.lineno)
        if isinstance(node, ast.AsyncFunctionDef):
            raise ParseError(f"Function `{node.name}` must not be async",
                             relative_path, node.lineno)

        call, role = annotations[0]
        values = _keywords(call, relative_path)
        functions.append(ParsedFunction(
            function_name=node.name,
            relative_path=relative_path,
            role=role,
            params=_params(role, values, node.name, relative_path, call.lineno),
            environment=_environment(values, relative_path, call.lineno),
            line=node.lineno,
        ))

    return functions


def parse_project(project: Project) -> List[ParsedFunction]:
    """
    Extract annotated functions from every module of a project

    Modules are visited in sorted path order, so the result order is
    stable between runs.

    Args:
        project: Project to scan

    Returns:
        All discovered functions
    """
    package_dir = project.package_dir()
    if not package_dir.is_dir():
        raise ParseError(f"Package directory not found: {package_dir}")

    functions: List[ParsedFunction] = []
    for path in sorted(package_dir.rglob('*.py')):
        relative_to_package = path.relative_to(package_dir)
        if relative_to_package.parts[0] == BIN_DIR:
            continue
        if any(part in CLONE_SKIP_DIRS for part in relative_to_package.parts):
            continue

        relative_path = path.relative_to(project.root).as_posix()
        try:
            source = path.read_text(encoding='utf-8')
        except OSError as e:
            raise ParseError(f"Cannot read source: {e}", relative_path) from e

        found = parse_source(source, relative_path)
        if found:
            logger.debug(f"Found {len(found)} function(s) in {relative_path}")
        functions.extend(found)

    return functions
