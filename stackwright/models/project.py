"""Project and resource models"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .document import Document
from ..constants import PROJECT_MANIFEST_FILE


@dataclass(frozen=True)
class Queue:
    """Message queue consumed by a worker function"""
    name: str
    alias: str
    concurrency: int = 1
    fifo: bool = False


@dataclass(frozen=True)
class KvTable:
    """Key-value table shared by every function of a project"""
    name: str


Resource = Union[Queue, KvTable]


@dataclass
class Project:
    """A user project being built and deployed

    Read from stackwright.yaml at command start and treated as
    immutable for the rest of the run.
    """
    name: str
    root: Path
    resources: List[Resource] = field(default_factory=list)
    sqldb: bool = False
    domain: Optional[str] = None
    environment: Dict[str, str] = field(default_factory=dict)
    package: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], root: Path) -> 'Project':
        """Create Project from a parsed stackwright.yaml

        Args:
            data: Configuration dictionary
            root: Project root directory

        Returns:
            Project instance
        """
        doc = Document(data)
        resources: List[Resource] = []

        kvdb = doc.get('kvdb')
        if kvdb is not None and not kvdb.is_null():
            for item in kvdb.as_list():
                if item.kind == 'str':
                    resources.append(KvTable(name=item.as_str()))
                else:
                    resources.append(KvTable(name=item.require('name').as_str()))

        environment = {}
        env_doc = doc.get('environment')
        if env_doc is not None and not env_doc.is_null():
            environment = {key: str(value.raw) for key, value in env_doc.items()}

        return cls(
            name=doc.require('name').as_str(),
            root=Path(root),
            resources=resources,
            sqldb=doc.bool_or('sqldb', False),
            domain=doc.str_or('domain'),
            environment=environment,
            package=doc.str_or('package'),
        )

    @property
    def manifest_path(self) -> Path:
        return self.root / PROJECT_MANIFEST_FILE

    @property
    def tables(self) -> List[KvTable]:
        return [r for r in self.resources if isinstance(r, KvTable)]

    @property
    def package_name(self) -> str:
        """Import package holding the annotated functions

        Without an explicit ``package`` this is the name of the directory
        package_dir finds, so handlers import what the parser scanned.
        """
        if self.package:
            return self.package
        return self.package_dir().name

    def package_dir(self, root: Optional[Path] = None) -> Path:
        """Locate the import package under a project tree

        Looks for ``<package>/`` then ``src/<package>/``, where the
        package defaults to the project name, and falls back to the
        first directory with an ``__init__.py``.
        """
        base = Path(root) if root else self.root
        expected = self.package or self.name.replace('-', '_')
        for candidate in (base / expected, base / 'src' / expected):
            if candidate.is_dir():
                return candidate

        for parent in (base / 'src', base):
            if not parent.is_dir():
                continue
            for child in sorted(parent.iterdir()):
                if child.is_dir() and (child / '__init__.py').exists():
                    return child

        return base / expected
