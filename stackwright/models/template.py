"""Infrastructure template models"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List

from .document import Document
from ..api.exceptions import DuplicateResourceError


@dataclass(frozen=True)
class CfnResource:
    """One named declaration of the infrastructure template"""
    name: str
    body: Dict[str, Any]

    @property
    def type(self) -> str:
        return Document(self.body).require('Type').as_str()


class Template:
    """Ordered collection of template resources

    Resources keep insertion order so that serializing the same
    inputs always yields the same bytes.
    """

    def __init__(self, resources: Iterable[CfnResource] = ()):
        self._resources: Dict[str, CfnResource] = {}
        self.extend(resources)

    def add(self, resource: CfnResource) -> None:
        """Append a resource

        Raises:
            DuplicateResourceError: If the logical name is already taken
        """
        if resource.name in self._resources:
            raise DuplicateResourceError(resource.name)
        self._resources[resource.name] = resource

    def extend(self, resources: Iterable[CfnResource]) -> None:
        for resource in resources:
            self.add(resource)

    def get(self, name: str) -> CfnResource:
        return self._resources[name]

    @property
    def names(self) -> List[str]:
        return list(self._resources)

    def __contains__(self, name: str) -> bool:
        return name in self._resources

    def __iter__(self) -> Iterator[CfnResource]:
        return iter(self._resources.values())

    def __len__(self) -> int:
        return len(self._resources)

    def to_dict(self) -> Dict[str, Any]:
        return {"Resources": {r.name: r.body for r in self._resources.values()}}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)
