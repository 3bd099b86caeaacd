"""Typed access to loosely-structured documents

Manifests, project configuration and template bodies are nested
mappings of strings, numbers, booleans and lists. ``Document`` wraps
one such value and exposes accessors that raise ``DocumentShapeError``
when the value is not of the requested kind, instead of failing later
with an unrelated ``KeyError`` or ``AttributeError``.
"""

from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..api.exceptions import DocumentShapeError


def _kind(value: Any) -> str:
    """Name the kind of a raw document value"""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "str"
    if isinstance(value, (list, tuple)):
        return "list"
    if isinstance(value, dict):
        return "dict"
    return type(value).__name__


class Document:
    """A node of a nested document with typed accessors"""

    def __init__(self, value: Any, path: str = ""):
        self._value = value
        self._path = path

    @property
    def raw(self) -> Any:
        """Underlying Python value"""
        return self._value

    @property
    def path(self) -> str:
        """Dotted path of this node from the document root"""
        return self._path

    @property
    def kind(self) -> str:
        return _kind(self._value)

    def _child_path(self, key: Any) -> str:
        if isinstance(key, int):
            return f"{self._path}[{key}]"
        return f"{self._path}.{key}" if self._path else str(key)

    def _expect(self, expected: str) -> None:
        if self.kind != expected:
            raise DocumentShapeError(self._path, expected, self.kind)

    def as_str(self) -> str:
        self._expect("str")
        return self._value

    def as_int(self) -> int:
        self._expect("int")
        return self._value

    def as_float(self) -> float:
        if self.kind == "int":
            return float(self._value)
        self._expect("float")
        return self._value

    def as_bool(self) -> bool:
        self._expect("bool")
        return self._value

    def as_list(self) -> List['Document']:
        self._expect("list")
        return [Document(item, self._child_path(i)) for i, item in enumerate(self._value)]

    def as_dict(self) -> Dict[str, 'Document']:
        self._expect("dict")
        return {key: Document(value, self._child_path(key))
                for key, value in self._value.items()}

    def is_null(self) -> bool:
        return self._value is None

    def get(self, key: str) -> Optional['Document']:
        """Get a child of a mapping node, or None when the key is absent

        Raises:
            DocumentShapeError: If this node is not a mapping
        """
        self._expect("dict")
        if key not in self._value:
            return None
        return Document(self._value[key], self._child_path(key))

    def require(self, key: str) -> 'Document':
        """Get a child of a mapping node, raising when the key is absent"""
        child = self.get(key)
        if child is None:
            raise DocumentShapeError(self._child_path(key), "value", "missing key")
        return child

    def at(self, *keys: str) -> 'Document':
        """Walk nested mappings, raising on the first missing key"""
        node = self
        for key in keys:
            node = node.require(key)
        return node

    def find(self, *keys: str) -> Optional['Document']:
        """Walk nested mappings, returning None on the first missing key"""
        node = self
        for key in keys:
            if node.kind != "dict":
                return None
            node = node.get(key)
            if node is None:
                return None
        return node

    def str_or(self, key: str, default: Optional[str] = None) -> Optional[str]:
        child = self.get(key)
        return default if child is None or child.is_null() else child.as_str()

    def bool_or(self, key: str, default: Optional[bool] = None) -> Optional[bool]:
        child = self.get(key)
        return default if child is None or child.is_null() else child.as_bool()

    def items(self) -> Iterator[Tuple[str, 'Document']]:
        return iter(self.as_dict().items())

    def __contains__(self, key: str) -> bool:
        return self.kind == "dict" and key in self._value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Document):
            return self._value == other._value
        return NotImplemented

    def __repr__(self) -> str:
        return f"Document({self._value!r}, path={self._path!r})"
