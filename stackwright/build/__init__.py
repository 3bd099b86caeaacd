# stackwright/build/__init__.py
"""Build workspace preparation: parsing, scaffolding and manifests"""

from .checksums import ChecksumStore
from .engine import BuildEngine, merge_exports, strip_annotations
from .manifest import ManifestPatcher
from .parser import parse_project, parse_source
from .scaffold import render_entry_point, render_function

__all__ = [
    "ChecksumStore",
    "BuildEngine",
    "merge_exports",
    "strip_annotations",
    "ManifestPatcher",
    "parse_project",
    "parse_source",
    "render_entry_point",
    "render_function",
]
