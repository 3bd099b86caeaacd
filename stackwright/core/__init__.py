"""Core build, synthesis and deployment components"""

from .bundler import bundle_function, create_bundle
from .compiler import compile_function
from .naming import artifact_key, escape_resource_name, secret_storage_name, stack_name
from .pipeline import Pipeline
from .provisioner import Provisioner
from .status import StatusPoller, classify_events
from .synthesizer import TemplateSynthesizer, prefixed

__all__ = [
    "bundle_function",
    "create_bundle",
    "compile_function",
    "artifact_key",
    "escape_resource_name",
    "secret_storage_name",
    "stack_name",
    "Pipeline",
    "Provisioner",
    "StatusPoller",
    "classify_events",
    "TemplateSynthesizer",
    "prefixed",
]
