"""Exception definitions for stackwright API"""

from typing import Dict, List, Optional

from ..constants import ErrorCode


class StackwrightError(Exception):
    """Base exception for stackwright"""

    def __init__(self, message: str, error_code: str = None):
        super().__init__(message)
        self.error_code = error_code


class ConfigError(StackwrightError):
    """Configuration error"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CONFIG_ERROR)


class ProjectNotFoundError(ConfigError):
    """Project root not found error"""

    def __init__(self, start_path: str = None):
        message = "Not in a stackwright project (no stackwright.yaml found)"
        if start_path:
            message = f"{message}: {start_path}"
        super().__init__(message)
        self.error_code = ErrorCode.PROJECT_NOT_FOUND
        self.start_path = start_path


class CredentialsError(StackwrightError):
    """Missing, malformed or expired credentials"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CREDENTIALS_INVALID)


class ParseError(StackwrightError):
    """Function annotation could not be parsed"""

    def __init__(self, message: str, path: str = None, line: int = None):
        location = ""
        if path:
            location = f"{path}:{line}: " if line else f"{path}: "
        super().__init__(f"{location}{message}", ErrorCode.PARSE_FAILED)
        self.path = path
        self.line = line


class FunctionNameTooLongError(StackwrightError):
    """Deployable function name exceeds the platform limit"""

    def __init__(self, name: str, limit: int):
        message = (f"Function name is longer than {limit} characters: {name}. "
                   f"Rename the function or move it to a shallower module.")
        super().__init__(message, ErrorCode.FUNCTION_NAME_TOO_LONG)
        self.name = name


class BuildError(StackwrightError):
    """Build workspace preparation error"""

    def __init__(self, message: str, path: str = None):
        if path:
            message = f"{message} ({path})"
        super().__init__(message, ErrorCode.BUILD_FAILED)
        self.path = path


class ChecksumError(BuildError):
    """Checksum store could not be read or written"""

    def __init__(self, message: str, path: str = None):
        super().__init__(message, path)
        self.error_code = ErrorCode.CHECKSUM_IO_FAILED


class CompileError(BuildError):
    """Dependency installation for a function failed"""

    def __init__(self, function_name: str, stderr: str = ""):
        message = f"Failed to build {function_name}"
        if stderr:
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)
        self.error_code = ErrorCode.COMPILE_FAILED
        self.function_name = function_name


class BundleError(StackwrightError):
    """Bundle creation error"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.BUNDLE_FAILED)


class UploadError(StackwrightError):
    """Artifact upload error"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.UPLOAD_FAILED)


class SynthesisError(StackwrightError):
    """Infrastructure template could not be synthesized"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.SYNTHESIS_FAILED)


class MissingQueueError(SynthesisError):
    """Worker function has no queue bound to it"""

    def __init__(self, function_name: str):
        super().__init__(f"Worker {function_name} has no queue resource defined")
        self.error_code = ErrorCode.MISSING_QUEUE
        self.function_name = function_name


class DuplicateResourceError(SynthesisError):
    """Two template resources share a logical name"""

    def __init__(self, logical_name: str):
        super().__init__(f"Duplicate resource logical name: {logical_name}")
        self.error_code = ErrorCode.DUPLICATE_RESOURCE
        self.logical_name = logical_name


class ProvisionError(StackwrightError):
    """Remote provisioning call failed"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.PROVISION_FAILED)


class DeploymentFailedError(ProvisionError):
    """Deployment reached a failed terminal state"""

    def __init__(self, errors: Optional[List[str]] = None):
        self.errors = list(errors or [])
        message = "Deployment failed"
        if self.errors:
            message = f"{message}: " + "; ".join(self.errors)
        super().__init__(message)
        self.error_code = ErrorCode.DEPLOYMENT_FAILED


class DocumentShapeError(StackwrightError):
    """Document value does not have the expected shape"""

    def __init__(self, path: str, expected: str, actual: str):
        message = f"Expected {expected} at '{path or '<root>'}', got {actual}"
        super().__init__(message, ErrorCode.DOCUMENT_SHAPE)
        self.path = path
        self.expected = expected
        self.actual = actual


class PipelineError(StackwrightError):
    """One or more function jobs failed"""

    def __init__(self, failures: Dict[str, str]):
        self.failures = dict(failures)
        names = ", ".join(sorted(self.failures))
        super().__init__(f"{len(self.failures)} function(s) failed: {names}",
                         ErrorCode.PIPELINE_FAILED)
