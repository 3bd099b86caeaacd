"""Global constants for stackwright"""

from enum import Enum

APP_NAME = "stackwright"

# Project identification
PROJECT_CONFIG_FILE = "stackwright.yaml"
PROJECT_MANIFEST_FILE = "pyproject.toml"
LOCAL_SECRETS_FILE = ".env"

# User-level files
USER_CONFIG_DIR = "~/.stackwright"
USER_CONFIG_FILE = "config.yaml"
CREDENTIALS_FILE = "credentials"

# Build workspace
DEFAULT_BUILD_PATH = "~/.stackwright/build"
CHECKSUMS_FILE = ".checksums"
BUILD_CACHE_DIR = "target"
BIN_DIR = "bin"
LAMBDA_TARGET_DIR = "target/lambda"
WHEELS_DIR = "target/wheels"
MAX_FUNCTION_NAME_LENGTH = 64
LOCAL_SUFFIX = "Local"

# Directories never copied into the build workspace
CLONE_SKIP_DIRS = {
    ".git",
    ".github",
    BUILD_CACHE_DIR,
    "__pycache__",
    ".venv",
    ".stackwright",
    ".pytest_cache",
}

# Paths under the build root the cleanup pass never touches
CLEANUP_WHITELIST = {
    CHECKSUMS_FILE,
    BUILD_CACHE_DIR,
}
CLEANUP_WHITELIST_SUFFIXES = (".lock",)

# Pipeline defaults
DEFAULT_MAX_CONCURRENCY = 10
DEFAULT_POLL_INTERVAL = 3  # seconds
DEFAULT_RUNTIME = "python3.12"
DEFAULT_REGION = "us-east-1"

# Environment variable prefix shared by generated entry points and templates
ENV_PREFIX = "STACKWRIGHT"
ENV_SECRETS_NAMES = f"{ENV_PREFIX}_SECRETS_NAMES"
ENV_USERNAME = f"{ENV_PREFIX}_USERNAME"
ENV_QUEUE_PREFIX = f"{ENV_PREFIX}_QUEUE_"
ENV_SECRET_PREFIX = f"{ENV_PREFIX}_SECRET_"
ENV_INVOKE_PAYLOAD = f"{ENV_PREFIX}_INVOKE_PAYLOAD"
ENV_INVOKE_HEADERS = f"{ENV_PREFIX}_INVOKE_HEADERS"
ENV_INVOKE_URL_PATH = f"{ENV_PREFIX}_INVOKE_URL_PATH"

# Configuration overrides
ENV_CONFIG_PATH = f"{ENV_PREFIX}_CONFIG"
ENV_CREDENTIALS_PATH = f"{ENV_PREFIX}_CREDENTIALS_PATH"
ENV_BUCKET = f"{ENV_PREFIX}_BUCKET"
ENV_REGION = f"{ENV_PREFIX}_REGION"
ENV_KMS_KEY_ID = f"{ENV_PREFIX}_KMS_KEY_ID"
ENV_HOSTED_ZONE_ID = f"{ENV_PREFIX}_HOSTED_ZONE_ID"
ENV_BUILD_PATH = f"{ENV_PREFIX}_BUILD_PATH"
ENV_MAX_CONCURRENCY = f"{ENV_PREFIX}_MAX_CONCURRENCY"
ENV_POLL_INTERVAL = f"{ENV_PREFIX}_POLL_INTERVAL"
ENV_RUNTIME = f"{ENV_PREFIX}_RUNTIME"

# Decorators recognised in user code, and the macro-only distribution to drop
DECORATOR_PACKAGE = "stackwright"
DEV_DEPENDENCY_GROUPS = ("dev", "test", "tests", "lint")

# Pinned runtime dependencies added to the build manifest, per role
COMMON_DEPENDENCIES = ["boto3==1.35.36"]
ROLE_DEPENDENCIES = {
    "endpoint": ["aws-lambda-powertools==3.2.0"],
    "worker": ["aws-lambda-powertools==3.2.0"],
    "cron": ["aws-lambda-powertools==3.2.0"],
}

# Entry point groups written into the build manifest
HANDLERS_ENTRY_POINT_GROUP = "stackwright.handlers"
MANIFEST_TOOL_TABLE = "stackwright"

# Infrastructure template
STACK_RESOURCE_TYPE = "AWS::CloudFormation::Stack"
USER_INITIATED_REASON = "User Initiated"
CLOUDFRONT_HOSTED_ZONE_ID = "Z2FDTNDATAQYW2"
ORIGIN_REQUEST_POLICY_ID = "b689b0a8-53d0-40ab-baf2-68738e2966ac"
CACHE_POLICY_ID = "4135ea2d-6df8-44a3-9df3-4b5a84be39ad"
NO_UPDATES_MESSAGE = "No updates are to be performed"

STACK_SUCCESS_STATUSES = {
    "UPDATE_COMPLETE",
    "CREATE_COMPLETE",
    "DELETE_COMPLETE",
}
STACK_FAILURE_STATUSES = {
    "UPDATE_ROLLBACK_COMPLETE",
    "UPDATE_ROLLBACK_FAILED",
    "CREATE_FAILED",
    "UPDATE_FAILED",
    "DELETE_FAILED",
    "ROLLBACK_COMPLETE",
    "ROLLBACK_FAILED",
}

# Logging
LOG_FORMAT = "%(message)s"

# Emoji for output
EMOJI_SUCCESS = "✅"
EMOJI_ERROR = "❌"
EMOJI_WARNING = "⚠️"


class Role(Enum):
    """Execution shape of a deployed function"""
    ENDPOINT = "endpoint"
    WORKER = "worker"
    CRON = "cron"


# Error codes
class ErrorCode:
    CONFIG_ERROR = "SW001"
    PROJECT_NOT_FOUND = "SW002"
    CREDENTIALS_INVALID = "SW003"
    PARSE_FAILED = "SW004"
    FUNCTION_NAME_TOO_LONG = "SW005"
    BUILD_FAILED = "SW006"
    CHECKSUM_IO_FAILED = "SW007"
    COMPILE_FAILED = "SW008"
    BUNDLE_FAILED = "SW009"
    UPLOAD_FAILED = "SW010"
    SYNTHESIS_FAILED = "SW011"
    MISSING_QUEUE = "SW012"
    DUPLICATE_RESOURCE = "SW013"
    PROVISION_FAILED = "SW014"
    DEPLOYMENT_FAILED = "SW015"
    DOCUMENT_SHAPE = "SW016"
    PIPELINE_FAILED = "SW017"
