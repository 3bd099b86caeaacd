"""Services layer for stackwright"""

from .config_service import ConfigService, PROJECT_SCHEMA
from .credential_service import CredentialService, Credentials
from .deploy_service import DeployService
from .invoke_service import InvokeService, find_function
from .secret_service import SecretService, parse_env_file

__all__ = [
    "ConfigService",
    "PROJECT_SCHEMA",
    "CredentialService",
    "Credentials",
    "DeployService",
    "InvokeService",
    "find_function",
    "SecretService",
    "parse_env_file",
]
