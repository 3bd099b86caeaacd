"""Configuration management service"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import jsonschema
import yaml

from ..api.exceptions import ConfigError, DocumentShapeError, ProjectNotFoundError
from ..constants import (
    ENV_BUCKET,
    ENV_BUILD_PATH,
    ENV_CONFIG_PATH,
    ENV_HOSTED_ZONE_ID,
    ENV_KMS_KEY_ID,
    ENV_MAX_CONCURRENCY,
    ENV_POLL_INTERVAL,
    ENV_REGION,
    ENV_RUNTIME,
    PROJECT_CONFIG_FILE,
    USER_CONFIG_DIR,
    USER_CONFIG_FILE,
)
from ..models.config import BuildConfig
from ..models.project import Project

logger = logging.getLogger(__name__)

# Environment variables overriding user config keys
ENV_OVERRIDES = {
    ENV_BUCKET: 'bucket',
    ENV_REGION: 'region',
    ENV_KMS_KEY_ID: 'kms_key_id',
    ENV_HOSTED_ZONE_ID: 'hosted_zone_id',
    ENV_BUILD_PATH: 'build_path',
    ENV_MAX_CONCURRENCY: 'max_concurrency',
    ENV_POLL_INTERVAL: 'poll_interval',
    ENV_RUNTIME: 'runtime',
}

PROJECT_SCHEMA = {
    "type": "object",
    "required": ["name"],
    "properties": {
        "name": {"type": "string", "pattern": "^[A-Za-z0-9][A-Za-z0-9_.-]*$"},
        "package": {"type": "string"},
        "kvdb": {
            "type": "array",
            "items": {
                "oneOf": [
                    {"type": "string", "minLength": 1},
                    {
                        "type": "object",
                        "required": ["name"],
                        "properties": {"name": {"type": "string", "minLength": 1}},
                    },
                ],
            },
        },
        "sqldb": {"type": "boolean"},
        "domain": {"type": ["string", "null"]},
        "environment": {
            "type": "object",
            "additionalProperties": {"type": ["string", "number", "boolean"]},
        },
    },
}


def _read_yaml(path: Path) -> Any:
    """Read a YAML file, expanding environment variables first"""
    try:
        with open(path, 'r') as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    content = os.path.expandvars(content)

    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e


class ConfigService:
    """Loads the user build configuration and project configuration"""

    def __init__(self,
                 config_path: Optional[Path] = None,
                 environ: Optional[Mapping[str, str]] = None):
        """Initialize config service

        Args:
            config_path: User config file (defaults to ~/.stackwright/config.yaml)
            environ: Environment used for overrides (defaults to os.environ)
        """
        self.environ = os.environ if environ is None else environ

        if config_path is None:
            override = self.environ.get(ENV_CONFIG_PATH)
            if override:
                config_path = Path(override)
            else:
                config_path = Path(USER_CONFIG_DIR).expanduser() / USER_CONFIG_FILE

        self.config_path = Path(config_path).expanduser()

    def load_user_config(self) -> Dict[str, Any]:
        """Load the user config file; a missing file gives an empty dict"""
        if not self.config_path.exists():
            logger.debug(f"No user config at {self.config_path}")
            return {}

        data = _read_yaml(self.config_path)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"{self.config_path} must contain a mapping")
        return data

    def load_build_config(self, **overrides) -> BuildConfig:
        """
        Build the configuration passed to every component

        Precedence, lowest first: defaults, user config file,
        environment variables, explicit overrides.

        Args:
            **overrides: Values set on the command line; None is ignored

        Returns:
            BuildConfig

        Raises:
            ConfigError: If a value is invalid
        """
        data = self.load_user_config()

        for variable, key in ENV_OVERRIDES.items():
            value = self.environ.get(variable)
            if value:
                data[key] = value

        data.update({key: value for key, value in overrides.items() if value is not None})

        try:
            return BuildConfig.from_dict(data)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    def load_project(self, root: Path) -> Project:
        """
        Load and validate stackwright.yaml

        Args:
            root: Project root directory

        Returns:
            Project

        Raises:
            ProjectNotFoundError: If the project config file is missing
            ConfigError: If the file is invalid
        """
        root = Path(root)
        path = root / PROJECT_CONFIG_FILE
        if not path.exists():
            raise ProjectNotFoundError(str(root))

        data = _read_yaml(path)
        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a mapping")

        try:
            jsonschema.validate(data, PROJECT_SCHEMA)
        except jsonschema.ValidationError as e:
            location = ".".join(str(p) for p in e.absolute_path)
            where = f" at '{location}'" if location else ""
            raise ConfigError(f"Invalid {PROJECT_CONFIG_FILE}{where}: {e.message}") from e

        try:
            return Project.from_dict(data, root)
        except DocumentShapeError as e:
            raise ConfigError(f"Invalid {PROJECT_CONFIG_FILE}: {e}") from e
