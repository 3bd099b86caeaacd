"""Project secrets: local sources and the remote parameter store"""

import logging
import os
import re
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from botocore.exceptions import BotoCoreError, ClientError

from ..api.exceptions import ConfigError, StackwrightError
from ..constants import ENV_SECRET_PREFIX, LOCAL_SECRETS_FILE
from ..core.naming import secret_storage_name
from ..models.config import BuildConfig
from ..models.project import Project

logger = logging.getLogger(__name__)

ORIGINAL_NAME_TAG = "original_name"
SECRET_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]+$")


def parse_env_file(text: str) -> Dict[str, str]:
    """
    Parse KEY=VALUE lines

    Blank lines and ``#`` comments are skipped, an ``export`` prefix is
    allowed, and matching single or double quotes around a value are
    removed.

    Args:
        text: File content

    Returns:
        Mapping of names to values, in file order
    """
    values = {}
    for number, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        if line.startswith('export '):
            line = line[len('export '):].lstrip()

        if '=' not in line:
            raise ConfigError(f"{LOCAL_SECRETS_FILE}:{number}: expected KEY=VALUE")

        key, value = line.split('=', 1)
        key = key.strip()
        value = value.strip()

        if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
            value = value[1:-1]
        elif ' #' in value:
            value = value.split(' #', 1)[0].rstrip()

        if not SECRET_NAME_PATTERN.match(key):
            raise ConfigError(f"{LOCAL_SECRETS_FILE}:{number}: invalid name '{key}'")
        values[key] = value
    return values


class SecretService:
    """Reads project secrets and syncs them to the parameter store"""

    def __init__(self,
                 project: Project,
                 username: str,
                 config: BuildConfig,
                 ssm_client=None,
                 environ: Optional[Mapping[str, str]] = None):
        """
        Initialize secret service

        Args:
            project: Project owning the secrets
            username: Owner of the project
            config: Build configuration (KMS key for encryption)
            ssm_client: boto3 SSM client, required for remote operations
            environ: Environment overlaid on the local file
        """
        self.project = project
        self.username = username
        self.config = config
        self.ssm = ssm_client
        self.environ = os.environ if environ is None else environ

    @property
    def env_file(self) -> Path:
        return self.project.root / LOCAL_SECRETS_FILE

    def local(self) -> Dict[str, str]:
        """
        Secrets available on this machine

        Values from the project's .env file are overridden by
        ``STACKWRIGHT_SECRET_<NAME>`` environment variables.
        """
        secrets: Dict[str, str] = {}
        if self.env_file.exists():
            try:
                secrets.update(parse_env_file(self.env_file.read_text()))
            except OSError as e:
                raise ConfigError(f"Cannot read {self.env_file}: {e}") from e

        for key, value in self.environ.items():
            if key.startswith(ENV_SECRET_PREFIX) and len(key) > len(ENV_SECRET_PREFIX):
                secrets[key[len(ENV_SECRET_PREFIX):]] = value

        return secrets

    def storage_name(self, name: str) -> str:
        return secret_storage_name(self.username, self.project.name, name)

    def storage_names(self, names: Sequence[str]) -> List[str]:
        return [self.storage_name(name) for name in names]

    def _require_client(self):
        if self.ssm is None:
            raise StackwrightError("Secret sync requires an SSM client")
        return self.ssm

    def sync(self, secrets: Optional[Dict[str, str]] = None) -> List[str]:
        """
        Push secrets to the parameter store

        Each secret is stored encrypted under its storage name and
        tagged with its original name.

        Args:
            secrets: Secrets to push (defaults to the local secrets)

        Returns:
            Storage names of the pushed secrets

        Raises:
            StackwrightError: If a secret cannot be written
        """
        ssm = self._require_client()
        secrets = self.local() if secrets is None else secrets
        names = []

        for name, value in secrets.items():
            storage_name = self.storage_name(name)
            request = {
                'Name': storage_name,
                'Value': value,
                'Type': 'SecureString',
                'Overwrite': True,
            }
            if self.config.kms_key_id:
                request['KeyId'] = self.config.kms_key_id

            try:
                ssm.put_parameter(**request)
                ssm.add_tags_to_resource(
                    ResourceType='Parameter',
                    ResourceId=storage_name,
                    Tags=[{'Key': ORIGINAL_NAME_TAG, 'Value': name}],
                )
            except (BotoCoreError, ClientError) as e:
                raise StackwrightError(f"Failed to sync secret {name}: {e}") from e

            logger.debug(f"Synced secret {name} as {storage_name}")
            names.append(storage_name)

        return names

    def fetch(self, storage_names: Sequence[str]) -> Dict[str, str]:
        """
        Read secrets back from the parameter store

        Args:
            storage_names: Storage names to read

        Returns:
            Mapping of original names to decrypted values

        Raises:
            StackwrightError: If a secret cannot be read
        """
        ssm = self._require_client()
        secrets = {}

        for storage_name in storage_names:
            try:
                parameter = ssm.get_parameter(Name=storage_name, WithDecryption=True)
                tags = ssm.list_tags_for_resource(
                    ResourceType='Parameter',
                    ResourceId=storage_name,
                ).get('TagList', [])
            except (BotoCoreError, ClientError) as e:
                raise StackwrightError(f"Failed to fetch secret {storage_name}: {e}") from e

            original = next((tag['Value'] for tag in tags if tag['Key'] == ORIGINAL_NAME_TAG),
                            storage_name)
            secrets[original] = parameter['Parameter']['Value']

        return secrets
