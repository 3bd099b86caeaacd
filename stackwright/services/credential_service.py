"""Local credentials"""

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping, Optional

from ..api.exceptions import CredentialsError
from ..constants import CREDENTIALS_FILE, ENV_CREDENTIALS_PATH, USER_CONFIG_DIR

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    """Identity of the user running deployments"""
    email: str
    token: str
    expires_at: datetime

    @property
    def username(self) -> str:
        return self.email

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return self.expires_at <= now


def _parse_expiry(value: str) -> datetime:
    # fromisoformat does not accept a trailing Z before Python 3.11
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    expires_at = datetime.fromisoformat(value)
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at


class CredentialService:
    """Reads the credentials file"""

    def __init__(self,
                 path: Optional[Path] = None,
                 environ: Optional[Mapping[str, str]] = None):
        environ = os.environ if environ is None else environ

        if path is None:
            override = environ.get(ENV_CREDENTIALS_PATH)
            if override:
                path = Path(override)
            else:
                path = Path(USER_CONFIG_DIR).expanduser() / CREDENTIALS_FILE

        self.path = Path(path).expanduser()

    def load(self, now: Optional[datetime] = None) -> Credentials:
        """
        Load valid credentials

        Args:
            now: Reference time for the expiry check

        Returns:
            Credentials

        Raises:
            CredentialsError: If the file is missing, malformed or expired
        """
        if not self.path.exists():
            raise CredentialsError(f"No credentials found at {self.path}")

        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CredentialsError(f"Cannot read credentials {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise CredentialsError(f"Malformed credentials file {self.path}")

        try:
            credentials = Credentials(
                email=str(data['email']),
                token=str(data['token']),
                expires_at=_parse_expiry(str(data['expires_at'])),
            )
        except KeyError as e:
            raise CredentialsError(f"Credentials file {self.path} is missing {e}") from e
        except ValueError as e:
            raise CredentialsError(f"Invalid expiry in {self.path}: {e}") from e

        if not credentials.email:
            raise CredentialsError(f"Credentials file {self.path} has an empty email")

        if credentials.is_expired(now):
            raise CredentialsError("Credentials expired, log in again")

        logger.debug(f"Loaded credentials for {credentials.username}")
        return credentials
