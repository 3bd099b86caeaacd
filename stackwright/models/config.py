"""Configuration data models"""

from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, Optional

from ..constants import (
    DEFAULT_BUILD_PATH,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_REGION,
    DEFAULT_RUNTIME,
)


@dataclass
class BuildConfig:
    """Settings shared by every build and deploy component

    Constructed once per command by ``ConfigService`` and passed
    explicitly to the components that need it.
    """

    bucket: str = ""
    region: str = DEFAULT_REGION
    kms_key_id: str = ""
    hosted_zone_id: str = ""
    build_path: Path = field(default_factory=lambda: Path(DEFAULT_BUILD_PATH).expanduser())
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    poll_interval: float = DEFAULT_POLL_INTERVAL
    runtime: str = DEFAULT_RUNTIME
    endpoint_url: Optional[str] = None

    def __post_init__(self):
        """Normalize and validate values"""
        self.build_path = Path(self.build_path).expanduser()
        self.max_concurrency = int(self.max_concurrency)
        self.poll_interval = float(self.poll_interval)

        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        if self.poll_interval < 0:
            raise ValueError("poll_interval must not be negative")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BuildConfig':
        """Create BuildConfig from dictionary, ignoring unknown keys"""
        known = {name for name in cls.__dataclass_fields__}
        return cls(**{key: value for key, value in data.items()
                      if key in known and value is not None})

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = asdict(self)
        data['build_path'] = str(self.build_path)
        return data

    def client_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for creating boto3 clients"""
        kwargs: Dict[str, Any] = {'region_name': self.region}
        if self.endpoint_url:
            kwargs['endpoint_url'] = self.endpoint_url
        return kwargs
