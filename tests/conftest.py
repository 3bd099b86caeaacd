from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional

import pytest

from stackwright.build.parser import parse_project
from stackwright.constants import WHEELS_DIR
from stackwright.core import pipeline as pipeline_module
from stackwright.models.config import BuildConfig
from stackwright.models.function import Function
from stackwright.models.project import Project
from stackwright.services.config_service import ConfigService

USERNAME = "dev@example.com"

PYPROJECT = """\
[project]
name = "shop"
version = "0.1.0"
dependencies = ["requests>=2.0", "stackwright>=0.4"]

[project.optional-dependencies]
dev = ["pytest"]
extra = ["orjson"]
"""

PROJECT_CONFIG = """\
name: shop
kvdb:
  - carts
environment:
  STAGE: prod
"""

API_MODULE = '''\
from stackwright import endpoint


@endpoint(url_path="/carts/{id}", queues=["orders"], environment={"CACHE": "on"})
def get_cart(event, secrets, queues):
    return {"id": event["path"]}


@endpoint(
    url_path="/health",
)
def health(event, secrets, queues):
    return "ok"
'''

TASKS_MODULE = '''\
import stackwright


@stackwright.worker(queue_alias="orders", concurrency=4)
def place_order(records, secrets, queues):
    return []


@stackwright.cron(schedule="rate(1 hour)")
def expire_carts(event, secrets, queues):
    pass
'''


@pytest.fixture(autouse=True)
def aws_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Fake AWS credentials so no test can reach a real account"""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    for name in ("STACKWRIGHT_BUCKET", "STACKWRIGHT_REGION", "STACKWRIGHT_CONFIG",
                 "STACKWRIGHT_CREDENTIALS_PATH", "STACKWRIGHT_BUILD_PATH"):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def project_wheel(monkeypatch: pytest.MonkeyPatch) -> List[Path]:
    """Stand in for the pip wheel build of every pipeline run"""
    workspaces = []

    async def fake_build_wheel(workspace):
        workspaces.append(Path(workspace))
        return Path(workspace) / WHEELS_DIR / "shop-0.1.0-py3-none-any.whl"

    monkeypatch.setattr(pipeline_module, "build_wheel", fake_build_wheel)
    return workspaces


@pytest.fixture
def make_project(tmp_path: Path) -> Callable[..., Path]:
    """Write a sample project and return its root"""

    def _make(files: Optional[Dict[str, str]] = None,
              config: str = PROJECT_CONFIG,
              pyproject: str = PYPROJECT) -> Path:
        root = tmp_path / "shop"
        sources = {
            "pyproject.toml": pyproject,
            "stackwright.yaml": config,
            "shop/__init__.py": '"""Shop package"""\n',
            "shop/api.py": API_MODULE,
            "shop/tasks.py": TASKS_MODULE,
            "README.md": "# shop\n",
        }
        sources.update(files or {})
        for relative, content in sources.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return root

    return _make


@pytest.fixture
def build_config(tmp_path: Path) -> BuildConfig:
    return BuildConfig(
        bucket="artifacts",
        region="us-east-1",
        kms_key_id="key-1234",
        hosted_zone_id="Z123456",
        build_path=tmp_path / "build",
        max_concurrency=4,
        poll_interval=0,
    )


@pytest.fixture
def project(make_project) -> Project:
    root = make_project()
    return ConfigService(environ={}).load_project(root)


@pytest.fixture
def functions(project: Project, build_config: BuildConfig):
    workspace = build_config.build_path / project.name
    return [Function.from_parsed(parsed, project, workspace)
            for parsed in parse_project(project)]
