from pathlib import Path

import pytest

from stackwright.api.exceptions import ConfigError, ProjectNotFoundError
from stackwright.models.project import KvTable
from stackwright.services.config_service import ConfigService


@pytest.fixture
def user_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "bucket: from-file\n"
        "region: eu-west-1\n"
        "max_concurrency: 3\n"
        "build_path: ${HOME_DIR}/build\n"
    )
    return path


def test_defaults_without_user_config(tmp_path):
    config = ConfigService(tmp_path / "missing.yaml", environ={}).load_build_config()

    assert config.bucket == ""
    assert config.max_concurrency == 10
    assert config.build_path == Path("~/.stackwright/build").expanduser()


def test_precedence(user_config, monkeypatch):
    monkeypatch.setenv("HOME_DIR", "/srv")
    environ = {"STACKWRIGHT_BUCKET": "from-env", "STACKWRIGHT_MAX_CONCURRENCY": "5"}

    config = ConfigService(user_config, environ=environ).load_build_config(bucket="from-flag",
                                                                            region=None)

    assert config.bucket == "from-flag"
    assert config.region == "eu-west-1"
    assert config.max_concurrency == 5
    assert config.build_path == Path("/srv/build")


def test_invalid_values(tmp_path):
    environ = {"STACKWRIGHT_MAX_CONCURRENCY": "0"}

    with pytest.raises(ConfigError, match="max_concurrency"):
        ConfigService(tmp_path / "missing.yaml", environ=environ).load_build_config()


def test_config_path_from_environment(tmp_path):
    service = ConfigService(environ={"STACKWRIGHT_CONFIG": str(tmp_path / "c.yaml")})

    assert service.config_path == tmp_path / "c.yaml"


def test_user_config_must_be_mapping(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- a\n- b\n")

    with pytest.raises(ConfigError, match="mapping"):
        ConfigService(path, environ={}).load_user_config()


def test_load_project(project):
    assert project.name == "shop"
    assert project.tables == [KvTable(name="carts")]
    assert project.environment == {"STAGE": "prod"}
    assert project.package_name == "shop"
    assert project.domain is None


def test_load_project_with_table_objects(make_project):
    root = make_project(config="name: shop\nkvdb:\n  - name: carts\n  - orders\ndomain: example.org\n")

    project = ConfigService(environ={}).load_project(root)

    assert [t.name for t in project.tables] == ["carts", "orders"]
    assert project.domain == "example.org"


@pytest.mark.parametrize("config, message", [
    ("kvdb: []\n", "name"),
    ("name: 'bad name'\n", "name"),
    ("name: shop\nkvdb: carts\n", "kvdb"),
    ("name: shop\nsqldb: 'yes'\n", "sqldb"),
    ("name: shop\nenvironment:\n  A: [1]\n", "environment.A"),
    ("name: [shop\n", "Invalid YAML"),
])
def test_invalid_project_config(make_project, config, message):
    root = make_project(config=config)

    with pytest.raises(ConfigError, match=message):
        ConfigService(environ={}).load_project(root)


def test_missing_project_config(tmp_path):
    with pytest.raises(ProjectNotFoundError):
        ConfigService(environ={}).load_project(tmp_path)
