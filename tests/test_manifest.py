import pytest
import toml

from stackwright.api.exceptions import BuildError
from stackwright.build.manifest import ManifestPatcher, requirement_name
from stackwright.constants import HANDLERS_ENTRY_POINT_GROUP

from conftest import PYPROJECT


@pytest.mark.parametrize("requirement, name", [
    ("requests>=2.0", "requests"),
    ("Foo_Bar.baz[extra]==1", "foo-bar-baz"),
    ("stackwright ; python_version > '3.8'", "stackwright"),
])
def test_requirement_name(requirement, name):
    assert requirement_name(requirement) == name


def test_patch_rewrites_dependencies_and_entry_points(project, functions):
    patched = toml.loads(ManifestPatcher(PYPROJECT).patch(project, functions))

    dependencies = patched["project"]["dependencies"]
    assert "requests>=2.0" in dependencies
    assert not any(d.startswith("stackwright") for d in dependencies)
    assert any(d.startswith("boto3==") for d in dependencies)
    assert any(d.startswith("aws-lambda-powertools==") for d in dependencies)
    assert patched["project"]["optional-dependencies"] == {"extra": ["orjson"]}

    handlers = patched["project"]["entry-points"][HANDLERS_ENTRY_POINT_GROUP]
    assert handlers["ShopApiGetCart"] == "shop.bin.ShopApiGetCart:handler"
    assert patched["project"]["scripts"]["ShopApiGetCartLocal"] == "shop.bin.ShopApiGetCartLocal:main"


def test_patch_records_function_metadata(project, functions):
    patched = toml.loads(ManifestPatcher(PYPROJECT).patch(project, functions))

    table = patched["tool"]["stackwright"]
    assert table["project"] == "shop"
    assert table["kvdb"] == {"carts": {"name": "carts"}}
    assert table["sqldb"] is False

    worker = table["functions"]["ShopTasksPlaceOrder"]
    assert worker["function"]["role"] == "worker"
    assert worker["queue"]["ShopTasksPlaceOrder"] == {"alias": "orders", "concurrency": 4, "fifo": False}
    assert table["functions"]["ShopTasksPlaceOrderLocal"]["function"]["is_local"] is True

    endpoint = table["functions"]["ShopApiGetCart"]
    assert endpoint["environment"] == {"CACHE": "on", "STAGE": "prod"}


def test_only_dev_optional_dependencies_dropped_entirely(project, functions):
    manifest = '[project]\nname = "shop"\n\n[project.optional-dependencies]\ndev = ["pytest"]\n'

    patched = toml.loads(ManifestPatcher(manifest).patch(project, functions))

    assert "optional-dependencies" not in patched["project"]


def test_malformed_manifests(project, functions):
    with pytest.raises(BuildError):
        ManifestPatcher("[project\n")

    with pytest.raises(BuildError, match="Malformed manifest"):
        ManifestPatcher('[tool]\nx = 1\n').patch(project, functions)

    with pytest.raises(BuildError, match="project.dependencies"):
        ManifestPatcher('[project]\ndependencies = "requests"\n').patch(project, functions)


def test_patch_records_sql_flag(project, functions):
    project.sqldb = True

    patched = toml.loads(ManifestPatcher(PYPROJECT).patch(project, functions))

    assert patched["tool"]["stackwright"]["sqldb"] is True


def test_patch_limits_package_discovery(project, functions):
    patched = toml.loads(ManifestPatcher(PYPROJECT).patch(project, functions))

    assert patched["tool"]["setuptools"]["packages"] == {
        "find": {"where": ["."], "include": ["shop", "shop.*"]},
    }


def test_patch_keeps_declared_packages(project, functions):
    manifest = PYPROJECT + '\n[tool.setuptools]\npackages = ["shop"]\n'

    patched = toml.loads(ManifestPatcher(manifest).patch(project, functions))

    assert patched["tool"]["setuptools"]["packages"] == ["shop"]
