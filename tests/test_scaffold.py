import pytest

from stackwright.api.exceptions import ConfigError
from stackwright.build.parser import parse_source
from stackwright.build.scaffold import default_invoke_path, render_entry_point, render_function, render_project
from stackwright.constants import Role


@pytest.mark.parametrize("role", list(Role))
@pytest.mark.parametrize("is_local", [False, True])
def test_entry_points_are_valid_python(role, is_local):
    source = render_entry_point(
        import_path="shop.api",
        function_symbol="get_cart",
        role=role,
        is_local=is_local,
        function_name="ShopApiGetCart",
        url_path="/carts/{id}",
    )

    compile(source, "entry.py", "exec")
    assert "from shop.api import get_cart" in source
    assert "$" not in source
    entry = "def main():" if is_local else "def handler(event, context):"
    assert entry in source


def test_remote_entry_point_names_logger_and_env_prefix():
    source = render_entry_point("shop.tasks", "place_order", Role.WORKER, False,
                                function_name="ShopTasksPlaceOrder")

    assert 'Logger(service="ShopTasksPlaceOrder")' in source
    assert '"STACKWRIGHT_SECRETS_NAMES"' in source
    assert "batchItemFailures" in source


def test_local_endpoint_needs_url_path():
    with pytest.raises(ValueError):
        render_entry_point("shop.api", "get_cart", Role.ENDPOINT, True)


def test_default_invoke_path_strips_pattern_characters():
    assert default_invoke_path("/carts/{id}/items/*") == "/carts/id/items/"


def test_render_function_uses_local_name(functions):
    get_cart = functions[0]

    source = render_function(get_cart, is_local=True)

    assert 'DEFAULT_URL_PATH = "/carts/id"' in source
    assert "from shop.api import get_cart" in source


@pytest.mark.parametrize("role, module", [
    (Role.ENDPOINT, "shop/api.py"),
    (Role.WORKER, "shop/tasks.py"),
    (Role.CRON, "shop/tasks.py"),
])
def test_new_project_has_one_sample_function(role, module):
    files = render_project("shop", role)

    assert sorted(files) == sorted(["stackwright.yaml", "pyproject.toml", "shop/__init__.py", module])
    [parsed] = parse_source(files[module], module)
    assert parsed.role is role
    assert "$" not in files[module]


def test_new_project_names_an_importable_package():
    files = render_project("my.shop")

    assert files["stackwright.yaml"].startswith("name: my.shop\npackage: my_shop\n")
    assert "my_shop/api.py" in files

    with pytest.raises(ConfigError):
        render_project("1shop")
