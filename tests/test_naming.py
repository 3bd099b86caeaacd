import pytest

from stackwright.api.exceptions import FunctionNameTooLongError, SynthesisError
from stackwright.core.naming import (
    artifact_key,
    escape_resource_name,
    secret_storage_name,
    stack_name,
)
from stackwright.core.synthesizer import prefixed
from stackwright.models.function import function_name_for


@pytest.mark.parametrize("path, function, expected", [
    ("src/users/api.py", "get_user", "UsersApiGetUser"),
    ("shop/api.py", "get_cart", "ShopApiGetCart"),
    ("shop/order-flow/v1.py", "run", "ShopOrderFlowV1Run"),
])
def test_function_name_for(path, function, expected):
    assert function_name_for(path, function) == expected


def test_local_name_gets_suffix():
    assert function_name_for("shop/api.py", "get_cart", is_local=True) == "ShopApiGetCartLocal"


def test_function_name_length_limit():
    with pytest.raises(FunctionNameTooLongError):
        function_name_for("pkg/" + "very_long_module_name/" * 4 + "mod.py", "handler")


def test_escape_resource_name():
    assert escape_resource_name("dev.ops-team_1@example.com") == (
        "devDOTopsHYPHENteamUNDRSC1ATexampleDOTcom"
    )


def test_derived_names():
    assert stack_name("a@b.io", "shop") == "aATbDOTio-shop"
    assert secret_storage_name("a@b.io", "shop", "API_KEY") == "aATbDOTio-shop-API_KEY"
    assert artifact_key("a@b.io", "my-shop", "ShopApiGetCart") == (
        "aATbDOTio/myHYPHENshop/ShopApiGetCart.zip"
    )


def test_artifact_key_carries_bundle_checksum():
    checksum = "0123456789abcdef" + "f" * 48

    key = artifact_key("a@b.io", "shop", "ShopApiGetCart", checksum)

    assert key == "aATbDOTio/shop/ShopApiGetCart-0123456789abcdef.zip"
    assert key != artifact_key("a@b.io", "shop", "ShopApiGetCart", "1" * 64)


def test_prefixed_names_do_not_collide_across_users_and_projects():
    names = {
        prefixed("a@b.io", "shop", ["Cart"]),
        prefixed("a@b.io", "shop2", ["Cart"]),
        prefixed("a.b@io", "shop", ["Cart"]),
        prefixed("a@b.io", "shop", ["Cart2"]),
    }

    assert len(names) == 4
    assert all(name.isalnum() for name in names)


def test_prefixed_rejects_non_alphanumeric_parts():
    with pytest.raises(SynthesisError):
        prefixed("a@b.io", "shop", ["has space"])
