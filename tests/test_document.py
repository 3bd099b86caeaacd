import pytest

from stackwright.api.exceptions import DocumentShapeError
from stackwright.models.document import Document


def test_typed_accessors():
    doc = Document({"name": "shop", "count": 2, "ratio": 1, "on": True, "items": ["a"]})

    assert doc.require("name").as_str() == "shop"
    assert doc.require("count").as_int() == 2
    assert doc.require("ratio").as_float() == 1.0
    assert doc.require("on").as_bool() is True
    assert [item.as_str() for item in doc.require("items").as_list()] == ["a"]


def test_shape_error_names_path():
    doc = Document({"project": {"dependencies": "requests"}})

    with pytest.raises(DocumentShapeError) as excinfo:
        doc.at("project", "dependencies").as_list()

    assert excinfo.value.path == "project.dependencies"
    assert excinfo.value.expected == "list"
    assert excinfo.value.actual == "str"


def test_bool_is_not_an_int():
    with pytest.raises(DocumentShapeError):
        Document(True).as_int()


def test_missing_keys():
    doc = Document({"a": {"b": None}})

    assert doc.get("missing") is None
    assert doc.find("a", "b", "c") is None
    assert doc.str_or("missing", "fallback") == "fallback"
    with pytest.raises(DocumentShapeError, match="a.x"):
        doc.at("a", "x")


def test_list_child_paths():
    doc = Document({"items": [{"name": 1}]})

    [item] = doc.require("items").as_list()

    with pytest.raises(DocumentShapeError, match=r"items\[0\]\.name"):
        item.require("name").as_str()
