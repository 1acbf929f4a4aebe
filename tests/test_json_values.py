"""Tests de l'égalité structurelle des valeurs JSON."""

import pytest

from siteapi.domain.json_values import json_equal, json_kind


def test_objects_compare_by_key_set_not_order():
    assert json_equal({"a": 1, "b": [1, 2]}, {"b": [1, 2], "a": 1})
    assert not json_equal({"a": 1}, {"a": 1, "b": None})


def test_arrays_are_ordered():
    assert json_equal([1, "x", None], (1, "x", None))
    assert not json_equal([1, 2], [2, 1])
    assert not json_equal([1], [1, 1])


def test_booleans_are_not_numbers():
    assert json_kind(True) == "bool"
    assert not json_equal(True, 1)
    assert not json_equal(0, False)
    assert json_equal(1, 1.0)


def test_nested_payloads():
    left = {"source": "site_content", "items": [{"label": "Editor", "value": "VS Code"}]}
    right = {"items": [{"value": "VS Code", "label": "Editor"}], "source": "site_content"}
    assert json_equal(left, right)
    right["items"][0]["value"] = "Vim"
    assert not json_equal(left, right)


def test_non_json_value_is_rejected():
    with pytest.raises(TypeError):
        json_kind({1, 2})
