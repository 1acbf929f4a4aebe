"""Égalité structurelle de valeurs JSON.

Les payloads relus depuis la base (JSONB) et ceux construits depuis le snapshot sont comparés par
valeur, récursivement, selon le type JSON de chaque nœud: null, booléen, nombre, chaîne, tableau
ordonné, objet à clés chaîne.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_NULL = "null"
_BOOL = "bool"
_NUMBER = "number"
_STRING = "string"
_ARRAY = "array"
_OBJECT = "object"


def json_kind(value: Any) -> str:
    """Retourne l'étiquette JSON d'une valeur Python décodée.

    `bool` est testé avant les nombres: en Python `True == 1`, en JSON ce sont deux types distincts.
    """
    if value is None:
        return _NULL
    if isinstance(value, bool):
        return _BOOL
    if isinstance(value, int | float):
        return _NUMBER
    if isinstance(value, str):
        return _STRING
    if isinstance(value, list | tuple):
        return _ARRAY
    if isinstance(value, Mapping):
        return _OBJECT
    raise TypeError(f"Not a JSON value: {type(value).__name__}")


def json_equal(left: Any, right: Any) -> bool:
    """Compare deux valeurs JSON par structure et par valeur."""
    kind = json_kind(left)
    if kind != json_kind(right):
        return False
    if kind in (_NULL, _BOOL, _NUMBER, _STRING):
        return left == right
    if kind == _ARRAY:
        if len(left) != len(right):
            return False
        return all(json_equal(a, b) for a, b in zip(left, right, strict=True))
    if set(left.keys()) != set(right.keys()):
        return False
    for key in left:
        if not isinstance(key, str):
            raise TypeError(f"JSON object keys must be strings, got {type(key).__name__}")
        if not json_equal(left[key], right[key]):
            return False
    return True
