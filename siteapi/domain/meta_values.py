"""Helpers de conversion des horodatages et des valeurs de la table `meta`."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def as_utc(value: datetime) -> datetime:
    """Ramène un datetime en UTC; un datetime naïf (SQLite) est supposé déjà en UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def truncate_to_millis(value: datetime) -> datetime:
    """Tronque à la milliseconde (précision des curseurs et des valeurs meta)."""
    utc = as_utc(value)
    return utc.replace(microsecond=utc.microsecond // 1000 * 1000)


def to_iso_string(value: datetime | str | None) -> str | None:
    """Format ISO-8601 UTC à la milliseconde avec suffixe `Z` (ex: 2026-02-20T00:00:00.000Z)."""
    if isinstance(value, datetime):
        utc = as_utc(value)
        return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"
    if isinstance(value, str):
        return value
    return None


def to_epoch_millis(value: datetime) -> int:
    """Instant en millisecondes depuis l'epoch (comparaison à la milliseconde)."""
    return (as_utc(value) - _EPOCH) // timedelta(milliseconds=1)


def with_sort_offset(base: datetime, index: int) -> datetime:
    """Encode la position `index` dans l'horodatage: base - index millisecondes."""
    return base - timedelta(milliseconds=index)


def latest_timestamp(timestamps: Iterable[datetime]) -> datetime | None:
    """Plus récent des instants fournis, None pour une séquence vide."""
    values = [as_utc(ts) for ts in timestamps]
    if not values:
        return None
    return max(values)


def is_record(value: Any) -> bool:
    return isinstance(value, dict)


def extract_string_meta_value(meta_value: Any) -> str | None:
    """Lit une valeur meta chaîne, directe ou enveloppée sous la forme {"value": "..."}."""
    if isinstance(meta_value, str):
        return meta_value
    if is_record(meta_value):
        inner = meta_value.get("value")
        if isinstance(inner, str):
            return inner
    return None
