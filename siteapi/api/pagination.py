"""
Pagination par curseur (keyset) des listes `/v1/*`.

Le curseur est l'encodage base64url sans padding de `"{horodatage ISO}:{id}"`, horodatage et id de
la dernière ligne de la page. La page suivante contient les lignes strictement « après » cette
position dans l'ordre `(horodatage desc, id desc)`.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, StringConstraints, ValidationError
from sqlalchemy import ColumnElement, and_, or_

from siteapi.core.http_constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from siteapi.domain.meta_values import as_utc, to_iso_string

INVALID_QUERY_ERROR = "Invalid query parameters"
INVALID_CURSOR_ERROR = "Invalid cursor parameter"


class PaginationQuery(BaseModel):
    """Paramètres de requête bruts (`limit` entier positif, `cursor` non vide après trim)."""

    model_config = ConfigDict(extra="ignore")

    limit: PositiveInt | None = None
    cursor: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)] | None = None


@dataclass(frozen=True)
class PageRequest:
    limit: int
    cursor: str | None


@dataclass(frozen=True)
class CursorPosition:
    updated_at: datetime
    id: int


class PaginationError(ValueError):
    """Paramètres de pagination invalides; `error` est le message exposé au client."""

    def __init__(self, error: str) -> None:
        super().__init__(error)
        self.error = error


def parse_pagination_query(query: Any) -> PageRequest:
    """
    Valide les paramètres et applique la limite par défaut et le plafond.

    Raises:
        PaginationError: `limit` non entier/non positif ou `cursor` vide.
    """
    try:
        parsed = PaginationQuery.model_validate(query)
    except ValidationError as err:
        raise PaginationError(INVALID_QUERY_ERROR) from err
    requested = parsed.limit if parsed.limit is not None else DEFAULT_PAGE_LIMIT
    return PageRequest(limit=min(requested, MAX_PAGE_LIMIT), cursor=parsed.cursor)


def encode_cursor(position: CursorPosition) -> str:
    raw = f"{to_iso_string(position.updated_at)}:{position.id}".encode()
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_cursor(cursor: str) -> CursorPosition | None:
    """Décode un curseur; None si l'encodage, l'id ou l'horodatage est invalide."""
    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        decoded = base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError):
        return None

    timestamp_segment, separator, id_segment = decoded.rpartition(":")
    if not separator or not timestamp_segment:
        return None
    if not (id_segment.isascii() and id_segment.isdigit()):
        return None
    cursor_id = int(id_segment)
    if cursor_id <= 0:
        return None
    try:
        updated_at = datetime.fromisoformat(timestamp_segment.replace("Z", "+00:00"))
    except ValueError:
        return None
    return CursorPosition(updated_at=as_utc(updated_at), id=cursor_id)


def resolve_cursor(page: PageRequest) -> CursorPosition | None:
    """Position de départ de la page; lève `PaginationError` si le curseur est indécodable."""
    if page.cursor is None:
        return None
    position = decode_cursor(page.cursor)
    if position is None:
        raise PaginationError(INVALID_CURSOR_ERROR)
    return position


def after_position(timestamp_column, id_column, position: CursorPosition) -> ColumnElement[bool]:
    """Condition keyset: lignes strictement après `position` en ordre décroissant."""
    return or_(
        timestamp_column < position.updated_at,
        and_(timestamp_column == position.updated_at, id_column < position.id),
    )


def split_page(rows: list, limit: int) -> tuple[list, bool]:
    """Sépare la ligne sentinelle (`limit + 1` lues) de la page retournée."""
    has_more = len(rows) > limit
    return (rows[:limit] if has_more else rows), has_more
