"""
Route `/v1/projects`: liste paginée des projets actifs.

Paramètres de requête: `limit` (défaut 20, plafonné à 50) et `cursor` (issu de `page.nextCursor`).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from siteapi.api.deps import get_db_session
from siteapi.api.pagination import parse_pagination_query
from siteapi.api.schemas import ProjectsListResponse
from siteapi.services.content_reader import list_projects

router = APIRouter(prefix="/v1", tags=["content"])


@router.get("/projects", response_model=ProjectsListResponse)
def get_projects(request: Request, session: Session = Depends(get_db_session)):
    page = parse_pagination_query(dict(request.query_params))
    items, page_info = list_projects(session, page)
    return ProjectsListResponse(data=items, page=page_info)
