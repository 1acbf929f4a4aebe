"""
Routes `/v1/posts`: liste paginée des articles actifs et lecture d'un article par slug.

La liste omet le corps markdown; le détail le renvoie (404 `not_found` si le slug est inconnu ou
l'article désactivé).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from siteapi.api.deps import get_db_session
from siteapi.api.pagination import parse_pagination_query
from siteapi.api.schemas import PostDetailResponse, PostsListResponse
from siteapi.apigw.errors import not_found
from siteapi.services.content_reader import get_post_by_slug, list_posts

router = APIRouter(prefix="/v1", tags=["content"])


@router.get("/posts", response_model=PostsListResponse)
def get_posts(request: Request, session: Session = Depends(get_db_session)):
    page = parse_pagination_query(dict(request.query_params))
    items, page_info = list_posts(session, page)
    return PostsListResponse(data=items, page=page_info)


@router.get("/posts/{slug}", response_model=PostDetailResponse)
def get_post(slug: str, session: Session = Depends(get_db_session)):
    """Retourne l'article actif `slug` avec son corps markdown."""
    post = get_post_by_slug(session, slug)
    if post is None:
        raise not_found()
    return PostDetailResponse(data=post)
