"""Route `/v1/now`: instantané de la page « now » (entrées actives et texte narratif)."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from siteapi.api.deps import get_db_session
from siteapi.api.schemas import NowSnapshotResponse
from siteapi.services.content_reader import load_now_snapshot

router = APIRouter(prefix="/v1", tags=["content"])


@router.get("/now", response_model=NowSnapshotResponse)
def get_now(session: Session = Depends(get_db_session)):
    return NowSnapshotResponse(data=load_now_snapshot(session))
