"""Route `/v1/uses`: sections « uses » actives avec leurs items `{label, value}`."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from siteapi.api.deps import get_db_session
from siteapi.api.schemas import UsesSnapshotResponse
from siteapi.services.content_reader import load_uses_snapshot

router = APIRouter(prefix="/v1", tags=["content"])


@router.get("/uses", response_model=UsesSnapshotResponse)
def get_uses(session: Session = Depends(get_db_session)):
    return UsesSnapshotResponse(data=load_uses_snapshot(session))
