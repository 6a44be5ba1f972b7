"""
api/routes/v1/profiles.py -- Community profile endpoints.

Routes:
  GET /api/v1/profiles/me -- profile of the authenticated account

Identity comes only from get_current_subject(), the same dependency any
user-scoped community route uses to resolve who is acting.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from api.models import ErrorDetail, ProfileResponse
from auth.dependencies import get_current_subject
from community.store import ProfileStore

router = APIRouter()


@router.get("/profiles/me", response_model=ProfileResponse)
def my_profile(request: Request, subject_id: str = Depends(get_current_subject)) -> ProfileResponse:
    profile_store: ProfileStore = request.app.state.profile_store
    profile = profile_store.get(subject_id)
    if profile is None:
        raise HTTPException(
            status_code=404,
            detail=ErrorDetail(code="not_found", message="Profile not found.").model_dump(),
        )
    return ProfileResponse.from_profile(profile)
