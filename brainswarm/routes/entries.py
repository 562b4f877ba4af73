"""
Brainswarm Backend — Entry Route Handlers
==========================================

What:  /api/teams/{team_id}/entries: CRUD, trash, restore, permanent
       delete and CSV export.
Who:   Called by the frontend board view and its export button.

`/deleted` and `/export` are declared before `/{entry_id}` so they are
not captured by the id route.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from brainswarm.database import get_db_session
from brainswarm.models.user import User
from brainswarm.schemas.common import ErrorResponse, MessageResponse
from brainswarm.schemas.entry import (
    EntryCreateRequest,
    EntryEnvelope,
    EntryListResponse,
    EntryMessageResponse,
    EntryUpdateRequest,
)
from brainswarm.security import get_current_user
from brainswarm.services.entry_service import entry_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/teams/{team_id}/entries", tags=["Entries"])

_ERRORS = {
    403: {"description": "Not allowed for this user", "model": ErrorResponse},
    404: {"description": "Team or entry not found", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=EntryListResponse,
    responses=_ERRORS,
    summary="Live entries, highest priority first",
)
async def list_entries(
    team_id: int,
    area: Optional[str] = Query(default=None, description="Only entries of this area"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EntryListResponse:
    return await entry_service.list_entries(db, user, team_id, area=area)


@router.post(
    "",
    response_model=EntryEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
    summary="Create an entry; final_prio is computed server-side",
)
async def create_entry(
    team_id: int,
    payload: EntryCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EntryEnvelope:
    return await entry_service.create_entry(db, user, team_id, payload)


@router.get(
    "/deleted",
    response_model=EntryListResponse,
    responses=_ERRORS,
    summary="Soft-deleted entries, most recently deleted first",
)
async def list_deleted_entries(
    team_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EntryListResponse:
    return await entry_service.list_deleted(db, user, team_id)


@router.get(
    "/export",
    response_class=StreamingResponse,
    responses={200: {"content": {"text/csv": {}}}, **_ERRORS},
    summary="Download live entries as CSV",
)
async def export_entries(
    team_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> StreamingResponse:
    content = await entry_service.export_csv(db, user, team_id)
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=entries.csv"},
    )


@router.get(
    "/{entry_id}",
    response_model=EntryEnvelope,
    responses=_ERRORS,
    summary="Single entry",
)
async def get_entry(
    team_id: int,
    entry_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EntryEnvelope:
    return await entry_service.get_entry(db, user, team_id, entry_id)


@router.patch(
    "/{entry_id}",
    response_model=EntryEnvelope,
    responses=_ERRORS,
    summary="Partially update an entry (creator or team admin)",
)
async def update_entry(
    team_id: int,
    entry_id: int,
    payload: EntryUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EntryEnvelope:
    return await entry_service.update_entry(db, user, team_id, entry_id, payload)


@router.delete(
    "/{entry_id}",
    response_model=MessageResponse,
    responses=_ERRORS,
    summary="Move an entry to the trash (creator or team admin)",
)
async def delete_entry(
    team_id: int,
    entry_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await entry_service.delete_entry(db, user, team_id, entry_id)


@router.post(
    "/{entry_id}/restore",
    response_model=EntryMessageResponse,
    responses=_ERRORS,
    summary="Restore an entry from the trash (creator or team admin)",
)
async def restore_entry(
    team_id: int,
    entry_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EntryMessageResponse:
    return await entry_service.restore_entry(db, user, team_id, entry_id)


@router.delete(
    "/{entry_id}/force",
    response_model=MessageResponse,
    responses=_ERRORS,
    summary="Permanently delete an entry (team admins only)",
)
async def force_delete_entry(
    team_id: int,
    entry_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await entry_service.force_delete_entry(db, user, team_id, entry_id)
