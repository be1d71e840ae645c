"""Newsdesk Backend — Tag Routes (/api/tags CRUD)."""

from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.database import get_db_session
from newsdesk.dependencies import get_page_request
from newsdesk.schemas.common import ErrorResponse, MessageResponse, Page, dump_body
from newsdesk.schemas.tag import TagCreate, TagResponse, TagUpdate
from newsdesk.services.pagination import PageRequest
from newsdesk.services.tag_service import tag_service

router = APIRouter(prefix="/api/tags", tags=["Tags"])

NOT_FOUND = {404: {"description": "Tag not found", "model": ErrorResponse}}
CONFLICT = {409: {"description": "Name already in use", "model": ErrorResponse}}


@router.get("", response_model=Page[TagResponse], response_model_exclude_unset=True)
async def list_tags(
    response: Response,
    page: PageRequest = Depends(get_page_request),
    db: AsyncSession = Depends(get_db_session),
):
    result = await tag_service.list_tags(db, page)
    response.headers["X-Total-Count"] = str(result["total"])
    return result


@router.get("/{tag_id}", response_model=TagResponse, responses=NOT_FOUND)
async def get_tag(tag_id: UUID, db: AsyncSession = Depends(get_db_session)):
    return await tag_service.get_tag(db, tag_id)


@router.post("", status_code=201, response_model=TagResponse, responses=CONFLICT)
async def create_tag(body: TagCreate, db: AsyncSession = Depends(get_db_session)):
    return await tag_service.create_tag(db, dump_body(body))


@router.put("/{tag_id}", response_model=TagResponse, responses={**NOT_FOUND, **CONFLICT})
async def update_tag(tag_id: UUID, body: TagUpdate, db: AsyncSession = Depends(get_db_session)):
    return await tag_service.update_tag(db, tag_id, dump_body(body))


@router.delete("/{tag_id}", response_model=MessageResponse, responses=NOT_FOUND)
async def delete_tag(tag_id: UUID, db: AsyncSession = Depends(get_db_session)) -> MessageResponse:
    await tag_service.delete_tag(db, tag_id)
    return MessageResponse(message="Tag deleted successfully")
