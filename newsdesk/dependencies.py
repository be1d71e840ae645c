"""
Newsdesk Backend — FastAPI Dependencies
=========================================

What:  Providers for the per-request objects route handlers need: the
       content store, services bound to it, the page request and the
       authenticated user.
How:   The content store is created once in the application factory and
       kept on app.state; services are cheap wrappers built per request.
       Tests swap the store through app.state or dependency_overrides.

Auth:
    get_optional_user  bearer token if present and valid, else None
    get_current_user   401 without a valid token
    require_admin      403 for non-admin users
"""

import logging
import uuid
from typing import Optional

from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.database import get_db_session
from newsdesk.exceptions import AuthenticationError, PermissionDeniedError
from newsdesk.models import User
from newsdesk.security import decode_access_token
from newsdesk.services.auth_service import auth_service
from newsdesk.services.blog_service import BlogService
from newsdesk.services.category_service import CategoryService
from newsdesk.services.content_store import ContentStore
from newsdesk.services.media_service import MediaService
from newsdesk.services.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, PageRequest
from newsdesk.services.upload_service import UploadService

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


# ── Storage & Services ────────────────────────────────────────────────────
def get_content_store(request: Request) -> ContentStore:
    return request.app.state.content_store


def get_media_service(store: ContentStore = Depends(get_content_store)) -> MediaService:
    return MediaService(store)


def get_blog_service(media: MediaService = Depends(get_media_service)) -> BlogService:
    return BlogService(media)


def get_category_service(media: MediaService = Depends(get_media_service)) -> CategoryService:
    return CategoryService(media)


def get_upload_service(store: ContentStore = Depends(get_content_store)) -> UploadService:
    return UploadService(store)


def get_page_request(
    page: int = Query(default=1, ge=1, description="1-based page number"),
    limit: int = Query(
        default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Items per page"
    ),
) -> PageRequest:
    return PageRequest(page=page, limit=limit)


# ── Authentication ────────────────────────────────────────────────────────
async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> Optional[User]:
    if credentials is None:
        return None
    claims = decode_access_token(credentials.credentials)
    if not claims or not claims.get("sub"):
        return None
    try:
        user_id = uuid.UUID(str(claims["sub"]))
    except ValueError:
        return None
    return await auth_service.get_user(db, user_id)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    user: Optional[User] = Depends(get_optional_user),
) -> User:
    if credentials is None:
        raise AuthenticationError(message="Authentication required")
    if user is None:
        raise AuthenticationError(message="Invalid or expired token")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        logger.info("User %s denied admin-only operation", user.id)
        raise PermissionDeniedError(message="Admin access required")
    return user
