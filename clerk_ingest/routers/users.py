from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from typing import List, Optional
import logging

from clerk_ingest.models.clerk import StoredUser
from clerk_ingest.repositories.clerk_users import ClerkUserRepository
from clerk_ingest.services.intake import DEFAULT_TENANT, resolve_tenant
from clerk_ingest.utils.dependencies import get_user_repository
from clerk_ingest.utils.rate_limit import limiter

router = APIRouter(prefix="/client/user", tags=["Client"])
logger = logging.getLogger("uvicorn.error")


@router.get("", response_model=List[StoredUser], summary="List users of an application")
@limiter.limit("60/minute")
async def get_users(
    request: Request,
    limit: int = Query(50, ge=1, le=200),
    application_id: Optional[str] = Header(None, convert_underscores=False),
    repository: ClerkUserRepository = Depends(get_user_repository),
):
    tenant = resolve_tenant(application_id) if application_id else DEFAULT_TENANT
    users = await repository.list_users(tenant, limit=limit)
    logger.info(f"Listed {len(users)} users (tenant={tenant.value})", extra={"tenant": tenant.value})
    return users


@router.get("/{clerk_id}", response_model=StoredUser, summary="Fetch a user by Clerk id")
@limiter.limit("60/minute")
async def get_user(
    request: Request,
    clerk_id: str,
    application_id: Optional[str] = Header(None, convert_underscores=False),
    repository: ClerkUserRepository = Depends(get_user_repository),
):
    tenant = resolve_tenant(application_id) if application_id else DEFAULT_TENANT
    user = await repository.get_user_by_clerk_id(tenant, clerk_id)
    if not user:
        logger.info(f"User {clerk_id} not found (tenant={tenant.value})", extra={"tenant": tenant.value, "clerk_id": clerk_id})
        raise HTTPException(status_code=404, detail="User not found")
    return user
