import secrets
from typing import Annotated
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from keygate.database import get_db
from keygate.config import settings
from keygate.services import APIKeyService, UserService


async def verify_admin_secret(
    x_admin_secret: Annotated[str | None, Header()] = None,
    authorization: Annotated[str | None, Header()] = None,
) -> bool:
    """
    Dependency for verifying admin access.

    Accepts either:
    - X-Admin-Secret header
    - Authorization: Bearer <token> header
    """
    token = x_admin_secret
    if not token and authorization:
        if authorization.startswith("Bearer "):
            token = authorization[7:]

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Use constant-time comparison to prevent timing attacks
    if not secrets.compare_digest(token, settings.ADMIN_SECRET):
        logger.warning("Invalid admin authentication attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return True


async def get_api_key_service(db: AsyncSession = Depends(get_db)) -> APIKeyService:
    return APIKeyService(db)


async def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


# Type aliases for cleaner dependency injection
AdminAuth = Annotated[bool, Depends(verify_admin_secret)]
KeyService = Annotated[APIKeyService, Depends(get_api_key_service)]
Users = Annotated[UserService, Depends(get_user_service)]
