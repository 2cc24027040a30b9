from fastapi import APIRouter

from keygate.routers import users, api_keys

api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(api_keys.router, prefix="/users/{user_id}/keys", tags=["api-keys"])
