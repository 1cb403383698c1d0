from fastapi import APIRouter

from fileshare.api.api_v1.endpoints import files, guest, links, users

api_router = APIRouter()
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(files.router, prefix="/files", tags=["files"])
api_router.include_router(guest.router, prefix="/guest", tags=["guest"])
api_router.include_router(links.router, tags=["links"])
