from fastapi import APIRouter

from . import auth, blobs, contacts, drafts, health, messages, user

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(user.router)
api_router.include_router(contacts.router)
api_router.include_router(blobs.bodies_router)
api_router.include_router(blobs.files_router)
api_router.include_router(drafts.router)
api_router.include_router(messages.router)

__all__ = ["api_router"]
