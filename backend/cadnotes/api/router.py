from __future__ import annotations

from fastapi import APIRouter

from .endpoints import auth, cad, health, notes, oauth

api_router = APIRouter()

api_router.include_router(auth.router, tags=["auth"])
api_router.include_router(notes.router, tags=["notes"])
api_router.include_router(oauth.router, tags=["oauth"])
api_router.include_router(cad.router, tags=["onshape"])
api_router.include_router(health.router, prefix="/health", tags=["health"])
