from __future__ import annotations

import asyncio

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from cadnotes.config import settings
from cadnotes.db.base import create_request_supabase_client

router = APIRouter()


@router.get("")
async def health_check():
    """Liveness probe."""
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "healthy",
            "service": "cadnotes",
            "version": "0.1.0"
        }
    )


@router.get("/ready")
async def readiness_check():
    """Readiness probe: can we reach the notes table, is Onshape configured."""
    db_status = "connected"
    try:
        client = create_request_supabase_client()
        await asyncio.to_thread(lambda: client.table("notes").select("id").limit(1).execute())
    except Exception as e:
        db_status = f"error: {str(e)}"

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "ready",
            "database": db_status,
            "onshape_oauth": "configured" if settings.onshape_client_id else "missing client id",
        }
    )
