"""Health check and uploaded image serving."""

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import FileResponse

from ..utils.uploads import resolve_upload

router = APIRouter(prefix="/api", tags=["system"])

VERSION = "1.0.0"


@router.get("/health")
def health():
    return {
        'status': 'healthy',
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'message': 'PetHub Backend is running successfully!',
        'version': VERSION,
    }


@router.get("/uploads/{filename}")
def serve_upload(filename: str):
    path = resolve_upload(filename)
    return FileResponse(path, headers={"Cache-Control": "public, max-age=31536000"})
