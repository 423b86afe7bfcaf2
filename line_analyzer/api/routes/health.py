"""Health check endpoints."""

from fastapi import APIRouter

router = APIRouter()


@router.get("/health")
def health() -> dict[str, str]:
    """Lightweight health endpoint used by the hosting platform."""

    return {"status": "ok"}
