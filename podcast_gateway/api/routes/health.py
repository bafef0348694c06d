from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/healt")
def health_check() -> dict:
    """Liveness probe.

    The short path is part of the public contract and is kept as-is for
    existing monitors. No upstream call is made.

    Returns:
        dict: ``{"message": "API gateway is running"}``.
    """

    return {"message": "API gateway is running"}
