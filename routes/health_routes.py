"""
Health check endpoint.

GET /health — checks that the user store answers.
Rules:
- store ping failure → "unhealthy" (503) — nothing works without it.
- otherwise "healthy" (200).
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from schemas.dto.responses.common import HealthResponse

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def health_check(request: Request) -> JSONResponse:
    checks: dict[str, str] = {}

    try:
        ok = await request.app.state.user_repository.ping()
        checks["store"] = "ok" if ok else "error"
    except Exception:
        checks["store"] = "error"

    healthy = checks["store"] == "ok"
    body = HealthResponse(status="healthy" if healthy else "unhealthy", checks=checks)
    return JSONResponse(status_code=200 if healthy else 503, content=body.model_dump())
