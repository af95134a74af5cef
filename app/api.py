"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.schemas import ErrorResponse, PowerUsageReport
from services.errors import PowerUsageError
from services.power_usage import PowerUsageService, build_default_service, parse_request

router = APIRouter()


def get_service() -> PowerUsageService:
    return build_default_service()


@router.get(
    "/api/v1/power-usage",
    response_model=PowerUsageReport,
    responses={
        200: {"content": {"text/csv": {}}},
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Daily energy usage per address for instances matching a regex.",
)
async def power_usage(
    target: Optional[str] = Query(None, description="Regex matched against the instance label."),
    date: Optional[str] = Query(None, description="Date in WIB, YYYY-MM-DD."),
    time: Optional[str] = Query(None, description="Clock time in WIB, HH:MM."),
    csv: Optional[str] = Query(None, description="Return CSV instead of JSON when 'true'."),
    service: PowerUsageService = Depends(get_service),
) -> Response:
    try:
        request = parse_request(target=target, date=date, time=time, csv=csv)
        body, content_type = await service.handle(request)
    except PowerUsageError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return Response(content=body, media_type=content_type)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
