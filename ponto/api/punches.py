"""
Employee punch routes: clock in/out, today's punches, monthly history.

Only the authenticated user's own punches are visible here; the admin
views live in ``ponto.api.admin``.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ponto.core.exceptions import StorageError
from ponto.core.middleware import get_current_user
from ponto.db.models import User
from ponto.db.session import get_db
from ponto.db.store import SqlRecordStore
from ponto.reports.domain import PunchEvent, PunchKind
from ponto.reports.orchestrator import month_bounds
from ponto.schemas.punch import PunchCreate, PunchEventResponse
from ponto.services.geolocation import reverse_geocode

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_response(event: PunchEvent) -> PunchEventResponse:
    return PunchEventResponse(
        id=event.id,
        employee_id=event.employee_id,
        kind=event.kind.value,
        timestamp=event.timestamp,
        location=event.location,
        latitude=event.latitude,
        longitude=event.longitude,
    )


def _storage_unavailable(exc: StorageError) -> HTTPException:
    logger.error("Storage failure: %s", exc)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Banco de dados indisponível. Tente novamente.",
    )


@router.post(
    "/",
    response_model=PunchEventResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record an entry or exit punch for the current user",
)
async def create_punch(
    body: PunchCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PunchEventResponse:
    location = body.location
    if location is None and body.latitude is not None and body.longitude is not None:
        location = await reverse_geocode(body.latitude, body.longitude)

    store = SqlRecordStore(db)
    try:
        event = await store.create_punch_event(
            employee_id=current_user.id,
            kind=PunchKind(body.kind),
            timestamp=datetime.now(timezone.utc),
            location=location,
            latitude=body.latitude,
            longitude=body.longitude,
        )
    except StorageError as exc:
        raise _storage_unavailable(exc)

    logger.info("Punch %s recorded for %s", event.kind.value, current_user.email)
    return _to_response(event)


@router.get(
    "/today",
    response_model=list[PunchEventResponse],
    summary="Current user's punches for today (UTC)",
)
async def get_today_punches(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[PunchEventResponse]:
    now = datetime.now(timezone.utc)
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    end = now.replace(hour=23, minute=59, second=59, microsecond=999999)

    try:
        events = await SqlRecordStore(db).query_punch_events(current_user.id, start, end)
    except StorageError as exc:
        raise _storage_unavailable(exc)
    return [_to_response(e) for e in events]


@router.get(
    "/monthly",
    response_model=list[PunchEventResponse],
    summary="Current user's punches for a month",
)
async def get_monthly_punches(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=2000, le=9999),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[PunchEventResponse]:
    start, end = month_bounds(month, year)
    try:
        events = await SqlRecordStore(db).query_punch_events(current_user.id, start, end)
    except StorageError as exc:
        raise _storage_unavailable(exc)
    return [_to_response(e) for e in events]
