"""
Admin routes: dashboard counters, recent activity, monthly reports,
punch purge and application settings.
"""

import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ponto.core.config import settings
from ponto.core.exceptions import (
    EmailDeliveryError,
    MissingRecipientError,
    ReportGenerationError,
    StorageError,
    UnknownEmployeeError,
)
from ponto.core.middleware import require_role
from ponto.db.models import User
from ponto.db.session import get_db
from ponto.db.store import SqlRecordStore, SqlSettingsStore
from ponto.reports.orchestrator import REPORT_EMAIL_SETTING, ReportOrchestrator
from ponto.schemas.admin import (
    ActivityStats,
    MonthlyReportRequest,
    PurgeResponse,
    RecentPunch,
    ReportEmailResponse,
    SettingResponse,
    SettingUpdate,
)
from ponto.services.email import SmtpEmailSender

logger = logging.getLogger(__name__)

router = APIRouter()

_ALLOWED_SETTINGS = {REPORT_EMAIL_SETTING}


def _storage_unavailable(exc: StorageError) -> HTTPException:
    logger.error("Storage failure: %s", exc)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Banco de dados indisponível. Tente novamente.",
    )


def _report_error_detail(exc: ReportGenerationError) -> str:
    if exc.kind == "pdf-engine-unavailable":
        return "Gerador de PDF indisponível no servidor"
    return "Erro ao gerar relatório"


@router.get(
    "/stats",
    response_model=ActivityStats,
    summary="Today's activity counters",
)
async def get_stats(
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role("admin")),
) -> ActivityStats:
    try:
        counts = await SqlRecordStore(db).activity_counts(datetime.now(timezone.utc).date())
    except StorageError as exc:
        raise _storage_unavailable(exc)
    return ActivityStats(**counts)


@router.get(
    "/recent-records",
    response_model=list[RecentPunch],
    summary="Most recent punches across all employees",
)
async def get_recent_records(
    limit: int = Query(default=20, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role("admin")),
) -> list[RecentPunch]:
    try:
        rows = await SqlRecordStore(db).recent_punch_events(limit)
    except StorageError as exc:
        raise _storage_unavailable(exc)
    return [
        RecentPunch(
            id=event.id,
            employee_id=event.employee_id,
            employee_name=employee.display_name,
            kind=event.kind.value,
            timestamp=event.timestamp,
            location=event.location,
        )
        for event, employee in rows
    ]


@router.delete(
    "/punches",
    response_model=PurgeResponse,
    summary="Delete all punches of a month, optionally for one employee",
)
async def purge_punches(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=2000, le=9999),
    employee_id: uuid.UUID | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role("admin")),
) -> PurgeResponse:
    employee_ids = [employee_id] if employee_id is not None else None
    try:
        deleted = await SqlRecordStore(db).delete_punch_events(month, year, employee_ids)
    except StorageError as exc:
        raise _storage_unavailable(exc)
    logger.info("Admin %s purged %d punches for %02d/%d", current_user.email, deleted, month, year)
    return PurgeResponse(deleted=deleted)


@router.post(
    "/reports/monthly",
    summary="Generate the monthly attendance report (download or e-mail)",
    responses={
        200: {
            "content": {"text/csv": {}, "application/pdf": {}},
            "description": "Report file, or a confirmation when send_email is true",
        }
    },
)
async def monthly_report(
    body: MonthlyReportRequest,
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role("admin")),
):
    orchestrator = ReportOrchestrator(
        SqlRecordStore(db),
        app_name=settings.APP_NAME,
        settings_store=SqlSettingsStore(db),
        email_sender=SmtpEmailSender(),
        max_location_chars=settings.REPORT_LOCATION_MAX_CHARS,
    )

    try:
        if body.send_email:
            recipient = await orchestrator.send_monthly_report(
                body.month, body.year, body.employee_id, body.format
            )
            return ReportEmailResponse(
                message="Relatório enviado por email com sucesso",
                recipient=recipient,
            )

        report = await orchestrator.generate_monthly_report(
            body.month, body.year, body.employee_id, body.format
        )
    except MissingRecipientError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email de destino dos relatórios não configurado",
        )
    except EmailDeliveryError as exc:
        logger.error("Report e-mail delivery failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Falha ao enviar email",
        )
    except ReportGenerationError as exc:
        logger.error("Report generation failed (%s): %s", exc.kind, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_report_error_detail(exc),
        )
    except UnknownEmployeeError as exc:
        logger.error("Punches reference unknown employee %s", exc.employee_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Erro ao gerar relatório",
        )
    except StorageError as exc:
        raise _storage_unavailable(exc)

    logger.info(
        "Monthly report %s generated (%d rows)", report.filename, report.row_count
    )
    return Response(
        content=report.content,
        media_type=report.media_type,
        headers={"Content-Disposition": f'attachment; filename="{report.filename}"'},
    )


@router.get(
    "/settings/{key}",
    response_model=SettingResponse,
    summary="Read an application setting",
)
async def get_setting(
    key: str,
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role("admin")),
) -> SettingResponse:
    if key not in _ALLOWED_SETTINGS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Configuração não encontrada",
        )
    try:
        value = await SqlSettingsStore(db).get(key)
    except StorageError as exc:
        raise _storage_unavailable(exc)
    return SettingResponse(key=key, value=value)


@router.post(
    "/settings",
    response_model=SettingResponse,
    summary="Create or update an application setting",
)
async def update_setting(
    body: SettingUpdate,
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role("admin")),
) -> SettingResponse:
    try:
        setting = await SqlSettingsStore(db).set(body.key, str(body.value))
    except StorageError as exc:
        raise _storage_unavailable(exc)
    return SettingResponse(key=setting.key, value=setting.value)
