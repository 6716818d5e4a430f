"""Audit chain API router."""

from fastapi import APIRouter, Depends, Query

from metric_catalog.audit.schemas import AuditChainVerification, AuditEventResponse
from metric_catalog.common.schemas import PaginatedResponse
from metric_catalog.common.security import CatalogContext, resolve_context

router = APIRouter()


def _get_service():
    from metric_catalog.deps import get_audit_service
    return get_audit_service()


def _get_db():
    from metric_catalog.deps import get_db
    return get_db()


@router.get("/metrics/{metric_id}/audit", response_model=PaginatedResponse)
async def get_audit_events(
    metric_id: str,
    event_type: str | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    ctx: CatalogContext = Depends(resolve_context),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        events, total = await svc.get_events(
            session, ctx, metric_id, event_type=event_type,
            offset=(page - 1) * page_size, limit=page_size,
        )
        return PaginatedResponse.build(
            [AuditEventResponse.model_validate(e) for e in events],
            total, page, page_size,
        )


@router.get("/metrics/{metric_id}/audit/verify", response_model=AuditChainVerification)
async def verify_audit_chain(metric_id: str, ctx: CatalogContext = Depends(resolve_context)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        result = await svc.verify_chain(session, ctx, metric_id)
        return AuditChainVerification(**result)
