"""Usage API router: impact analysis for a metric."""

from fastapi import APIRouter, Depends, Query

from metric_catalog.common.schemas import PaginatedResponse
from metric_catalog.common.security import CatalogContext, resolve_context
from metric_catalog.metrics.schemas import MetricResponse
from metric_catalog.usage.schemas import UsageResponse

router = APIRouter()


def _get_service():
    from metric_catalog.deps import get_usage_tracker
    return get_usage_tracker()


def _get_db():
    from metric_catalog.deps import get_db
    return get_db()


@router.get("/metrics/{metric_id}/usage", response_model=PaginatedResponse)
async def list_usage(
    metric_id: str,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    ctx: CatalogContext = Depends(resolve_context),
):
    svc = _get_service()
    db = _get_db()
    offset = (page - 1) * page_size
    async with db.get_session() as session:
        items, total = await svc.list_usage(
            session, ctx, metric_id, offset=offset, limit=page_size,
        )
        return PaginatedResponse.build(
            [UsageResponse.model_validate(u) for u in items],
            total, page, page_size,
        )


@router.post("/metrics/{metric_id}/usage/reconcile", response_model=MetricResponse)
async def reconcile_usage(metric_id: str, ctx: CatalogContext = Depends(resolve_context)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        metric = await svc.reconcile(session, ctx, metric_id)
        return MetricResponse.model_validate(metric)
