"""Metric definition API router (management UI surface)."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from metric_catalog.common.schemas import PaginatedResponse
from metric_catalog.common.security import CatalogContext, resolve_context
from metric_catalog.lifecycle.states import MetricStatus
from metric_catalog.metrics.schemas import (
    MetricCreate,
    MetricDeleteResponse,
    MetricResponse,
    MetricUpdate,
)

router = APIRouter(prefix="/metrics", tags=["metrics"])


def _get_registry():
    from metric_catalog.deps import get_metric_registry
    return get_metric_registry()


def _get_lifecycle():
    from metric_catalog.deps import get_lifecycle_controller
    return get_lifecycle_controller()


def _get_db():
    from metric_catalog.deps import get_db
    return get_db()


@router.post("", response_model=MetricResponse, status_code=201)
async def create_metric(body: MetricCreate, ctx: CatalogContext = Depends(resolve_context)):
    svc = _get_registry()
    db = _get_db()
    async with db.get_session() as session:
        metric = await svc.create(session, ctx, **body.model_dump())
        return MetricResponse.model_validate(metric)


@router.get("", response_model=PaginatedResponse)
async def search_metrics(
    keyword: Optional[str] = Query(None),
    status: Optional[MetricStatus] = Query(None),
    source_id: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    ctx: CatalogContext = Depends(resolve_context),
):
    svc = _get_registry()
    db = _get_db()
    offset = (page - 1) * page_size
    async with db.get_session() as session:
        items, total = await svc.search(
            session, ctx,
            keyword=keyword, status=status, source_id=source_id,
            offset=offset, limit=page_size,
        )
        return PaginatedResponse.build(
            [MetricResponse.model_validate(m) for m in items],
            total, page, page_size,
        )


@router.get("/{metric_id}", response_model=MetricResponse)
async def get_metric(metric_id: str, ctx: CatalogContext = Depends(resolve_context)):
    svc = _get_registry()
    db = _get_db()
    async with db.get_session() as session:
        metric = await svc.get(session, ctx, metric_id)
        return MetricResponse.model_validate(metric)


@router.patch("/{metric_id}", response_model=MetricResponse)
async def update_metric(
    metric_id: str, body: MetricUpdate, ctx: CatalogContext = Depends(resolve_context),
):
    svc = _get_registry()
    db = _get_db()
    async with db.get_session() as session:
        metric = await svc.update(
            session, ctx, metric_id, **body.model_dump(exclude_none=True)
        )
        return MetricResponse.model_validate(metric)


@router.delete("/{metric_id}", response_model=MetricDeleteResponse)
async def delete_metric(
    metric_id: str,
    force: bool = Query(False),
    ctx: CatalogContext = Depends(resolve_context),
):
    svc = _get_registry()
    db = _get_db()
    async with db.get_session() as session:
        purged = await svc.delete(session, ctx, metric_id, force=force)
        return MetricDeleteResponse(id=metric_id, usage_removed=purged)


# ── Lifecycle ──

@router.post("/{metric_id}/publish", response_model=MetricResponse)
async def publish_metric(metric_id: str, ctx: CatalogContext = Depends(resolve_context)):
    svc = _get_lifecycle()
    db = _get_db()
    async with db.get_session() as session:
        metric = await svc.publish(session, ctx, metric_id)
        return MetricResponse.model_validate(metric)


@router.post("/{metric_id}/archive", response_model=MetricResponse)
async def archive_metric(
    metric_id: str,
    guard_usage: bool = Query(False),
    ctx: CatalogContext = Depends(resolve_context),
):
    svc = _get_lifecycle()
    db = _get_db()
    async with db.get_session() as session:
        metric = await svc.archive(session, ctx, metric_id, guard_usage=guard_usage)
        return MetricResponse.model_validate(metric)
