"""Catalog API router (chart-configuration surface)."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from metric_catalog.catalog.schemas import (
    BindRequest,
    ReleaseRequest,
    ReleaseResponse,
    SelectableMetric,
    UnbindRequest,
    UnbindResponse,
)
from metric_catalog.common.security import CatalogContext, resolve_context
from metric_catalog.usage.schemas import UsageResponse

router = APIRouter(prefix="/catalog", tags=["catalog"])


def _get_service():
    from metric_catalog.deps import get_catalog_facade
    return get_catalog_facade()


def _get_db():
    from metric_catalog.deps import get_db
    return get_db()


@router.get("/metrics", response_model=list[SelectableMetric])
async def list_selectable(
    source_id: Optional[str] = Query(None),
    ctx: CatalogContext = Depends(resolve_context),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        metrics = await svc.list_selectable(session, ctx, source_id=source_id)
        return [SelectableMetric.model_validate(m) for m in metrics]


@router.post("/bind", response_model=UsageResponse)
async def bind(body: BindRequest, ctx: CatalogContext = Depends(resolve_context)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        usage = await svc.bind(
            session, ctx, body.metric_id, body.resource_type,
            body.resource_id, body.resource_name,
        )
        return UsageResponse.model_validate(usage)


@router.post("/unbind", response_model=UnbindResponse)
async def unbind(body: UnbindRequest, ctx: CatalogContext = Depends(resolve_context)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        removed = await svc.unbind(
            session, ctx, body.metric_id, body.resource_type, body.resource_id,
        )
        return UnbindResponse(removed=removed)


@router.post("/release", response_model=ReleaseResponse)
async def release_resource(body: ReleaseRequest, ctx: CatalogContext = Depends(resolve_context)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        metric_ids = await svc.release_resource(
            session, ctx, body.resource_type, body.resource_id,
        )
        return ReleaseResponse(metric_ids=metric_ids)
