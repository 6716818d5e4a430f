"""Catalog facade: the read and bind surface offered to chart configuration."""

from sqlalchemy.ext.asyncio import AsyncSession

from metric_catalog.auth.capabilities import (
    READ_ORG,
    USE_METRICS,
    CapabilityChecker,
    require_capability,
)
from metric_catalog.common.enums import ResourceType
from metric_catalog.common.exceptions import StateError
from metric_catalog.common.security import CatalogContext
from metric_catalog.lifecycle.states import MetricStatus, is_selectable
from metric_catalog.metrics.models import MetricDefinitionModel
from metric_catalog.metrics.service import MetricRegistry
from metric_catalog.usage.models import MetricUsageModel
from metric_catalog.usage.service import UsageTracker


class CatalogFacade:
    """Published metrics for consumers, plus the bind/unbind callbacks."""

    def __init__(self, registry: MetricRegistry, usage: UsageTracker, checker: CapabilityChecker):
        self.registry = registry
        self.usage = usage
        self.checker = checker

    async def list_selectable(
        self,
        session: AsyncSession,
        ctx: CatalogContext,
        source_id: str | None = None,
    ) -> list[MetricDefinitionModel]:
        """PUBLISHED metrics of the caller's organization, ordered by code."""
        await require_capability(self.checker, ctx, READ_ORG)
        criteria = [
            MetricDefinitionModel.org_id == ctx.org_id,
            MetricDefinitionModel.status == MetricStatus.PUBLISHED.value,
        ]
        if source_id:
            criteria.append(MetricDefinitionModel.source_id == source_id)
        return await self.registry.metrics.find_all(
            session, *criteria, order_by=(MetricDefinitionModel.code.asc(),),
        )

    async def bind(
        self,
        session: AsyncSession,
        ctx: CatalogContext,
        metric_id: str,
        resource_type: ResourceType | str,
        resource_id: str,
        resource_name: str = "",
    ) -> MetricUsageModel:
        """Record that a resource consumes a published metric (idempotent)."""
        await require_capability(self.checker, ctx, USE_METRICS)
        metric = await self.registry.get_scoped(session, ctx.org_id, metric_id)
        if not is_selectable(metric.status):
            raise StateError(
                f"Metric '{metric.code}' is {metric.status}; only PUBLISHED metrics can be bound",
                status=metric.status,
            )
        row, _ = await self.usage.record_usage(
            session, metric.id, resource_type, resource_id, resource_name,
            ctx.org_id, actor=ctx.principal,
        )
        return row

    async def unbind(
        self,
        session: AsyncSession,
        ctx: CatalogContext,
        metric_id: str,
        resource_type: ResourceType | str,
        resource_id: str,
    ) -> bool:
        """Drop a binding. Succeeds whether or not it existed."""
        await require_capability(self.checker, ctx, USE_METRICS)
        return await self.usage.remove_usage(
            session, metric_id, resource_type, resource_id, ctx.org_id, actor=ctx.principal,
        )

    async def release_resource(
        self,
        session: AsyncSession,
        ctx: CatalogContext,
        resource_type: ResourceType | str,
        resource_id: str,
    ) -> list[str]:
        """Drop all bindings of a consumer that was itself deleted."""
        await require_capability(self.checker, ctx, USE_METRICS)
        return await self.usage.release_resource(
            session, ctx.org_id, resource_type, resource_id, actor=ctx.principal,
        )
