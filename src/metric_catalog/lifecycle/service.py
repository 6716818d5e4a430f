"""Lifecycle controller: publish and archive metric definitions."""

from sqlalchemy.ext.asyncio import AsyncSession

from metric_catalog.audit.service import METRIC_ARCHIVED, METRIC_PUBLISHED
from metric_catalog.auth.capabilities import MANAGE_ORG, CapabilityChecker, require_capability
from metric_catalog.common.logging import get_logger
from metric_catalog.common.security import CatalogContext
from metric_catalog.lifecycle.states import MetricStatus, ensure_transition
from metric_catalog.metrics.models import MetricDefinitionModel
from metric_catalog.metrics.policy import MetricPolicy
from metric_catalog.metrics.service import MetricRegistry
from metric_catalog.usage.service import UsageTracker

logger = get_logger("lifecycle")


class LifecycleController:
    """Drives DRAFT -> PUBLISHED -> ARCHIVED through the transition table."""

    def __init__(
        self,
        registry: MetricRegistry,
        policy: MetricPolicy,
        checker: CapabilityChecker,
        usage: UsageTracker,
        audit_service=None,
    ):
        self.registry = registry
        self.policy = policy
        self.checker = checker
        self.usage = usage
        self.audit_service = audit_service

    async def publish(
        self, session: AsyncSession, ctx: CatalogContext, metric_id: str,
    ) -> MetricDefinitionModel:
        """Publish a draft after re-validating its expression.

        The data source may have changed since the draft was written, so a
        draft that validated at creation can still be refused here.
        """
        await require_capability(self.checker, ctx, MANAGE_ORG)
        metric = await self.registry.get_scoped(session, ctx.org_id, metric_id)
        target = ensure_transition(metric.status, MetricStatus.PUBLISHED)

        await self.policy.validate_expression(metric.expression, metric.source_id)
        return await self._apply(session, ctx, metric, target, METRIC_PUBLISHED)

    async def archive(
        self,
        session: AsyncSession,
        ctx: CatalogContext,
        metric_id: str,
        guard_usage: bool = False,
    ) -> MetricDefinitionModel:
        """Archive a draft or published metric.

        Archiving ignores usage by default: archived metrics stay readable for
        existing consumers and only disappear from the selectable list. With
        ``guard_usage`` the call refuses while consumers remain.
        """
        await require_capability(self.checker, ctx, MANAGE_ORG)
        metric = await self.registry.get_scoped(session, ctx.org_id, metric_id)
        target = ensure_transition(metric.status, MetricStatus.ARCHIVED)

        if guard_usage:
            await self.usage.guard_deletion(session, metric, force=False)
        return await self._apply(session, ctx, metric, target, METRIC_ARCHIVED)

    async def _apply(
        self,
        session: AsyncSession,
        ctx: CatalogContext,
        metric: MetricDefinitionModel,
        target: MetricStatus,
        event_type: str,
    ) -> MetricDefinitionModel:
        previous = metric.status
        metric.status = target.value
        metric.update_by = ctx.principal
        await session.flush()

        if self.audit_service:
            await self.audit_service.record_event(
                session, metric.id, ctx.org_id, event_type, ctx.principal,
                {"from": previous, "to": target.value},
            )
        logger.info(
            "metric %s -> %s", previous, target.value,
            extra={
                "metric_id": metric.id, "org_id": ctx.org_id,
                "actor": ctx.principal, "status": target.value,
            },
        )
        return metric
