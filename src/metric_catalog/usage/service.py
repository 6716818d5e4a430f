"""Usage tracker: which resources consume which metrics."""

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from metric_catalog.audit.service import USAGE_BOUND, USAGE_RECONCILED, USAGE_REMOVED
from metric_catalog.auth.capabilities import (
    MANAGE_ORG,
    READ_ORG,
    CapabilityChecker,
    require_capability,
)
from metric_catalog.common.config import CatalogSettings
from metric_catalog.common.enums import ResourceType, enum_value
from metric_catalog.common.exceptions import InUseError, NotFoundError
from metric_catalog.common.logging import get_logger
from metric_catalog.common.models import generate_uuid, utcnow
from metric_catalog.common.repository import Repository
from metric_catalog.common.security import CatalogContext
from metric_catalog.metrics.models import MetricDefinitionModel
from metric_catalog.usage.models import MetricUsageModel

logger = get_logger("usage.tracker")

_USAGE_KEY = ("metric_id", "resource_type", "resource_id")


class UsageTracker:
    """Owns metric_usage rows and the usage_count cache on definitions.

    usage_count only moves in the same transaction as an actual row insert
    or delete, so it always equals the number of usage rows.
    """

    def __init__(self, settings: CatalogSettings, checker: CapabilityChecker, audit_service=None):
        self.settings = settings
        self.checker = checker
        self.audit_service = audit_service
        self.usages = Repository(MetricUsageModel)
        self.metrics = Repository(MetricDefinitionModel)

    # ── Write ──

    async def record_usage(
        self,
        session: AsyncSession,
        metric_id: str,
        resource_type: ResourceType | str,
        resource_id: str,
        resource_name: str,
        org_id: str,
        actor: str = "system",
    ) -> tuple[MetricUsageModel, bool]:
        """Idempotent upsert of the usage key. Returns (row, inserted)."""
        rtype = enum_value(ResourceType, resource_type, "resource_type")
        inserted = await self._insert_if_absent(session, {
            "id": generate_uuid(),
            "metric_id": metric_id,
            "resource_type": rtype,
            "resource_id": resource_id,
            "resource_name": resource_name or "",
            "org_id": org_id,
            "create_by": actor,
            "created_at": utcnow(),
        })
        if inserted:
            await self._adjust_count(session, metric_id, 1)
            if self.audit_service:
                await self.audit_service.record_event(
                    session, metric_id, org_id, USAGE_BOUND, actor,
                    {"resource_type": rtype, "resource_id": resource_id},
                )
            logger.info(
                "usage recorded",
                extra={
                    "metric_id": metric_id, "org_id": org_id, "actor": actor,
                    "resource_type": rtype, "resource_id": resource_id,
                },
            )

        row = await self.usages.find_one(
            session,
            MetricUsageModel.metric_id == metric_id,
            MetricUsageModel.resource_type == rtype,
            MetricUsageModel.resource_id == resource_id,
        )
        return row, inserted

    async def remove_usage(
        self,
        session: AsyncSession,
        metric_id: str,
        resource_type: ResourceType | str,
        resource_id: str,
        org_id: str,
        actor: str = "system",
    ) -> bool:
        """Delete the matching row if present. Returns whether a row went away."""
        rtype = enum_value(ResourceType, resource_type, "resource_type")
        removed = await self.usages.remove_where(
            session,
            MetricUsageModel.metric_id == metric_id,
            MetricUsageModel.resource_type == rtype,
            MetricUsageModel.resource_id == resource_id,
            MetricUsageModel.org_id == org_id,
        )
        if not removed:
            return False

        await self._adjust_count(session, metric_id, -removed)
        if self.audit_service:
            await self.audit_service.record_event(
                session, metric_id, org_id, USAGE_REMOVED, actor,
                {"resource_type": rtype, "resource_id": resource_id},
            )
        logger.info(
            "usage removed",
            extra={
                "metric_id": metric_id, "org_id": org_id, "actor": actor,
                "resource_type": rtype, "resource_id": resource_id,
            },
        )
        return True

    async def release_resource(
        self,
        session: AsyncSession,
        org_id: str,
        resource_type: ResourceType | str,
        resource_id: str,
        actor: str = "system",
    ) -> list[str]:
        """Drop every usage row of a deleted consumer. Returns affected metric ids."""
        rtype = enum_value(ResourceType, resource_type, "resource_type")
        rows = await self.usages.find_all(
            session,
            MetricUsageModel.org_id == org_id,
            MetricUsageModel.resource_type == rtype,
            MetricUsageModel.resource_id == resource_id,
        )
        metric_ids = [row.metric_id for row in rows]
        for metric_id in metric_ids:
            await self.remove_usage(session, metric_id, rtype, resource_id, org_id, actor)
        return metric_ids

    async def purge_usage(self, session: AsyncSession, metric_id: str) -> int:
        """Remove all usage rows of a metric that is about to be deleted."""
        removed = await self.usages.remove_where(
            session, MetricUsageModel.metric_id == metric_id,
        )
        if removed:
            await self._adjust_count(session, metric_id, -removed)
        return removed

    # ── Read ──

    async def list_usage(
        self,
        session: AsyncSession,
        ctx: CatalogContext,
        metric_id: str,
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[MetricUsageModel], int]:
        """Impact analysis page, newest first. Returns (items, total_count)."""
        await require_capability(self.checker, ctx, READ_ORG)
        await self._scoped_metric(session, ctx.org_id, metric_id)

        if limit is None:
            limit = self.settings.default_page_size
        limit = max(1, min(limit, self.settings.max_page_size))

        return await self.usages.page(
            session,
            MetricUsageModel.metric_id == metric_id,
            order_by=(MetricUsageModel.created_at.desc(), MetricUsageModel.id.desc()),
            offset=max(0, offset),
            limit=limit,
        )

    async def count_usage(self, session: AsyncSession, metric_id: str) -> int:
        return await self.usages.count(session, MetricUsageModel.metric_id == metric_id)

    # ── Guards ──

    async def guard_deletion(
        self, session: AsyncSession, metric: MetricDefinitionModel, force: bool,
    ) -> int:
        """Raise InUseError when the metric has consumers and force is off.

        Returns the active usage count.
        """
        in_use = await self.count_usage(session, metric.id)
        if in_use > 0 and not force:
            raise InUseError(
                f"Metric '{metric.code}' is used by {in_use} resource(s); "
                "inspect its usage or retry with force",
                usage_count=in_use,
            )
        return in_use

    async def reconcile(
        self, session: AsyncSession, ctx: CatalogContext, metric_id: str,
    ) -> MetricDefinitionModel:
        """Recompute usage_count from the usage rows."""
        await require_capability(self.checker, ctx, MANAGE_ORG)
        metric = await self._scoped_metric(session, ctx.org_id, metric_id)
        actual = await self.count_usage(session, metric_id)
        if metric.usage_count != actual:
            previous = metric.usage_count
            metric.usage_count = actual
            await session.flush()
            if self.audit_service:
                await self.audit_service.record_event(
                    session, metric_id, ctx.org_id, USAGE_RECONCILED, ctx.principal,
                    {"previous": previous, "actual": actual},
                )
            logger.warning(
                "usage_count drift corrected (%s -> %s)", previous, actual,
                extra={"metric_id": metric_id, "org_id": ctx.org_id, "actor": ctx.principal},
            )
        return metric

    # ── Internal helpers ──

    async def _scoped_metric(
        self, session: AsyncSession, org_id: str, metric_id: str,
    ) -> MetricDefinitionModel:
        metric = await self.metrics.get(session, metric_id)
        if metric is None or metric.org_id != org_id:
            raise NotFoundError(f"Metric '{metric_id}' not found")
        return metric

    async def _insert_if_absent(self, session: AsyncSession, values: dict) -> bool:
        """INSERT ... ON CONFLICT DO NOTHING on the usage key."""
        dialect = session.get_bind().dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            existing = await self.usages.find_one(
                session, *(getattr(MetricUsageModel, k) == values[k] for k in _USAGE_KEY),
            )
            if existing is not None:
                return False
            await self.usages.add(session, MetricUsageModel(**values))
            return True

        stmt = (
            insert(MetricUsageModel.__table__)
            .values(**values)
            .on_conflict_do_nothing(index_elements=list(_USAGE_KEY))
        )
        result = await session.execute(stmt)
        return result.rowcount == 1

    @staticmethod
    async def _adjust_count(session: AsyncSession, metric_id: str, delta: int) -> None:
        await session.execute(
            update(MetricDefinitionModel)
            .where(MetricDefinitionModel.id == metric_id)
            .values(usage_count=MetricDefinitionModel.usage_count + delta)
        )
