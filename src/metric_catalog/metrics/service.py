"""Metric registry: create, edit, look up, search and delete definitions."""

from enum import Enum
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from metric_catalog.audit.service import METRIC_CREATED, METRIC_DELETED, METRIC_UPDATED
from metric_catalog.auth.capabilities import (
    MANAGE_ORG,
    READ_ORG,
    CapabilityChecker,
    require_capability,
)
from metric_catalog.common.config import CatalogSettings
from metric_catalog.common.enums import DataType, enum_value
from metric_catalog.common.exceptions import ConflictError, NotFoundError, ValidationError
from metric_catalog.common.logging import get_logger
from metric_catalog.common.repository import Repository
from metric_catalog.common.security import CatalogContext
from metric_catalog.lifecycle.states import MetricStatus, is_editable
from metric_catalog.metrics.models import MetricDefinitionModel
from metric_catalog.metrics.policy import MetricPolicy
from metric_catalog.usage.service import UsageTracker

logger = get_logger("metrics.registry")

EDITABLE_FIELDS = (
    "code", "name", "description", "unit", "data_type",
    "expression", "source_id", "owner",
)


def _clean(fields: dict[str, Any]) -> dict[str, Any]:
    cleaned = {}
    for key, value in fields.items():
        if isinstance(value, Enum):
            value = value.value
        if isinstance(value, str) and key != "expression":
            value = value.strip()
        if key == "source_id" and not value:
            value = None
        cleaned[key] = value
    return cleaned


class MetricRegistry:
    """CRUD and search over metric definitions, scoped per organization."""

    def __init__(
        self,
        settings: CatalogSettings,
        policy: MetricPolicy,
        checker: CapabilityChecker,
        usage: UsageTracker,
        audit_service=None,
    ):
        self.settings = settings
        self.policy = policy
        self.checker = checker
        self.usage = usage
        self.audit_service = audit_service
        self.metrics = Repository(MetricDefinitionModel)

    # ── Create ──

    async def create(
        self,
        session: AsyncSession,
        ctx: CatalogContext,
        code: str,
        name: str,
        expression: str,
        data_type: DataType | str,
        description: str = "",
        unit: str = "",
        source_id: str | None = None,
        owner: str | None = None,
    ) -> MetricDefinitionModel:
        await require_capability(self.checker, ctx, MANAGE_ORG)

        fields = _clean({
            "code": code,
            "name": name,
            "expression": expression,
            "data_type": data_type,
            "description": description or "",
            "unit": unit or "",
            "source_id": source_id or None,
            "owner": owner or ctx.principal,
        })
        await self.policy.validate(fields)
        await self._ensure_code_free(session, ctx.org_id, fields["code"])

        metric = MetricDefinitionModel(
            org_id=ctx.org_id,
            status=MetricStatus.DRAFT.value,
            usage_count=0,
            create_by=ctx.principal,
            update_by=ctx.principal,
            **fields,
        )
        session.add(metric)
        await self._flush_unique(session, ctx.org_id, fields["code"])

        if self.audit_service:
            await self.audit_service.record_event(
                session, metric.id, ctx.org_id, METRIC_CREATED, ctx.principal,
                {"code": metric.code, "data_type": metric.data_type},
            )
        logger.info(
            "metric created",
            extra={"metric_id": metric.id, "org_id": ctx.org_id, "actor": ctx.principal},
        )
        return metric

    # ── Read ──

    async def get(
        self, session: AsyncSession, ctx: CatalogContext, metric_id: str,
    ) -> MetricDefinitionModel:
        await require_capability(self.checker, ctx, READ_ORG)
        return await self.get_scoped(session, ctx.org_id, metric_id)

    async def get_scoped(
        self, session: AsyncSession, org_id: str, metric_id: str,
    ) -> MetricDefinitionModel:
        """Look up a metric without a capability check; callers check first."""
        metric = await self.metrics.find_one(
            session,
            MetricDefinitionModel.id == metric_id,
            MetricDefinitionModel.org_id == org_id,
        )
        if metric is None:
            raise NotFoundError(f"Metric '{metric_id}' not found")
        return metric

    async def search(
        self,
        session: AsyncSession,
        ctx: CatalogContext,
        keyword: str | None = None,
        status: MetricStatus | str | None = None,
        source_id: str | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[MetricDefinitionModel], int]:
        """Filter and page definitions. Returns (items, total_count)."""
        await require_capability(self.checker, ctx, READ_ORG)

        criteria = [MetricDefinitionModel.org_id == ctx.org_id]
        if keyword and keyword.strip():
            needle = keyword.strip().lower()
            criteria.append(or_(
                func.lower(MetricDefinitionModel.name).contains(needle, autoescape=True),
                func.lower(MetricDefinitionModel.code).contains(needle, autoescape=True),
                func.lower(MetricDefinitionModel.description).contains(needle, autoescape=True),
            ))
        if status:
            criteria.append(
                MetricDefinitionModel.status == enum_value(MetricStatus, status, "status")
            )
        if source_id:
            criteria.append(MetricDefinitionModel.source_id == source_id)

        if limit is None:
            limit = self.settings.default_page_size
        limit = max(1, min(limit, self.settings.max_page_size))

        return await self.metrics.page(
            session, *criteria,
            order_by=(
                MetricDefinitionModel.created_at.desc(),
                MetricDefinitionModel.id.desc(),
            ),
            offset=max(0, offset),
            limit=limit,
        )

    # ── Update ──

    async def update(
        self,
        session: AsyncSession,
        ctx: CatalogContext,
        metric_id: str,
        **updates: Any,
    ) -> MetricDefinitionModel:
        """Edit a DRAFT definition. Fields left as None keep their value."""
        await require_capability(self.checker, ctx, MANAGE_ORG)

        unknown = sorted(set(updates) - set(EDITABLE_FIELDS))
        if unknown:
            raise ValidationError(
                "Invalid metric update", [f"{name} is not editable" for name in unknown],
            )

        metric = await self.get_scoped(session, ctx.org_id, metric_id)
        if not is_editable(metric.status):
            raise ConflictError(
                f"Metric '{metric.code}' is {metric.status}; only DRAFT metrics can be edited"
            )

        changes = _clean({k: v for k, v in updates.items() if v is not None})
        merged = {field: getattr(metric, field) for field in EDITABLE_FIELDS}
        merged.update(changes)
        await self.policy.validate(merged)

        if merged["code"] != metric.code:
            await self._ensure_code_free(
                session, ctx.org_id, merged["code"], exclude_id=metric.id,
            )

        for field, value in changes.items():
            setattr(metric, field, value)
        metric.update_by = ctx.principal
        await self._flush_unique(session, ctx.org_id, merged["code"])

        if self.audit_service:
            await self.audit_service.record_event(
                session, metric.id, ctx.org_id, METRIC_UPDATED, ctx.principal,
                {"fields": sorted(changes)},
            )
        logger.info(
            "metric updated",
            extra={"metric_id": metric.id, "org_id": ctx.org_id, "actor": ctx.principal},
        )
        return metric

    # ── Delete ──

    async def delete(
        self,
        session: AsyncSession,
        ctx: CatalogContext,
        metric_id: str,
        force: bool = False,
    ) -> int:
        """Remove a definition. Returns the number of usage rows purged.

        Refused with InUseError while usage exists unless ``force`` is set,
        in which case the usage rows go in the same transaction.
        """
        await require_capability(self.checker, ctx, MANAGE_ORG)
        metric = await self.get_scoped(session, ctx.org_id, metric_id)

        await self.usage.guard_deletion(session, metric, force)
        purged = await self.usage.purge_usage(session, metric.id) if force else 0

        code = metric.code
        await self.metrics.remove(session, metric)

        if self.audit_service:
            await self.audit_service.record_event(
                session, metric_id, ctx.org_id, METRIC_DELETED, ctx.principal,
                {"code": code, "force": force, "usage_removed": purged},
            )
        logger.info(
            "metric deleted",
            extra={"metric_id": metric_id, "org_id": ctx.org_id, "actor": ctx.principal},
        )
        return purged

    # ── Internal helpers ──

    async def _ensure_code_free(
        self,
        session: AsyncSession,
        org_id: str,
        code: str,
        exclude_id: str | None = None,
    ) -> None:
        criteria = [
            MetricDefinitionModel.org_id == org_id,
            MetricDefinitionModel.code == code,
        ]
        if exclude_id is not None:
            criteria.append(MetricDefinitionModel.id != exclude_id)
        if await self.metrics.find_one(session, *criteria) is not None:
            raise ConflictError(f"Metric code '{code}' already exists in organization '{org_id}'")

    @staticmethod
    async def _flush_unique(session: AsyncSession, org_id: str, code: str) -> None:
        """Flush, translating a lost race on uq_metric_org_code into ConflictError."""
        try:
            await session.flush()
        except IntegrityError as e:
            raise ConflictError(
                f"Metric code '{code}' already exists in organization '{org_id}'"
            ) from e
