"""Audit service: record, verify, and query the per-metric event chain."""

import hashlib
import hmac as hmac_mod
import json
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from metric_catalog.auth.capabilities import READ_ORG, CapabilityChecker, require_capability
from metric_catalog.audit.models import AuditEventModel
from metric_catalog.common.config import CatalogSettings
from metric_catalog.common.repository import Repository
from metric_catalog.common.security import CatalogContext

METRIC_CREATED = "metric.created"
METRIC_UPDATED = "metric.updated"
METRIC_PUBLISHED = "metric.published"
METRIC_ARCHIVED = "metric.archived"
METRIC_DELETED = "metric.deleted"
USAGE_BOUND = "usage.bound"
USAGE_REMOVED = "usage.removed"
USAGE_RECONCILED = "usage.reconciled"


class AuditService:
    """Immutable, hash-chained event log per metric."""

    def __init__(self, settings: CatalogSettings, checker: CapabilityChecker):
        self.settings = settings
        self.checker = checker
        self.events = Repository(AuditEventModel)

    # ── Write ──

    async def record_event(
        self,
        session: AsyncSession,
        metric_id: str,
        org_id: str,
        event_type: str,
        actor: str = "system",
        detail: dict[str, Any] | None = None,
    ) -> AuditEventModel:
        """Append a new event to the metric's audit chain."""
        detail = detail or {}

        head = await self.get_chain_head(session, metric_id)
        prev_hash = head.event_hash if head else None
        seq = head.seq + 1 if head else 0

        event_hash = self._compute_event_hash(
            event_type, actor, detail, prev_hash,
        )

        event = AuditEventModel(
            metric_id=metric_id,
            org_id=org_id,
            seq=seq,
            event_type=event_type,
            actor=actor,
            detail=detail,
            prev_hash=prev_hash,
            event_hash=event_hash,
            signature=self._sign(event_hash),
        )
        return await self.events.add(session, event)

    # ── Read ──

    async def get_chain_head(
        self, session: AsyncSession, metric_id: str,
    ) -> AuditEventModel | None:
        """Return the most recent event for a metric."""
        return await self.events.find_one(
            session,
            AuditEventModel.metric_id == metric_id,
            order_by=(AuditEventModel.seq.desc(),),
        )

    async def get_events(
        self,
        session: AsyncSession,
        ctx: CatalogContext,
        metric_id: str,
        event_type: str | None = None,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[AuditEventModel], int]:
        """Paginated event list, newest first."""
        await require_capability(self.checker, ctx, READ_ORG)
        criteria = [
            AuditEventModel.metric_id == metric_id,
            AuditEventModel.org_id == ctx.org_id,
        ]
        if event_type:
            criteria.append(AuditEventModel.event_type == event_type)
        return await self.events.page(
            session, *criteria,
            order_by=(AuditEventModel.seq.desc(),),
            offset=offset, limit=limit,
        )

    # ── Verify ──

    async def verify_chain(
        self, session: AsyncSession, ctx: CatalogContext, metric_id: str,
    ) -> dict[str, Any]:
        """Walk the chain oldest→newest, verify hashes and signatures."""
        await require_capability(self.checker, ctx, READ_ORG)
        events = await self.events.find_all(
            session,
            AuditEventModel.metric_id == metric_id,
            AuditEventModel.org_id == ctx.org_id,
            order_by=(AuditEventModel.seq.asc(),),
        )

        prev_hash = None
        for index, event in enumerate(events):
            expected_hash = self._compute_event_hash(
                event.event_type, event.actor, event.detail, event.prev_hash,
            )
            if (
                event.prev_hash != prev_hash
                or event.event_hash != expected_hash
                or not self._verify_signature(event.event_hash, event.signature)
            ):
                return {"valid": False, "events_checked": index, "break_at": event.id}
            prev_hash = event.event_hash

        return {"valid": True, "events_checked": len(events), "break_at": None}

    # ── Internal helpers ──

    @staticmethod
    def _compute_event_hash(
        event_type: str,
        actor: str,
        detail: dict[str, Any],
        prev_hash: str | None,
    ) -> str:
        """SHA-256 of canonical JSON of the event fields."""
        canonical = json.dumps(
            {
                "event_type": event_type,
                "actor": actor,
                "detail": detail,
                "prev_hash": prev_hash,
            },
            sort_keys=True,
            separators=(",", ":"),
        )
        return hashlib.sha256(canonical.encode()).hexdigest()

    def _sign(self, event_hash: str) -> str:
        return hmac_mod.new(
            self.settings.current_hmac_key.encode(),
            event_hash.encode(),
            hashlib.sha256,
        ).hexdigest()

    def _verify_signature(self, event_hash: str, signature: str) -> bool:
        """Verify signature against all keys in the keyring."""
        for key in self.settings.hmac_keyring.values():
            expected = hmac_mod.new(
                key.encode(), event_hash.encode(), hashlib.sha256,
            ).hexdigest()
            if hmac_mod.compare_digest(expected, signature):
                return True
        return False
