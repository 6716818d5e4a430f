"""Capability checks consumed from the authorization collaborator."""

from typing import Protocol

from metric_catalog.common.exceptions import PermissionDeniedError
from metric_catalog.common.security import CatalogContext

MANAGE_ORG = "org:manage"
READ_ORG = "org:read"
USE_METRICS = "metric:use"
WILDCARD = "*"


class CapabilityChecker(Protocol):
    async def require(self, principal: str, org_id: str, capability: str) -> None:
        """Return when allowed, raise PermissionDeniedError otherwise."""


class StaticCapabilityChecker:
    """Grant table keyed by principal, then organization.

    Any grant inside an organization implies READ_ORG there. WILDCARD as a
    capability grants everything; WILDCARD as an org id matches every org.
    """

    def __init__(self, grants: dict[str, dict[str, list[str]]] | None = None):
        self.grants = grants or {}

    def capabilities(self, principal: str, org_id: str) -> set[str]:
        orgs = self.grants.get(principal, {})
        caps = set(orgs.get(org_id, [])) | set(orgs.get(WILDCARD, []))
        if caps:
            caps.add(READ_ORG)
        return caps

    def allows(self, principal: str, org_id: str, capability: str) -> bool:
        caps = self.capabilities(principal, org_id)
        return capability in caps or WILDCARD in caps

    async def require(self, principal: str, org_id: str, capability: str) -> None:
        if not self.allows(principal, org_id, capability):
            raise PermissionDeniedError(
                f"Principal '{principal}' lacks '{capability}' in organization '{org_id}'"
            )


async def require_capability(
    checker: CapabilityChecker, ctx: CatalogContext, capability: str,
) -> None:
    await checker.require(ctx.principal, ctx.org_id, capability)
