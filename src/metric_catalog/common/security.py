"""API key authentication and request context dependencies."""

from dataclasses import dataclass

from fastapi import Header, HTTPException


@dataclass(frozen=True)
class CatalogContext:
    """The calling principal and the organization scope of one operation."""
    principal: str
    org_id: str


async def require_api_key(
    x_catalog_api_key: str = Header(..., alias="X-Catalog-Api-Key"),
) -> str:
    """FastAPI dependency that validates the service API key from header."""
    from metric_catalog.common.config import get_settings

    settings = get_settings()
    if x_catalog_api_key != settings.api_key:
        raise HTTPException(status_code=403, detail="Invalid API key")
    return x_catalog_api_key


async def resolve_context(
    x_catalog_api_key: str = Header(..., alias="X-Catalog-Api-Key"),
    x_catalog_principal: str = Header(..., alias="X-Catalog-Principal", min_length=1),
    x_catalog_org: str = Header(..., alias="X-Catalog-Org", min_length=1),
) -> CatalogContext:
    """FastAPI dependency that builds the explicit caller context.

    The API key authenticates the calling service; principal and org are
    asserted by that service and checked per operation by the capability
    checker.
    """
    await require_api_key(x_catalog_api_key)
    return CatalogContext(principal=x_catalog_principal, org_id=x_catalog_org)
