"""Shared test fixtures for the metric catalog."""

import json
import os
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient

from metric_catalog.audit.service import AuditService
from metric_catalog.auth.capabilities import (
    MANAGE_ORG,
    USE_METRICS,
    StaticCapabilityChecker,
)
from metric_catalog.catalog.service import CatalogFacade
from metric_catalog.common.config import CatalogSettings
from metric_catalog.common.database import DatabaseManager
from metric_catalog.common.security import CatalogContext
from metric_catalog.expressions.validator import BasicExpressionValidator
from metric_catalog.lifecycle.service import LifecycleController
from metric_catalog.metrics.policy import MetricPolicy
from metric_catalog.metrics.service import MetricRegistry
from metric_catalog.usage.service import UsageTracker


HMAC_KEY = "test-hmac-key-for-unit-tests"
API_KEY = "test-service-api-key"

# alice manages org-1, bob only binds in org-1, carol manages org-2,
# viewer has a read-only grant in org-1.
GRANTS = {
    "alice": {"org-1": [MANAGE_ORG, USE_METRICS]},
    "bob": {"org-1": [USE_METRICS]},
    "carol": {"org-2": [MANAGE_ORG, USE_METRICS]},
    "viewer": {"org-1": ["org:read"]},
}


def make_settings(**overrides) -> CatalogSettings:
    defaults = {
        "hmac_key": HMAC_KEY,
        "api_key": API_KEY,
        "db_url": "sqlite+aiosqlite://",
    }
    defaults.update(overrides)
    return CatalogSettings(**defaults)


def build_services(settings: CatalogSettings, validator=None, grants=None) -> SimpleNamespace:
    checker = StaticCapabilityChecker(GRANTS if grants is None else grants)
    audit = AuditService(settings, checker)
    policy = MetricPolicy(validator or BasicExpressionValidator(settings.known_sources))
    usage = UsageTracker(settings, checker, audit_service=audit)
    registry = MetricRegistry(settings, policy, checker, usage, audit_service=audit)
    lifecycle = LifecycleController(registry, policy, checker, usage, audit_service=audit)
    catalog = CatalogFacade(registry, usage, checker)
    return SimpleNamespace(
        settings=settings, checker=checker, audit=audit, policy=policy,
        usage=usage, registry=registry, lifecycle=lifecycle, catalog=catalog,
    )


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
async def db(settings):
    manager = DatabaseManager(settings)
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def services(settings):
    return build_services(settings)


@pytest.fixture
def alice():
    return CatalogContext(principal="alice", org_id="org-1")


@pytest.fixture
def bob():
    return CatalogContext(principal="bob", org_id="org-1")


@pytest.fixture
def carol():
    return CatalogContext(principal="carol", org_id="org-2")


@pytest.fixture
def viewer():
    return CatalogContext(principal="viewer", org_id="org-1")


async def create_metric(db, services, ctx, code="user_count", publish=False, **fields):
    """Create (and optionally publish) a metric in its own transaction."""
    fields.setdefault("name", "Users")
    fields.setdefault("expression", "COUNT(DISTINCT user_id)")
    fields.setdefault("data_type", "INTEGER")
    async with db.get_session() as session:
        metric = await services.registry.create(session, ctx, code=code, **fields)
        if publish:
            metric = await services.lifecycle.publish(session, ctx, metric.id)
    return metric


@pytest.fixture
def app():
    """Create a test app with in-memory DB."""
    os.environ["METRIC_CATALOG_DB_URL"] = "sqlite+aiosqlite://"
    os.environ["METRIC_CATALOG_HMAC_KEY"] = HMAC_KEY
    os.environ["METRIC_CATALOG_API_KEY"] = API_KEY
    os.environ["METRIC_CATALOG_ORG_GRANTS"] = json.dumps(GRANTS)

    # Clear caches and singletons so new env vars take effect
    from metric_catalog.common.config import get_settings
    get_settings.cache_clear()

    from metric_catalog.deps import reset_singletons
    reset_singletons()

    from metric_catalog.app import create_app
    return create_app()


@pytest.fixture
async def client(app):
    # Manually init DB since ASGITransport doesn't run lifespan
    from metric_catalog.deps import get_db
    db = get_db()
    await db.init()
    await db.create_all()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await db.close()


def _headers(principal: str, org_id: str) -> dict[str, str]:
    return {
        "X-Catalog-Api-Key": API_KEY,
        "X-Catalog-Principal": principal,
        "X-Catalog-Org": org_id,
    }


@pytest.fixture
def admin_headers():
    return _headers("alice", "org-1")


@pytest.fixture
def consumer_headers():
    return _headers("bob", "org-1")


@pytest.fixture
def other_org_headers():
    return _headers("carol", "org-2")


@pytest.fixture
def viewer_headers():
    return _headers("viewer", "org-1")
