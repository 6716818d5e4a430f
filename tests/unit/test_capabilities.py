"""Tests for capability checks."""

import pytest

from metric_catalog.auth.capabilities import (
    MANAGE_ORG,
    READ_ORG,
    USE_METRICS,
    WILDCARD,
    StaticCapabilityChecker,
    require_capability,
)
from metric_catalog.common.exceptions import PermissionDeniedError
from metric_catalog.common.security import CatalogContext


@pytest.fixture
def checker():
    return StaticCapabilityChecker({
        "alice": {"org-1": [MANAGE_ORG]},
        "bob": {"org-1": [USE_METRICS]},
        "root": {WILDCARD: [WILDCARD]},
    })


class TestStaticChecker:
    def test_explicit_grant(self, checker):
        assert checker.allows("alice", "org-1", MANAGE_ORG)
        assert not checker.allows("alice", "org-1", USE_METRICS)

    def test_any_grant_implies_read(self, checker):
        assert checker.allows("bob", "org-1", READ_ORG)
        assert checker.capabilities("bob", "org-1") == {USE_METRICS, READ_ORG}

    def test_grants_are_per_org(self, checker):
        assert not checker.allows("alice", "org-2", MANAGE_ORG)
        assert not checker.allows("alice", "org-2", READ_ORG)
        assert checker.capabilities("alice", "org-2") == set()

    def test_unknown_principal(self, checker):
        assert not checker.allows("mallory", "org-1", READ_ORG)

    def test_wildcard(self, checker):
        assert checker.allows("root", "any-org", MANAGE_ORG)
        assert checker.allows("root", "other-org", USE_METRICS)

    def test_empty_grants(self):
        assert not StaticCapabilityChecker().allows("alice", "org-1", READ_ORG)

    async def test_require_raises(self, checker):
        with pytest.raises(PermissionDeniedError) as exc_info:
            await checker.require("bob", "org-1", MANAGE_ORG)
        assert exc_info.value.code == "PERMISSION_DENIED"
        assert "org:manage" in exc_info.value.message

    async def test_require_capability_uses_context(self, checker):
        await require_capability(checker, CatalogContext("alice", "org-1"), MANAGE_ORG)
        with pytest.raises(PermissionDeniedError):
            await require_capability(checker, CatalogContext("alice", "org-9"), MANAGE_ORG)
