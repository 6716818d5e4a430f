#!/usr/bin/env python3
"""Seed the database with a few published demo metrics.

Usage:
    python scripts/seed_metrics.py --org demo-org
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from metric_catalog.audit.service import AuditService
from metric_catalog.auth.capabilities import MANAGE_ORG, StaticCapabilityChecker
from metric_catalog.common.config import get_settings
from metric_catalog.common.database import DatabaseManager
from metric_catalog.common.exceptions import ConflictError
from metric_catalog.common.security import CatalogContext
from metric_catalog.expressions.validator import build_expression_validator
from metric_catalog.lifecycle.service import LifecycleController
from metric_catalog.metrics.policy import MetricPolicy
from metric_catalog.metrics.service import MetricRegistry
from metric_catalog.usage.service import UsageTracker

SEED_METRICS = [
    {"code": "user_count", "name": "Users", "data_type": "INTEGER",
     "expression": "COUNT(DISTINCT user_id)", "unit": "users"},
    {"code": "order_revenue", "name": "Order revenue", "data_type": "DECIMAL",
     "expression": "SUM(order_total)", "unit": "USD"},
    {"code": "avg_basket", "name": "Average basket", "data_type": "DECIMAL",
     "expression": "SUM(order_total) / COUNT(DISTINCT order_id)", "unit": "USD"},
]


async def seed_metrics(org_id: str, principal: str) -> None:
    settings = get_settings()
    db = DatabaseManager(settings)
    await db.init()
    await db.create_all()

    checker = StaticCapabilityChecker({principal: {org_id: [MANAGE_ORG]}})
    audit = AuditService(settings, checker)
    policy = MetricPolicy(build_expression_validator(settings))
    usage = UsageTracker(settings, checker, audit_service=audit)
    registry = MetricRegistry(settings, policy, checker, usage, audit_service=audit)
    lifecycle = LifecycleController(registry, policy, checker, usage, audit_service=audit)
    ctx = CatalogContext(principal=principal, org_id=org_id)

    for seed in SEED_METRICS:
        try:
            async with db.get_session() as session:
                metric = await registry.create(session, ctx, **seed)
                await lifecycle.publish(session, ctx, metric.id)
            print(f"  [created] {seed['code']}")
        except ConflictError:
            print(f"  [skip] {seed['code']} already exists")

    await db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--org", default="demo-org")
    parser.add_argument("--principal", default="seed-script")
    args = parser.parse_args()
    asyncio.run(seed_metrics(args.org, args.principal))
