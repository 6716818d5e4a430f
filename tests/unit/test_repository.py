"""Tests for the generic repository."""

from metric_catalog.common.repository import Repository
from metric_catalog.metrics.models import MetricDefinitionModel


def _metric(code, org_id="org-1", **overrides):
    fields = {
        "org_id": org_id,
        "code": code,
        "name": code.title(),
        "data_type": "INTEGER",
        "expression": "COUNT(*)",
        "owner": "alice",
        "create_by": "alice",
        "update_by": "alice",
    }
    fields.update(overrides)
    return MetricDefinitionModel(**fields)


class TestRepository:
    async def test_add_and_get(self, db):
        repo = Repository(MetricDefinitionModel)
        async with db.get_session() as session:
            metric = await repo.add(session, _metric("a"))
            assert metric.id
            assert metric.status == "DRAFT"
            assert metric.usage_count == 0
        async with db.get_session() as session:
            fetched = await repo.get(session, metric.id)
            assert fetched.code == "a"
            assert await repo.get(session, "missing") is None

    async def test_find_and_count(self, db):
        repo = Repository(MetricDefinitionModel)
        async with db.get_session() as session:
            for code in ("b", "a", "c"):
                await repo.add(session, _metric(code))
            await repo.add(session, _metric("a", org_id="org-2"))

        async with db.get_session() as session:
            scoped = MetricDefinitionModel.org_id == "org-1"
            assert await repo.count(session, scoped) == 3
            assert await repo.count(session) == 4
            rows = await repo.find_all(session, scoped, order_by=(MetricDefinitionModel.code,))
            assert [m.code for m in rows] == ["a", "b", "c"]
            first = await repo.find_one(
                session, scoped, order_by=(MetricDefinitionModel.code.desc(),),
            )
            assert first.code == "c"
            assert await repo.find_one(session, MetricDefinitionModel.code == "zz") is None

    async def test_page(self, db):
        repo = Repository(MetricDefinitionModel)
        async with db.get_session() as session:
            for code in ("a", "b", "c", "d", "e"):
                await repo.add(session, _metric(code))
        async with db.get_session() as session:
            items, total = await repo.page(
                session, order_by=(MetricDefinitionModel.code,), offset=2, limit=2,
            )
        assert total == 5
        assert [m.code for m in items] == ["c", "d"]

    async def test_remove_and_remove_where(self, db):
        repo = Repository(MetricDefinitionModel)
        async with db.get_session() as session:
            a = await repo.add(session, _metric("a"))
            await repo.add(session, _metric("b"))
            await repo.add(session, _metric("c", org_id="org-2"))
        async with db.get_session() as session:
            await repo.remove(session, await repo.get(session, a.id))
            removed = await repo.remove_where(session, MetricDefinitionModel.org_id == "org-2")
            assert removed == 1
            assert await repo.remove_where(session, MetricDefinitionModel.code == "zz") == 0
        async with db.get_session() as session:
            assert await repo.count(session) == 1
