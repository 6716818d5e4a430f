"""Integration tests for the consumer-facing catalog endpoints."""

import pytest


class TestCatalogRouter:
    async def _published(self, client, admin_headers, code="user_count", **extra):
        resp = await client.post("/metrics", json={
            "code": code, "name": code.title(),
            "expression": "COUNT(DISTINCT user_id)", "data_type": "INTEGER", **extra,
        }, headers=admin_headers)
        metric_id = resp.json()["id"]
        await client.post(f"/metrics/{metric_id}/publish", headers=admin_headers)
        return metric_id

    async def test_list_selectable(self, client, admin_headers, consumer_headers):
        await self._published(client, admin_headers, code="b_metric", source_id="sales")
        await self._published(client, admin_headers, code="a_metric", source_id="crm")
        await client.post("/metrics", json={
            "code": "draft_metric", "name": "Draft",
            "expression": "SUM(x)", "data_type": "DECIMAL",
        }, headers=admin_headers)

        resp = await client.get("/catalog/metrics", headers=consumer_headers)
        assert resp.status_code == 200
        assert [m["code"] for m in resp.json()] == ["a_metric", "b_metric"]

        resp = await client.get(
            "/catalog/metrics", params={"source_id": "sales"}, headers=consumer_headers,
        )
        assert [m["code"] for m in resp.json()] == ["b_metric"]

    async def test_bind_and_unbind(self, client, admin_headers, consumer_headers):
        metric_id = await self._published(client, admin_headers)
        bind = {
            "metric_id": metric_id, "resource_type": "DATACHART",
            "resource_id": "chart-1", "resource_name": "Chart 1",
        }
        resp = await client.post("/catalog/bind", json=bind, headers=consumer_headers)
        assert resp.status_code == 200
        usage = resp.json()
        assert usage["metric_id"] == metric_id
        assert usage["resource_name"] == "Chart 1"

        # Repeat bind returns the same row and counts once.
        resp = await client.post("/catalog/bind", json=bind, headers=consumer_headers)
        assert resp.json()["id"] == usage["id"]
        metric = (await client.get(f"/metrics/{metric_id}", headers=admin_headers)).json()
        assert metric["usage_count"] == 1

        unbind = {k: bind[k] for k in ("metric_id", "resource_type", "resource_id")}
        resp = await client.post("/catalog/unbind", json=unbind, headers=consumer_headers)
        assert resp.json() == {"success": True, "removed": True}
        resp = await client.post("/catalog/unbind", json=unbind, headers=consumer_headers)
        assert resp.json() == {"success": True, "removed": False}

        metric = (await client.get(f"/metrics/{metric_id}", headers=admin_headers)).json()
        assert metric["usage_count"] == 0

    async def test_bind_draft(self, client, admin_headers, consumer_headers):
        resp = await client.post("/metrics", json={
            "code": "draft_metric", "name": "Draft",
            "expression": "SUM(x)", "data_type": "DECIMAL",
        }, headers=admin_headers)
        resp = await client.post("/catalog/bind", json={
            "metric_id": resp.json()["id"], "resource_type": "WIDGET", "resource_id": "w-1",
        }, headers=consumer_headers)
        assert resp.status_code == 409
        assert resp.json()["code"] == "INVALID_STATE"
        assert resp.json()["detail"] == "status=DRAFT"

    async def test_bind_unknown_resource_type(self, client, admin_headers, consumer_headers):
        metric_id = await self._published(client, admin_headers)
        resp = await client.post("/catalog/bind", json={
            "metric_id": metric_id, "resource_type": "REPORT", "resource_id": "r-1",
        }, headers=consumer_headers)
        assert resp.status_code == 422

    async def test_bind_requires_use_capability(self, client, admin_headers, viewer_headers):
        metric_id = await self._published(client, admin_headers)
        resp = await client.post("/catalog/bind", json={
            "metric_id": metric_id, "resource_type": "WIDGET", "resource_id": "w-1",
        }, headers=viewer_headers)
        assert resp.status_code == 403

    async def test_release(self, client, admin_headers, consumer_headers):
        m1 = await self._published(client, admin_headers, code="m1")
        m2 = await self._published(client, admin_headers, code="m2")
        for metric_id in (m1, m2):
            await client.post("/catalog/bind", json={
                "metric_id": metric_id, "resource_type": "DASHBOARD", "resource_id": "d-1",
            }, headers=consumer_headers)

        resp = await client.post("/catalog/release", json={
            "resource_type": "DASHBOARD", "resource_id": "d-1",
        }, headers=consumer_headers)
        assert resp.status_code == 200
        assert sorted(resp.json()["metric_ids"]) == sorted([m1, m2])
