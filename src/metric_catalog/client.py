"""
CatalogClient SDK: sync client for the metric catalog.

Used by chart-configuration services and dashboard build tooling to list
selectable metrics and to report bindings when a resource is saved or removed.
"""

import json
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx


@dataclass
class ClientMetric:
    """Selectable metric returned by the SDK."""

    id: str
    code: str
    name: str
    data_type: str
    description: str = ""
    unit: str = ""
    source_id: Optional[str] = None


@dataclass
class ClientBindResult:
    """Result of bind() / unbind() calls."""

    success: bool
    code: str = ""
    message: str = ""
    usage_id: Optional[str] = None
    status: Optional[str] = None


class CatalogClient:
    """
    Synchronous HTTP client for the metric catalog.

    Every call carries the service API key plus the acting principal and
    organization, mirroring the server's explicit request context.
    """

    def __init__(
        self,
        api_key: str,
        principal: str,
        org_id: str,
        server_url: str = "http://localhost:8080",
        timeout: int = 30,
        max_retries: int = 3,
        retry_backoff_base: float = 0.5,
        transport: httpx.BaseTransport | None = None,
    ):
        self.server_url = server_url.rstrip("/")
        self.api_key = api_key
        self.principal = principal
        self.org_id = org_id
        self.max_retries = max_retries
        self.retry_backoff_base = retry_backoff_base
        self._http = httpx.Client(
            base_url=self.server_url,
            timeout=timeout,
            transport=transport,
            headers=self._headers(),
        )

    def _headers(self) -> dict[str, str]:
        return {
            "X-Catalog-Api-Key": self.api_key,
            "X-Catalog-Principal": self.principal,
            "X-Catalog-Org": self.org_id,
        }

    def _request(
        self,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> dict[str, Any] | list[Any]:
        """Central HTTP method with retry and structured error handling.

        Retries on:
        - httpx.TimeoutException and other transport errors
        - 5xx status codes
        - 429 (rate limit)

        No retry on other 4xx errors; the server's error body is returned
        with an "error" key so callers can read code and detail.
        """
        last_error = None
        for attempt in range(self.max_retries):
            try:
                resp = getattr(self._http, method)(path, **kwargs)
                if resp.status_code >= 500 or resp.status_code == 429:
                    last_error = f"HTTP {resp.status_code}"
                    if attempt < self.max_retries - 1:
                        time.sleep(self.retry_backoff_base * (2 ** attempt))
                        continue
                    return {
                        "error": f"Server error: {resp.status_code}",
                        "code": "SERVER_ERROR",
                    }
                if resp.status_code >= 400:
                    try:
                        body = resp.json()
                    except json.JSONDecodeError:
                        body = {}
                    if not isinstance(body, dict):
                        body = {}
                    return {
                        "error": body.get("error") or f"Client error: {resp.status_code}",
                        "code": body.get("code", "CLIENT_ERROR"),
                        "detail": body.get("detail", ""),
                    }
                return resp.json()
            except httpx.TimeoutException:
                last_error = "timeout"
            except httpx.HTTPError as e:
                last_error = str(e)
            except json.JSONDecodeError:
                return {"error": "Invalid JSON response", "code": "JSON_ERROR"}
            if attempt < self.max_retries - 1:
                time.sleep(self.retry_backoff_base * (2 ** attempt))

        return {"error": f"All {self.max_retries} retries exhausted: {last_error}", "code": "CONNECTION_ERROR"}

    # ── Catalog ──

    def list_selectable(self, source_id: Optional[str] = None) -> list[ClientMetric]:
        """Published metrics available for new bindings; empty on error."""
        params = {"source_id": source_id} if source_id else None
        data = self._request("get", "/catalog/metrics", params=params)
        if isinstance(data, dict):
            return []
        return [
            ClientMetric(
                id=m.get("id", ""),
                code=m.get("code", ""),
                name=m.get("name", ""),
                data_type=m.get("data_type", ""),
                description=m.get("description", ""),
                unit=m.get("unit", ""),
                source_id=m.get("source_id"),
            )
            for m in data
        ]

    def bind(
        self,
        metric_id: str,
        resource_type: str,
        resource_id: str,
        resource_name: str = "",
    ) -> ClientBindResult:
        """Report that a resource now uses a metric."""
        body = {
            "metric_id": metric_id,
            "resource_type": resource_type,
            "resource_id": resource_id,
            "resource_name": resource_name,
        }
        data = self._request("post", "/catalog/bind", json=body)
        if "error" in data:
            status = None
            detail = data.get("detail", "")
            if isinstance(detail, str) and detail.startswith("status="):
                status = detail.split("=", 1)[1]
            return ClientBindResult(
                success=False, code=data.get("code", "ERROR"),
                message=data.get("error", ""), status=status,
            )
        return ClientBindResult(success=True, code="BOUND", usage_id=data.get("id"))

    def unbind(self, metric_id: str, resource_type: str, resource_id: str) -> ClientBindResult:
        """Report that a resource no longer uses a metric."""
        body = {
            "metric_id": metric_id,
            "resource_type": resource_type,
            "resource_id": resource_id,
        }
        data = self._request("post", "/catalog/unbind", json=body)
        if "error" in data:
            return ClientBindResult(
                success=False, code=data.get("code", "ERROR"),
                message=data.get("error", ""),
            )
        return ClientBindResult(
            success=True, code="REMOVED" if data.get("removed") else "NOT_BOUND",
        )

    def release_resource(self, resource_type: str, resource_id: str) -> list[str]:
        """Report that a resource was deleted; returns the metric ids it used."""
        body = {"resource_type": resource_type, "resource_id": resource_id}
        data = self._request("post", "/catalog/release", json=body)
        if "error" in data:
            return []
        return list(data.get("metric_ids", []))

    # ── Lifecycle ──

    def close(self) -> None:
        """Close the HTTP client."""
        self._http.close()

    def __enter__(self) -> "CatalogClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
