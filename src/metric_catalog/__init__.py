"""Metric catalog: governed metric definitions and their consumers."""

from metric_catalog.client import CatalogClient, ClientBindResult, ClientMetric
from metric_catalog.common.enums import DataType, ResourceType
from metric_catalog.common.security import CatalogContext
from metric_catalog.lifecycle.states import MetricStatus

__all__ = [
    "CatalogClient",
    "ClientBindResult",
    "ClientMetric",
    "CatalogContext",
    "DataType",
    "MetricStatus",
    "ResourceType",
]
__version__ = "0.1.0"
