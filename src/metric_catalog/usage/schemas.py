"""Pydantic schemas for usage endpoints."""

from datetime import datetime

from pydantic import BaseModel

from metric_catalog.common.enums import ResourceType


class UsageResponse(BaseModel):
    id: str
    metric_id: str
    resource_type: ResourceType
    resource_id: str
    resource_name: str
    org_id: str
    create_by: str
    created_at: datetime

    model_config = {"from_attributes": True}
