"""Pydantic schemas for the consumer-facing catalog endpoints."""

from typing import Optional

from pydantic import BaseModel, Field

from metric_catalog.common.enums import DataType, ResourceType


class SelectableMetric(BaseModel):
    id: str
    code: str
    name: str
    description: str
    unit: str
    data_type: DataType
    source_id: Optional[str] = None

    model_config = {"from_attributes": True}


class BindRequest(BaseModel):
    metric_id: str = Field(..., min_length=1)
    resource_type: ResourceType
    resource_id: str = Field(..., min_length=1, max_length=255)
    resource_name: str = Field(default="", max_length=255)


class UnbindRequest(BaseModel):
    metric_id: str = Field(..., min_length=1)
    resource_type: ResourceType
    resource_id: str = Field(..., min_length=1, max_length=255)


class ReleaseRequest(BaseModel):
    resource_type: ResourceType
    resource_id: str = Field(..., min_length=1, max_length=255)


class UnbindResponse(BaseModel):
    success: bool = True
    removed: bool


class ReleaseResponse(BaseModel):
    success: bool = True
    metric_ids: list[str]
