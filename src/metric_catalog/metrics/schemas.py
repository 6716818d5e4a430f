"""Pydantic schemas for metric definition endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from metric_catalog.common.enums import DataType
from metric_catalog.lifecycle.states import MetricStatus


class MetricCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    expression: str = Field(..., min_length=1)
    data_type: DataType
    description: str = ""
    unit: str = Field(default="", max_length=50)
    source_id: Optional[str] = Field(default=None, max_length=64)
    owner: Optional[str] = Field(default=None, max_length=255)


class MetricUpdate(BaseModel):
    code: Optional[str] = Field(default=None, min_length=1, max_length=100)
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    expression: Optional[str] = Field(default=None, min_length=1)
    data_type: Optional[DataType] = None
    description: Optional[str] = None
    unit: Optional[str] = Field(default=None, max_length=50)
    source_id: Optional[str] = Field(default=None, max_length=64)
    owner: Optional[str] = Field(default=None, max_length=255)


class MetricResponse(BaseModel):
    id: str
    org_id: str
    code: str
    name: str
    description: str
    unit: str
    data_type: DataType
    expression: str
    source_id: Optional[str] = None
    status: MetricStatus
    owner: str
    usage_count: int
    create_by: str
    created_at: datetime
    update_by: str
    updated_at: datetime

    model_config = {"from_attributes": True}


class MetricDeleteResponse(BaseModel):
    id: str
    deleted: bool = True
    usage_removed: int = 0
