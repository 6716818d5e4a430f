"""SQLAlchemy model for metric usage records."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from metric_catalog.common.models import Base, generate_uuid, utcnow


class MetricUsageModel(Base):
    """Insert-or-delete only; rows are never updated in place."""

    __tablename__ = "metric_usage"
    __table_args__ = (
        UniqueConstraint(
            "metric_id", "resource_type", "resource_id",
            name="uq_usage_metric_resource",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    # No storage-level cascade: forced deletes purge usage in the service layer.
    metric_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("metric_definition.id"), nullable=False, index=True
    )
    resource_type: Mapped[str] = mapped_column(String(20), nullable=False)
    resource_id: Mapped[str] = mapped_column(String(255), nullable=False)
    resource_name: Mapped[str] = mapped_column(String(255), default="")
    org_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    create_by: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
