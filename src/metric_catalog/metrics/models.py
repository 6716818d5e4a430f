"""SQLAlchemy model for metric definitions."""

from sqlalchemy import Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from metric_catalog.common.models import Base, TimestampMixin, generate_uuid
from metric_catalog.lifecycle.states import MetricStatus


class MetricDefinitionModel(Base, TimestampMixin):
    __tablename__ = "metric_definition"
    __table_args__ = (
        UniqueConstraint("org_id", "code", name="uq_metric_org_code"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    org_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    unit: Mapped[str] = mapped_column(String(50), default="")
    data_type: Mapped[str] = mapped_column(String(20), nullable=False)
    expression: Mapped[str] = mapped_column(Text, nullable=False)
    source_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=MetricStatus.DRAFT.value, index=True
    )
    owner: Mapped[str] = mapped_column(String(255), nullable=False)
    # Maintained only by UsageTracker.
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    create_by: Mapped[str] = mapped_column(String(255), nullable=False)
    update_by: Mapped[str] = mapped_column(String(255), nullable=False)
