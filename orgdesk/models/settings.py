import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from orgdesk.database import Base

DEFAULT_WORKING_DAYS = ["monday", "tuesday", "wednesday", "thursday", "friday"]


class WorkspaceSettings(Base):
    __tablename__ = "workspace_settings"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    workspace_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    timezone: Mapped[str] = mapped_column(String(50), default="Europe/Istanbul")
    currency: Mapped[str] = mapped_column(String(3), default="TRY")
    language: Mapped[str] = mapped_column(String(5), default="tr")
    date_format: Mapped[str] = mapped_column(String(20), default="DD/MM/YYYY")
    working_hours_start: Mapped[str] = mapped_column(String(5), default="09:00")
    working_hours_end: Mapped[str] = mapped_column(String(5), default="18:00")
    working_days: Mapped[list] = mapped_column(
        JSONB, default=lambda: list(DEFAULT_WORKING_DAYS)
    )
    # [{"date": "2026-01-01", "name": "New Year"}]
    public_holidays: Mapped[list] = mapped_column(JSONB, default=list)
    custom_settings: Mapped[dict] = mapped_column(JSONB, default=dict)
    updated_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class CompanySettings(Base):
    __tablename__ = "company_settings"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("companies.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    fiscal_year_start: Mapped[str] = mapped_column(String(5), default="01/01")
    tax_rate: Mapped[str] = mapped_column(String(10), default="18")
    invoice_prefix: Mapped[str] = mapped_column(String(20), default="INV")
    invoice_numbering: Mapped[str] = mapped_column(String(20), default="sequential")
    # Null overrides fall back to the workspace settings
    working_hours_start: Mapped[Optional[str]] = mapped_column(String(5))
    working_hours_end: Mapped[Optional[str]] = mapped_column(String(5))
    working_days: Mapped[Optional[list]] = mapped_column(JSONB)
    public_holidays: Mapped[list] = mapped_column(JSONB, default=list)
    custom_settings: Mapped[dict] = mapped_column(JSONB, default=dict)
    updated_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
