import uuid
from datetime import datetime, date
from typing import Optional

from sqlalchemy import String, Boolean, Date, DateTime, Text, ForeignKey, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from orgdesk.database import Base

ATTENDANCE_SOURCES = ("device", "mobile", "manual", "web")
APPROVAL_STATUSES = ("pending", "approved", "rejected")


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False
    )
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    # HH:MM strings
    shift_start: Mapped[Optional[str]] = mapped_column(String(5))
    shift_end: Mapped[Optional[str]] = mapped_column(String(5))
    check_in: Mapped[Optional[str]] = mapped_column(String(5))
    check_out: Mapped[Optional[str]] = mapped_column(String(5))
    check_in_source: Mapped[Optional[str]] = mapped_column(String(10))
    check_out_source: Mapped[Optional[str]] = mapped_column(String(10))
    location_shared: Mapped[bool] = mapped_column(Boolean, default=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    approval_status: Mapped[str] = mapped_column(String(10), default="pending")
    approved_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id")
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    updated_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        UniqueConstraint(
            "company_id", "employee_id", "work_date", name="uq_attendance_company_employee_date"
        ),
        Index("idx_attendance_company_date", "company_id", "work_date"),
    )
