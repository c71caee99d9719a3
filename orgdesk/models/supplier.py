import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    String,
    Integer,
    Numeric,
    Boolean,
    DateTime,
    Text,
    ForeignKey,
    Index,
    CheckConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID, JSONB, ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from orgdesk.database import Base

SUPPLIER_TYPES = ("individual", "corporate")
SUPPLIER_CATEGORIES = ("strategic", "preferred", "approved", "standard", "new", "temporary")
SUPPLIER_STATUSES = ("active", "inactive", "prospect", "suspended", "blacklisted", "closed")


class Supplier(Base):
    __tablename__ = "suppliers"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    workspace_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("workspaces.id"), nullable=False
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("companies.id"), nullable=False
    )
    supplier_code: Mapped[Optional[str]] = mapped_column(String(50))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    full_name: Mapped[Optional[str]] = mapped_column(String(500))
    supplier_type: Mapped[str] = mapped_column(String(20), default="corporate")
    category: Mapped[str] = mapped_column(String(20), default="standard")
    status: Mapped[str] = mapped_column(String(20), default="active")
    phone: Mapped[Optional[str]] = mapped_column(String(30))
    mobile: Mapped[Optional[str]] = mapped_column(String(30))
    email: Mapped[Optional[str]] = mapped_column(String(255))
    website: Mapped[Optional[str]] = mapped_column(String(255))
    fax: Mapped[Optional[str]] = mapped_column(String(30))
    address: Mapped[Optional[str]] = mapped_column(Text)
    district: Mapped[Optional[str]] = mapped_column(String(100))
    city: Mapped[Optional[str]] = mapped_column(String(100))
    postal_code: Mapped[Optional[str]] = mapped_column(String(10))
    country: Mapped[Optional[str]] = mapped_column(String(100))
    tax_office: Mapped[Optional[str]] = mapped_column(String(100))
    tax_number: Mapped[Optional[str]] = mapped_column(String(20))
    mersis_number: Mapped[Optional[str]] = mapped_column(String(20))
    trade_registry_number: Mapped[Optional[str]] = mapped_column(String(50))
    currency: Mapped[str] = mapped_column(String(3), default="TRY")
    payment_terms: Mapped[Optional[int]] = mapped_column(Integer)
    lead_time_days: Mapped[Optional[int]] = mapped_column(Integer)
    minimum_order_quantity: Mapped[Optional[Decimal]] = mapped_column(Numeric(15, 3))
    order_increment: Mapped[Optional[Decimal]] = mapped_column(Numeric(15, 3))
    quality_rating: Mapped[Optional[Decimal]] = mapped_column(Numeric(3, 2))
    delivery_rating: Mapped[Optional[Decimal]] = mapped_column(Numeric(3, 2))
    primary_contact_name: Mapped[Optional[str]] = mapped_column(String(200))
    primary_contact_title: Mapped[Optional[str]] = mapped_column(String(100))
    primary_contact_phone: Mapped[Optional[str]] = mapped_column(String(30))
    primary_contact_email: Mapped[Optional[str]] = mapped_column(String(255))
    parent_supplier_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("suppliers.id")
    )
    tags: Mapped[Optional[list]] = mapped_column(ARRAY(Text), default=list)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    extra_metadata: Mapped[Optional[dict]] = mapped_column(
        "metadata", JSONB, default=dict
    )
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id")
    )
    updated_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    __table_args__ = (
        CheckConstraint(
            "quality_rating IS NULL OR (quality_rating >= 0 AND quality_rating <= 5)",
            name="ck_suppliers_quality_rating",
        ),
        CheckConstraint(
            "delivery_rating IS NULL OR (delivery_rating >= 0 AND delivery_rating <= 5)",
            name="ck_suppliers_delivery_rating",
        ),
        Index("idx_suppliers_workspace_company", "workspace_id", "company_id"),
        Index("idx_suppliers_status", "status"),
        Index(
            "uq_suppliers_workspace_company_code",
            "workspace_id",
            "company_id",
            "supplier_code",
            unique=True,
            postgresql_where=text("deleted_at IS NULL AND supplier_code IS NOT NULL"),
        ),
    )


class SupplierAddress(Base):
    __tablename__ = "supplier_addresses"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    supplier_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("suppliers.id", ondelete="CASCADE"),
        nullable=False,
    )
    address_type: Mapped[str] = mapped_column(String(20), default="billing")
    title: Mapped[Optional[str]] = mapped_column(String(200))
    address: Mapped[str] = mapped_column(Text, nullable=False)
    district: Mapped[Optional[str]] = mapped_column(String(100))
    city: Mapped[Optional[str]] = mapped_column(String(100))
    postal_code: Mapped[Optional[str]] = mapped_column(String(10))
    country: Mapped[Optional[str]] = mapped_column(String(100))
    phone: Mapped[Optional[str]] = mapped_column(String(30))
    email: Mapped[Optional[str]] = mapped_column(String(255))
    contact_name: Mapped[Optional[str]] = mapped_column(String(200))
    contact_title: Mapped[Optional[str]] = mapped_column(String(100))
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        Index("idx_supplier_addresses_supplier", "supplier_id"),
    )


class SupplierContact(Base):
    __tablename__ = "supplier_contacts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    supplier_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("suppliers.id", ondelete="CASCADE"),
        nullable=False,
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(100))
    department: Mapped[Optional[str]] = mapped_column(String(100))
    phone: Mapped[Optional[str]] = mapped_column(String(30))
    mobile: Mapped[Optional[str]] = mapped_column(String(30))
    email: Mapped[Optional[str]] = mapped_column(String(255))
    fax: Mapped[Optional[str]] = mapped_column(String(30))
    role: Mapped[Optional[str]] = mapped_column(String(100))
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        Index("idx_supplier_contacts_supplier", "supplier_id"),
    )
