import uuid

from sqlalchemy import (
    DDL,
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    event,
    text,
)
from sqlalchemy.dialects.postgresql import ExcludeConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    """Generate a UUID primary key"""
    return str(uuid.uuid4())


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    slug = Column(String(50), unique=True, index=True, nullable=False)
    timezone = Column(String(64), nullable=False, default="UTC")  # IANA zone name
    currency = Column(String(3), nullable=False, default="NGN")  # ISO 4217
    status = Column(String(20), nullable=False, default="active")  # active, inactive, suspended
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    users = relationship("UserProfile", back_populates="tenant")
    services = relationship("Service", back_populates="tenant")
    staff = relationship("Staff", back_populates="tenant")


class UserProfile(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True)  # Auth provider subject (JWT "sub")
    tenant_id = Column(String(36), ForeignKey("tenants.id"), index=True, nullable=True)
    name = Column(String(255), nullable=True)
    email = Column(String(255), index=True, nullable=True)
    role = Column(String(20), nullable=False, default="customer")  # owner, admin, staff, customer
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    tenant = relationship("Tenant", back_populates="users")


class ServiceStaff(Base):
    __tablename__ = "service_staff"

    service_id = Column(String(36), ForeignKey("services.id", ondelete="CASCADE"), primary_key=True)
    staff_id = Column(String(36), ForeignKey("staff.id", ondelete="CASCADE"), primary_key=True)


class Service(Base):
    __tablename__ = "services"

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    duration_minutes = Column(Integer, nullable=False)
    buffer_before_minutes = Column(Integer, nullable=False, default=0)
    buffer_after_minutes = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    tenant = relationship("Tenant", back_populates="services")
    staff = relationship("Staff", secondary="service_staff", back_populates="services")


class Staff(Base):
    __tablename__ = "staff"

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    tenant = relationship("Tenant", back_populates="staff")
    services = relationship("Service", secondary="service_staff", back_populates="staff")
    working_hours = relationship(
        "StaffWorkingHours", back_populates="staff", cascade="all, delete-orphan"
    )
    time_off = relationship("StaffTimeOff", back_populates="staff", cascade="all, delete-orphan")


class StaffWorkingHours(Base):
    __tablename__ = "staff_working_hours"

    id = Column(String(36), primary_key=True, default=generate_id)
    staff_id = Column(String(36), ForeignKey("staff.id", ondelete="CASCADE"), index=True, nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday ... 6 = Saturday
    start_time = Column(String(8), nullable=False)  # "HH:MM" tenant-local
    end_time = Column(String(8), nullable=False)

    staff = relationship("Staff", back_populates="working_hours")


class StaffTimeOff(Base):
    __tablename__ = "staff_time_off"

    id = Column(String(36), primary_key=True, default=generate_id)
    staff_id = Column(String(36), ForeignKey("staff.id", ondelete="CASCADE"), index=True, nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    reason = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    staff = relationship("Staff", back_populates="time_off")


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), index=True, nullable=True)
    phone = Column(String(50), index=True, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # One customer per phone number within a tenant
    __table_args__ = (UniqueConstraint("tenant_id", "phone", name="customers_tenant_phone_key"),)


class TenantTimeOff(Base):
    """Closure of the whole business (holidays, renovations); blocks every staff member"""

    __tablename__ = "tenant_time_off"

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="CASCADE"), index=True, nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    reason = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class SlotLock(Base):
    __tablename__ = "slot_locks"

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), index=True, nullable=False)
    session_id = Column(String(255), index=True, nullable=False)
    staff_id = Column(String(36), ForeignKey("staff.id", ondelete="CASCADE"), index=True, nullable=False)
    service_id = Column(String(36), ForeignKey("services.id", ondelete="CASCADE"), nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=False)  # buffers included
    end_time = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        ExcludeConstraint(
            (staff_id, "="),
            (func.tstzrange(start_time, end_time), "&&"),
            name="slot_locks_no_overlap",
            using="gist",
        ).ddl_if(dialect="postgresql"),
    )


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), index=True, nullable=False)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False)
    staff_id = Column(String(36), ForeignKey("staff.id"), index=True, nullable=False)
    customer_id = Column(String(36), ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    start_time = Column(DateTime(timezone=True), index=True, nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(20), nullable=False, default="confirmed")
    notes = Column(Text, nullable=True)
    payment_reference = Column(String(100), nullable=True)
    deposit_paid = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer")
    service = relationship("Service")
    staff = relationship("Staff")

    __table_args__ = (
        ExcludeConstraint(
            (staff_id, "="),
            (func.tstzrange(start_time, end_time), "&&"),
            name="appointments_no_overlap",
            using="gist",
            where=text("status <> 'cancelled'"),
        ).ddl_if(dialect="postgresql"),
    )


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), index=True, nullable=False)
    appointment_id = Column(String(36), ForeignKey("appointments.id"), index=True, nullable=True)
    provider = Column(String(20), nullable=False, default="paystack")
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="NGN")
    status = Column(String(20), nullable=False, default="pending")  # pending, success, failed
    reference = Column(String(100), nullable=False)
    provider_reference = Column(String(100), index=True, nullable=True)
    gateway_response = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (UniqueConstraint("reference", name="uq_payments_reference"),)


# Exclusion constraints above mix equality and range operators in one gist index
event.listen(
    Base.metadata,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
