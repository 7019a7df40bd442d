"""SQLAlchemy models for the maintenance tracker."""
from sqlalchemy import (
    Boolean, Column, String, Integer, Float, Date, DateTime, Text, Uuid,
    ForeignKey, CheckConstraint, Index, UniqueConstraint,
)
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql import func
import uuid

from .database import Base


MAINTENANCE_STATUSES = ("pending", "in-progress", "completed", "cancelled")
PRIORITIES = ("low", "medium", "high", "critical")
RECURRENCE_PATTERNS = ("daily", "weekly", "fortnight", "monthly", "quarterly", "yearly")
NOTIFICATION_TYPES = ("maintenance", "inventory", "requisition", "system", "reminder")
USER_ROLES = ("admin", "manager", "supervisor", "operator")


class User(Base):
    """User model (accounts are managed by the auth service)."""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False, index=True)
    email = Column(String(255), nullable=True)
    role = Column(String(50), nullable=False, default="operator", index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        CheckConstraint(role.in_(USER_ROLES), name="chk_user_role"),
    )


class Site(Base):
    """Physical site where machines live."""
    __tablename__ = "sites"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    code = Column(String(50), unique=True, nullable=False, index=True)
    city = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())

    machines = relationship("Machine", back_populates="site")


class Machine(Base):
    """Machine/equipment model."""
    __tablename__ = "machines"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    site_id = Column(Uuid, ForeignKey("sites.id"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    model = Column(String(255), nullable=True)
    serial_number = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    site = relationship("Site", back_populates="machines")


class InventoryItem(Base):
    """Stockable part or material."""
    __tablename__ = "inventory_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    site_id = Column(Uuid, ForeignKey("sites.id"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False)
    sku = Column(String(100), unique=True, nullable=True)
    current_stock = Column(Integer, nullable=False, default=0)
    min_stock = Column(Integer, nullable=False, default=0)
    unit = Column(String(20), nullable=False, default="pcs")
    is_active = Column(Boolean, nullable=False, default=True)
    last_restocked = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("current_stock >= 0", name="chk_inventory_stock_non_negative"),
    )


class MaintenanceRecord(Base):
    """
    One unit of scheduled or completed maintenance work.

    Templates (is_template=True) only carry the recurrence rule; the scheduler
    spawns concrete occurrences from them. parent_maintenance_id is a weak
    back-reference to the chain root: plain column, no FK, no cascade.
    """
    __tablename__ = "maintenance_records"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    machine_id = Column(Uuid, ForeignKey("machines.id", ondelete="SET NULL"), nullable=True, index=True)
    site_id = Column(Uuid, ForeignKey("sites.id", ondelete="SET NULL"), nullable=True, index=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    priority = Column(String(20), nullable=False, default="medium")
    scheduled_date = Column(DateTime, nullable=True, index=True)
    # Calendar day of scheduled_date; part of the occurrence dedup key.
    scheduled_day = Column(Date, nullable=True)
    due_date = Column(DateTime, nullable=True)
    completed_date = Column(DateTime, nullable=True)
    assigned_to = Column(String(255), nullable=True)
    cost = Column(Float, nullable=False, default=0)
    notes = Column(Text, nullable=True)

    # Recurrence
    is_recurring = Column(Boolean, nullable=False, default=False)
    recurrence_pattern = Column(String(20), nullable=True)
    recurrence_interval = Column(Integer, nullable=False, default=1)
    recurrence_end_date = Column(DateTime, nullable=True)
    parent_maintenance_id = Column(Uuid, nullable=True, index=True)
    is_template = Column(Boolean, nullable=False, default=False, index=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    machine = relationship("Machine", lazy="joined")
    site = relationship("Site")
    materials_used = relationship(
        "MaterialUsage",
        back_populates="maintenance",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint(status.in_(MAINTENANCE_STATUSES), name="chk_maintenance_status"),
        CheckConstraint(priority.in_(PRIORITIES), name="chk_maintenance_priority"),
        CheckConstraint(
            "recurrence_pattern IS NULL OR recurrence_pattern IN "
            "('daily', 'weekly', 'fortnight', 'monthly', 'quarterly', 'yearly')",
            name="chk_maintenance_recurrence_pattern",
        ),
        CheckConstraint("recurrence_interval >= 1", name="chk_maintenance_recurrence_interval"),
        # Dedup invariant: one occurrence per chain root per calendar day.
        # NULL parents (manual records, templates) never collide.
        UniqueConstraint("parent_maintenance_id", "scheduled_day", name="uq_maintenance_occurrence_day"),
        Index("idx_maintenance_templates_active", "is_template", "is_recurring", "status"),
    )

    @validates("scheduled_date")
    def _sync_scheduled_day(self, _key, value):
        self.scheduled_day = value.date() if value is not None else None
        return value


class MaterialUsage(Base):
    """Inventory consumed by a maintenance record."""
    __tablename__ = "maintenance_materials"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    maintenance_id = Column(
        Uuid,
        ForeignKey("maintenance_records.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    inventory_item_id = Column(Uuid, ForeignKey("inventory_items.id"), nullable=False, index=True)
    quantity_used = Column(Integer, nullable=False)
    deducted_from_inventory = Column(Boolean, nullable=False, default=False)

    maintenance = relationship("MaintenanceRecord", back_populates="materials_used")
    inventory_item = relationship("InventoryItem", lazy="joined")

    __table_args__ = (
        CheckConstraint("quantity_used >= 0", name="chk_material_quantity_non_negative"),
    )


class Notification(Base):
    """In-app notification, one row per recipient."""
    __tablename__ = "notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(20), nullable=False, default="system")
    priority = Column(String(20), nullable=False, default="medium")
    related_model = Column(String(50), nullable=True)
    related_id = Column(Uuid, nullable=True)
    action_url = Column(String(255), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint(type.in_(NOTIFICATION_TYPES), name="chk_notification_type"),
        Index("idx_notifications_user_read_created", "user_id", "is_read", "created_at"),
    )
