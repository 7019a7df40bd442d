"""Pydantic schemas for API."""
from pydantic import AfterValidator, BaseModel, Field, ConfigDict
from typing import Annotated, Literal, Optional
from datetime import datetime, timezone
from uuid import UUID


def _naive_utc(value: datetime) -> datetime:
    # Columns store naive UTC; aware inputs are converted, naive ones taken as UTC.
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


UtcDateTime = Annotated[datetime, AfterValidator(_naive_utc)]


MaintenanceStatus = Literal["pending", "in-progress", "completed", "cancelled"]
Priority = Literal["low", "medium", "high", "critical"]
RecurrencePattern = Literal["daily", "weekly", "fortnight", "monthly", "quarterly", "yearly"]


# Machines
class MachineResponse(BaseModel):
    id: UUID
    name: str
    model: Optional[str] = None
    serial_number: Optional[str] = None
    site_id: Optional[UUID] = None
    is_active: bool
    model_config = ConfigDict(from_attributes=True)


class MachineBrief(BaseModel):
    id: UUID
    name: str
    model_config = ConfigDict(from_attributes=True)


# Inventory
class InventoryItemCreate(BaseModel):
    name: str
    category: str
    sku: Optional[str] = None
    current_stock: int = Field(default=0, ge=0)
    min_stock: int = Field(default=0, ge=0)
    unit: str = "pcs"
    site_id: Optional[UUID] = None


class InventoryItemResponse(BaseModel):
    id: UUID
    name: str
    category: str
    sku: Optional[str] = None
    current_stock: int
    min_stock: int
    unit: str
    is_active: bool
    last_restocked: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class StockAdjustmentRequest(BaseModel):
    """Signed manual adjustment; positive restocks, negative consumes."""
    delta: int
    reason: Optional[str] = None


# Maintenance
class MaterialUsageIn(BaseModel):
    inventory_item_id: UUID
    quantity_used: int = Field(gt=0)


class MaterialUsageOut(BaseModel):
    inventory_item_id: UUID
    quantity_used: int
    deducted_from_inventory: bool
    model_config = ConfigDict(from_attributes=True)


class MaintenanceCreate(BaseModel):
    title: str
    description: str = ""
    machine_id: Optional[UUID] = None
    site_id: Optional[UUID] = None
    status: MaintenanceStatus = "pending"
    priority: Priority = "medium"
    scheduled_date: Optional[UtcDateTime] = None
    due_date: Optional[UtcDateTime] = None
    assigned_to: Optional[str] = None
    cost: float = 0
    notes: Optional[str] = None
    materials_used: list[MaterialUsageIn] = []
    is_recurring: bool = False
    recurrence_pattern: Optional[RecurrencePattern] = None
    recurrence_interval: int = Field(default=1, ge=1)
    recurrence_end_date: Optional[UtcDateTime] = None
    is_template: bool = False


class MaintenanceUpdate(BaseModel):
    """Partial update; omitted fields are left untouched, an explicit null clears a nullable field."""
    title: Optional[str] = None
    description: Optional[str] = None
    machine_id: Optional[UUID] = None
    site_id: Optional[UUID] = None
    status: Optional[MaintenanceStatus] = None
    priority: Optional[Priority] = None
    scheduled_date: Optional[UtcDateTime] = None
    due_date: Optional[UtcDateTime] = None
    completed_date: Optional[UtcDateTime] = None
    assigned_to: Optional[str] = None
    cost: Optional[float] = None
    notes: Optional[str] = None
    materials_used: Optional[list[MaterialUsageIn]] = None
    is_recurring: Optional[bool] = None
    recurrence_pattern: Optional[RecurrencePattern] = None
    recurrence_interval: Optional[int] = Field(default=None, ge=1)
    recurrence_end_date: Optional[UtcDateTime] = None


class MaintenanceResponse(BaseModel):
    id: UUID
    title: str
    description: str
    machine: Optional[MachineBrief] = None
    site_id: Optional[UUID] = None
    status: str
    priority: str
    scheduled_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    assigned_to: Optional[str] = None
    cost: float
    notes: Optional[str] = None
    materials_used: list[MaterialUsageOut] = []
    is_recurring: bool
    recurrence_pattern: Optional[str] = None
    recurrence_interval: int
    recurrence_end_date: Optional[datetime] = None
    parent_maintenance_id: Optional[UUID] = None
    is_template: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class InventoryDeductionOut(BaseModel):
    item_id: UUID
    item_name: str
    deducted: int
    remaining_stock: int
    model_config = ConfigDict(from_attributes=True)


class MaintenanceUpdateResponse(MaintenanceResponse):
    """Updated record plus completion side effects."""
    inventory_deducted: Optional[list[InventoryDeductionOut]] = None
    inventory_errors: list[str] = []
    next_maintenance_scheduled: bool = False
    next_maintenance_id: Optional[UUID] = None
    next_maintenance_date: Optional[datetime] = None


# Notifications
class NotificationResponse(BaseModel):
    id: UUID
    title: str
    message: str
    type: str
    priority: str
    related_model: Optional[str] = None
    related_id: Optional[UUID] = None
    action_url: Optional[str] = None
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class UnreadCountResponse(BaseModel):
    unread: int


class BulkActionResponse(BaseModel):
    affected: int


# Scheduler
class SchedulerRunResponse(BaseModel):
    job: str
    result: dict
