"""initial schema

Revision ID: 001
Revises:
Create Date: 2025-01-06
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=50), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint("role IN ('admin', 'manager', 'supervisor', 'operator')", name="chk_user_role"),
    )
    op.create_index("ix_users_name", "users", ["name"])
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "sites",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("city", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_sites_code", "sites", ["code"], unique=True)

    op.create_table(
        "machines",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("site_id", sa.Uuid(), sa.ForeignKey("sites.id"), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("model", sa.String(length=255), nullable=True),
        sa.Column("serial_number", sa.String(length=100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_machines_site_id", "machines", ["site_id"])

    op.create_table(
        "inventory_items",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("site_id", sa.Uuid(), sa.ForeignKey("sites.id"), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("sku", sa.String(length=100), nullable=True, unique=True),
        sa.Column("current_stock", sa.Integer(), nullable=False),
        sa.Column("min_stock", sa.Integer(), nullable=False),
        sa.Column("unit", sa.String(length=20), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_restocked", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint("current_stock >= 0", name="chk_inventory_stock_non_negative"),
    )
    op.create_index("ix_inventory_items_site_id", "inventory_items", ["site_id"])

    op.create_table(
        "maintenance_records",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("machine_id", sa.Uuid(), sa.ForeignKey("machines.id", ondelete="SET NULL"), nullable=True),
        sa.Column("site_id", sa.Uuid(), sa.ForeignKey("sites.id", ondelete="SET NULL"), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("priority", sa.String(length=20), nullable=False),
        sa.Column("scheduled_date", sa.DateTime(), nullable=True),
        sa.Column("scheduled_day", sa.Date(), nullable=True),
        sa.Column("due_date", sa.DateTime(), nullable=True),
        sa.Column("completed_date", sa.DateTime(), nullable=True),
        sa.Column("assigned_to", sa.String(length=255), nullable=True),
        sa.Column("cost", sa.Float(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_recurring", sa.Boolean(), nullable=False),
        sa.Column("recurrence_pattern", sa.String(length=20), nullable=True),
        sa.Column("recurrence_interval", sa.Integer(), nullable=False),
        sa.Column("recurrence_end_date", sa.DateTime(), nullable=True),
        sa.Column("parent_maintenance_id", sa.Uuid(), nullable=True),
        sa.Column("is_template", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN ('pending', 'in-progress', 'completed', 'cancelled')",
            name="chk_maintenance_status",
        ),
        sa.CheckConstraint(
            "priority IN ('low', 'medium', 'high', 'critical')",
            name="chk_maintenance_priority",
        ),
        sa.CheckConstraint(
            "recurrence_pattern IS NULL OR recurrence_pattern IN "
            "('daily', 'weekly', 'fortnight', 'monthly', 'quarterly', 'yearly')",
            name="chk_maintenance_recurrence_pattern",
        ),
        sa.CheckConstraint("recurrence_interval >= 1", name="chk_maintenance_recurrence_interval"),
        sa.UniqueConstraint("parent_maintenance_id", "scheduled_day", name="uq_maintenance_occurrence_day"),
    )
    op.create_index("ix_maintenance_records_machine_id", "maintenance_records", ["machine_id"])
    op.create_index("ix_maintenance_records_site_id", "maintenance_records", ["site_id"])
    op.create_index("ix_maintenance_records_status", "maintenance_records", ["status"])
    op.create_index("ix_maintenance_records_scheduled_date", "maintenance_records", ["scheduled_date"])
    op.create_index("ix_maintenance_records_parent_maintenance_id", "maintenance_records", ["parent_maintenance_id"])
    op.create_index("ix_maintenance_records_is_template", "maintenance_records", ["is_template"])
    op.create_index(
        "idx_maintenance_templates_active",
        "maintenance_records",
        ["is_template", "is_recurring", "status"],
    )

    op.create_table(
        "maintenance_materials",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column(
            "maintenance_id",
            sa.Uuid(),
            sa.ForeignKey("maintenance_records.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("inventory_item_id", sa.Uuid(), sa.ForeignKey("inventory_items.id"), nullable=False),
        sa.Column("quantity_used", sa.Integer(), nullable=False),
        sa.Column("deducted_from_inventory", sa.Boolean(), nullable=False),
        sa.CheckConstraint("quantity_used >= 0", name="chk_material_quantity_non_negative"),
    )
    op.create_index("ix_maintenance_materials_maintenance_id", "maintenance_materials", ["maintenance_id"])
    op.create_index("ix_maintenance_materials_inventory_item_id", "maintenance_materials", ["inventory_item_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("priority", sa.String(length=20), nullable=False),
        sa.Column("related_model", sa.String(length=50), nullable=True),
        sa.Column("related_id", sa.Uuid(), nullable=True),
        sa.Column("action_url", sa.String(length=255), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        sa.Column("read_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "type IN ('maintenance', 'inventory', 'requisition', 'system', 'reminder')",
            name="chk_notification_type",
        ),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index(
        "idx_notifications_user_read_created",
        "notifications",
        ["user_id", "is_read", "created_at"],
    )


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("maintenance_materials")
    op.drop_table("maintenance_records")
    op.drop_table("inventory_items")
    op.drop_table("machines")
    op.drop_table("sites")
    op.drop_table("users")
