"""Initial DesiCargo schema: branches, users, parties, fleet, bookings, manifests.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # ── branches ─────────────────────────────────────────────
    op.create_table(
        "branches",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("code", sa.String(20), nullable=False),
        sa.Column("address", sa.Text()),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("state", sa.String(100), nullable=False),
        sa.Column("pincode", sa.String(10)),
        sa.Column("phone", sa.String(20)),
        sa.Column("email", sa.String(255)),
        sa.Column("is_head_office", sa.Boolean(), server_default=sa.false()),
        sa.Column("status", sa.String(20), server_default="active"),
        *_timestamps(),
    )
    op.create_index("ix_branches_code", "branches", ["code"], unique=True)
    op.create_index("ix_branches_status", "branches", ["status"])

    # ── users ────────────────────────────────────────────────
    user_role = sa.Enum("admin", "branch_manager", "staff", "accountant", name="user_role")
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255)),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("role", user_role, server_default="staff"),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("email_verified", sa.Boolean(), server_default=sa.false()),
        sa.Column("branch_id", sa.String(36), sa.ForeignKey("branches.id")),
        sa.Column("created_by", sa.String(36)),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_branch_id", "users", ["branch_id"])

    # ── customers / articles ─────────────────────────────────
    op.create_table(
        "customers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("branch_id", sa.String(36), sa.ForeignKey("branches.id")),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("mobile", sa.String(20), nullable=False),
        sa.Column("email", sa.String(255)),
        sa.Column("gst_number", sa.String(20)),
        sa.Column("address", sa.Text()),
        sa.Column("type", sa.String(20), server_default="individual"),
        *_timestamps(),
    )
    op.create_index("ix_customers_branch_id", "customers", ["branch_id"])
    op.create_index("ix_customers_name", "customers", ["name"])
    op.create_index("ix_customers_mobile", "customers", ["mobile"])

    op.create_table(
        "articles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("branch_id", sa.String(36), sa.ForeignKey("branches.id")),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("base_rate", sa.Float(), server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_articles_branch_id", "articles", ["branch_id"])

    # ── vehicles ─────────────────────────────────────────────
    op.create_table(
        "vehicles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("branch_id", sa.String(36), sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("vehicle_number", sa.String(20), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("make", sa.String(100), nullable=False),
        sa.Column("model", sa.String(100), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), server_default="active"),
        sa.Column("last_maintenance_date", sa.Date()),
        sa.Column("next_maintenance_date", sa.Date()),
        *_timestamps(),
    )
    op.create_index("ix_vehicles_branch_id", "vehicles", ["branch_id"])
    op.create_index("ix_vehicles_vehicle_number", "vehicles", ["vehicle_number"], unique=True)
    op.create_index("ix_vehicles_status", "vehicles", ["status"])

    # ── bookings ─────────────────────────────────────────────
    op.create_table(
        "bookings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("branch_id", sa.String(36), sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("lr_number", sa.String(50), nullable=False),
        sa.Column("lr_type", sa.String(10), server_default="system"),
        sa.Column("manual_lr_number", sa.String(50)),
        sa.Column("from_branch", sa.String(36), sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("to_branch", sa.String(36), sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("sender_id", sa.String(36), sa.ForeignKey("customers.id"), nullable=False),
        sa.Column("receiver_id", sa.String(36), sa.ForeignKey("customers.id"), nullable=False),
        sa.Column("article_id", sa.String(36), sa.ForeignKey("articles.id"), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("uom", sa.String(20), server_default="Fixed"),
        sa.Column("actual_weight", sa.Float()),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("freight_per_qty", sa.Float(), nullable=False),
        sa.Column("loading_charges", sa.Float(), server_default="0"),
        sa.Column("unloading_charges", sa.Float(), server_default="0"),
        sa.Column("insurance_required", sa.Boolean(), server_default=sa.false()),
        sa.Column("insurance_value", sa.Float()),
        sa.Column("insurance_charge", sa.Float(), server_default="0"),
        sa.Column("packaging_type", sa.String(50)),
        sa.Column("packaging_charge", sa.Float(), server_default="0"),
        sa.Column("total_amount", sa.Float(), nullable=False),
        sa.Column("payment_type", sa.String(20), nullable=False),
        sa.Column("private_mark_number", sa.String(50)),
        sa.Column("remarks", sa.Text()),
        sa.Column("delivery_type", sa.String(20)),
        sa.Column("priority", sa.String(20)),
        sa.Column("expected_delivery_date", sa.Date()),
        sa.Column("invoice_number", sa.String(50)),
        sa.Column("invoice_amount", sa.Float()),
        sa.Column("invoice_date", sa.Date()),
        sa.Column("eway_bill_number", sa.String(50)),
        sa.Column("fragile", sa.Boolean(), server_default=sa.false()),
        sa.Column("special_instructions", sa.Text()),
        sa.Column("reference_number", sa.String(50)),
        sa.Column("status", sa.String(20), server_default="booked"),
        sa.Column("created_by", sa.String(36)),
        *_timestamps(),
    )
    op.create_index("ix_bookings_lr_number", "bookings", ["lr_number"], unique=True)
    op.create_index("ix_bookings_branch_id", "bookings", ["branch_id"])
    op.create_index("ix_bookings_from_branch", "bookings", ["from_branch"])
    op.create_index("ix_bookings_to_branch", "bookings", ["to_branch"])
    op.create_index("ix_bookings_sender_id", "bookings", ["sender_id"])
    op.create_index("ix_bookings_receiver_id", "bookings", ["receiver_id"])
    op.create_index("ix_bookings_payment_type", "bookings", ["payment_type"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_created_at", "bookings", ["created_at"])

    # ── manifests ────────────────────────────────────────────
    op.create_table(
        "ogpls",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("ogpl_number", sa.String(50), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("vehicle_id", sa.String(36), sa.ForeignKey("vehicles.id"), nullable=False),
        sa.Column("transit_mode", sa.String(20), nullable=False),
        sa.Column("transit_date", sa.Date(), nullable=False),
        sa.Column("from_station", sa.String(36), sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("to_station", sa.String(36), sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("departure_time", sa.String(5)),
        sa.Column("arrival_time", sa.String(5)),
        sa.Column("supervisor_name", sa.String(255), nullable=False),
        sa.Column("supervisor_mobile", sa.String(20), nullable=False),
        sa.Column("primary_driver_name", sa.String(255), nullable=False),
        sa.Column("primary_driver_mobile", sa.String(20), nullable=False),
        sa.Column("secondary_driver_name", sa.String(255)),
        sa.Column("secondary_driver_mobile", sa.String(20)),
        sa.Column("status", sa.String(20), server_default="in_transit"),
        sa.Column("created_by", sa.String(36)),
        *_timestamps(),
    )
    op.create_index("ix_ogpls_ogpl_number", "ogpls", ["ogpl_number"], unique=True)
    op.create_index("ix_ogpls_vehicle_id", "ogpls", ["vehicle_id"])
    op.create_index("ix_ogpls_from_station", "ogpls", ["from_station"])
    op.create_index("ix_ogpls_to_station", "ogpls", ["to_station"])
    op.create_index("ix_ogpls_status", "ogpls", ["status"])

    op.create_table(
        "ogpl_loading_records",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("ogpl_id", sa.String(36), sa.ForeignKey("ogpls.id"), nullable=False),
        sa.Column("booking_id", sa.String(36), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("loaded_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("loaded_by", sa.String(36)),
        sa.Column("remarks", sa.Text()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_ogpl_loading_records_ogpl_id", "ogpl_loading_records", ["ogpl_id"])
    op.create_index("ix_ogpl_loading_records_booking_id", "ogpl_loading_records", ["booking_id"])

    op.create_table(
        "unloading_records",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("ogpl_id", sa.String(36), sa.ForeignKey("ogpls.id"), nullable=False),
        sa.Column("unloaded_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("unloaded_by", sa.String(36), nullable=False),
        sa.Column("conditions", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_unloading_records_ogpl_id", "unloading_records", ["ogpl_id"])

    # ── activity_logs ────────────────────────────────────────
    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("user_name", sa.String(255), nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(36)),
        sa.Column("entity_code", sa.String(100)),
        sa.Column("summary", sa.Text()),
        sa.Column("details", sa.JSON()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_user_id", "activity_logs", ["user_id"])
    op.create_index("ix_activity_logs_action", "activity_logs", ["action"])
    op.create_index("ix_activity_logs_entity_type", "activity_logs", ["entity_type"])
    op.create_index("ix_activity_logs_created_at", "activity_logs", ["created_at"])


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_table("unloading_records")
    op.drop_table("ogpl_loading_records")
    op.drop_table("ogpls")
    op.drop_table("bookings")
    op.drop_table("vehicles")
    op.drop_table("articles")
    op.drop_table("customers")
    op.drop_table("users")
    sa.Enum(name="user_role").drop(op.get_bind(), checkfirst=True)
    op.drop_table("branches")
