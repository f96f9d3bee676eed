"""initial schema

Revision ID: 3f1a9c2e7b10
Revises:
Create Date: 2025-07-02 10:14:05.118204

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f1a9c2e7b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


user_role = sa.Enum("admin", "reception", "security", "employee", name="user_role")
employee_department = sa.Enum("it", "hr", "finance", "operations", "sales", name="employee_department")
visitor_status = sa.Enum("checked-in", "checked-out", "expected", name="visitor_status")
vehicle_type = sa.Enum("company-car", "employee-personal", "visitor", "delivery", name="vehicle_type")
travel_status = sa.Enum("departed", "returned", "delayed", name="travel_status")
sender_type = sa.Enum("supplier", "employee", "client", "other", name="sender_type")
parcel_status = sa.Enum("received", "collected", "returned", name="parcel_status")
appointment_department = sa.Enum(
    "IT", "Sales", "Marketing", "Legal", "Executive", "HR", "Finance", "Operations",
    name="appointment_department",
)
appointment_status = sa.Enum(
    "pending", "confirmed", "scheduled", "cancelled", "completed", "no-show",
    name="appointment_status",
)
appointment_type = sa.Enum("meeting", "interview", "delivery", "maintenance", "other", name="appointment_type")
client_industry = sa.Enum(
    "technology", "finance", "healthcare", "retail", "manufacturing", "other",
    name="client_industry",
)
client_status = sa.Enum("active", "inactive", "prospect", name="client_status")


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("hashed_password", sa.String(), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("department", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("failed_login_attempts", sa.Integer(), nullable=False),
        sa.Column("locked_until", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("employee_id", sa.String(), nullable=False),
        sa.Column("department", employee_department, nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_employees_id", "employees", ["id"])
    op.create_index("ix_employees_name", "employees", ["name"])
    op.create_index("ix_employees_employee_id", "employees", ["employee_id"], unique=True)

    op.create_table(
        "visitors",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=False),
        sa.Column("company", sa.String(), nullable=True),
        sa.Column("purpose", sa.String(), nullable=False),
        sa.Column("employee_to_meet_id", sa.Integer(), sa.ForeignKey("employees.id", ondelete="SET NULL"), nullable=True),
        sa.Column("employee_to_meet_name", sa.String(), nullable=True),
        sa.Column("check_in_time", sa.DateTime(), nullable=True),
        sa.Column("check_out_time", sa.DateTime(), nullable=True),
        sa.Column("status", visitor_status, nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("badge_number", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_visitors_id", "visitors", ["id"])
    op.create_index("ix_visitors_name", "visitors", ["name"])
    op.create_index("ix_visitors_check_in_time", "visitors", ["check_in_time"])

    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("registration_number", sa.String(), nullable=False),
        sa.Column("vehicle_type", vehicle_type, nullable=False),
        sa.Column("owner_name", sa.String(), nullable=False),
        sa.Column("owner_phone", sa.String(), nullable=True),
        sa.Column("purpose", sa.String(), nullable=True),
        sa.Column("entry_time", sa.DateTime(), nullable=True),
        sa.Column("exit_time", sa.DateTime(), nullable=True),
        sa.Column("current_mileage", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("security_guard", sa.String(), nullable=True),
        sa.Column("last_service_mileage", sa.Integer(), nullable=True),
        sa.Column("last_service_date", sa.Date(), nullable=True),
    )
    op.create_index("ix_vehicles_id", "vehicles", ["id"])
    op.create_index("ix_vehicles_registration_number", "vehicles", ["registration_number"], unique=True)
    op.create_index("ix_vehicles_entry_time", "vehicles", ["entry_time"])

    op.create_table(
        "mileage_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("vehicle_id", sa.Integer(), sa.ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("reading", sa.Integer(), nullable=False),
        sa.Column("distance", sa.Integer(), nullable=False),
        sa.Column("recorded_at", sa.DateTime(), nullable=True),
        sa.Column("recorded_by_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
    )
    op.create_index("ix_mileage_records_id", "mileage_records", ["id"])
    op.create_index("ix_mileage_records_vehicle_id", "mileage_records", ["vehicle_id"])

    op.create_table(
        "phone_calls",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("employee_id", sa.Integer(), sa.ForeignKey("employees.id"), nullable=False),
        sa.Column("caller_name", sa.String(), nullable=True),
        sa.Column("caller_number", sa.String(), nullable=False),
        sa.Column("purpose", sa.String(), nullable=False),
        sa.Column("start_time", sa.DateTime(), nullable=True),
        sa.Column("end_time", sa.DateTime(), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("cost", sa.Float(), nullable=True),
    )
    op.create_index("ix_phone_calls_id", "phone_calls", ["id"])
    op.create_index("ix_phone_calls_employee_id", "phone_calls", ["employee_id"])
    op.create_index("ix_phone_calls_start_time", "phone_calls", ["start_time"])

    op.create_table(
        "travel_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("employee_id", sa.Integer(), sa.ForeignKey("employees.id"), nullable=False),
        sa.Column("destination", sa.String(), nullable=False),
        sa.Column("purpose", sa.String(), nullable=False),
        sa.Column("departure_time", sa.DateTime(), nullable=False),
        sa.Column("expected_return", sa.DateTime(), nullable=True),
        sa.Column("actual_return", sa.DateTime(), nullable=True),
        sa.Column("status", travel_status, nullable=False),
    )
    op.create_index("ix_travel_logs_id", "travel_logs", ["id"])
    op.create_index("ix_travel_logs_employee_id", "travel_logs", ["employee_id"])
    op.create_index("ix_travel_logs_departure_time", "travel_logs", ["departure_time"])

    op.create_table(
        "parcel_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tracking_number", sa.String(), nullable=True),
        sa.Column("sender", sa.String(), nullable=False),
        sa.Column("sender_type", sender_type, nullable=False),
        sa.Column("recipient_id", sa.Integer(), sa.ForeignKey("employees.id"), nullable=False),
        sa.Column("description", sa.String(), nullable=False),
        sa.Column("received_at", sa.DateTime(), nullable=True),
        sa.Column("collected_at", sa.DateTime(), nullable=True),
        sa.Column("status", parcel_status, nullable=False),
    )
    op.create_index("ix_parcel_logs_id", "parcel_logs", ["id"])
    op.create_index("ix_parcel_logs_tracking_number", "parcel_logs", ["tracking_number"], unique=True)
    op.create_index("ix_parcel_logs_recipient_id", "parcel_logs", ["recipient_id"])
    op.create_index("ix_parcel_logs_received_at", "parcel_logs", ["received_at"])

    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("visitor_name", sa.String(), nullable=False),
        sa.Column("company", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=False),
        sa.Column("purpose", sa.String(), nullable=False),
        sa.Column("employee_to_meet_id", sa.Integer(), sa.ForeignKey("employees.id"), nullable=False),
        sa.Column("employee_to_meet_text", sa.String(), nullable=True),
        sa.Column("department", appointment_department, nullable=False),
        sa.Column("scheduled_time", sa.DateTime(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("status", appointment_status, nullable=False),
        sa.Column("appointment_type", appointment_type, nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("visitor_arrived", sa.Boolean(), nullable=False),
        sa.Column("check_in_time", sa.DateTime(), nullable=True),
        sa.Column("check_out_time", sa.DateTime(), nullable=True),
        sa.Column("send_reminder", sa.Boolean(), nullable=False),
        sa.Column("reminder_sent", sa.Boolean(), nullable=False),
        sa.Column("reminder_sent_at", sa.DateTime(), nullable=True),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("updated_by_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_appointments_id", "appointments", ["id"])
    op.create_index("ix_appointments_visitor_name", "appointments", ["visitor_name"])
    op.create_index("ix_appointments_employee_to_meet_id", "appointments", ["employee_to_meet_id"])
    op.create_index("ix_appointments_scheduled_time", "appointments", ["scheduled_time"])

    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("company_name", sa.String(), nullable=False),
        sa.Column("contact_person", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("city", sa.String(), nullable=True),
        sa.Column("country", sa.String(), nullable=True),
        sa.Column("industry", client_industry, nullable=True),
        sa.Column("client_since", sa.Date(), nullable=True),
        sa.Column("status", client_status, nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("assigned_employee_id", sa.Integer(), sa.ForeignKey("employees.id", ondelete="SET NULL"), nullable=True),
    )
    op.create_index("ix_clients_id", "clients", ["id"])
    op.create_index("ix_clients_company_name", "clients", ["company_name"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("entity", sa.String(), nullable=True),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("action", sa.String(), nullable=True),
        sa.Column("actor_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("timestamp", sa.DateTime(), nullable=True),
        sa.Column("data", sa.JSON(), nullable=True),
    )
    op.create_index("ix_audit_logs_id", "audit_logs", ["id"])
    op.create_index("ix_audit_logs_entity", "audit_logs", ["entity"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_timestamp", "audit_logs", ["timestamp"])


def downgrade():
    for table_name in (
        "audit_logs", "clients", "appointments", "parcel_logs", "travel_logs",
        "phone_calls", "mileage_records", "vehicles", "visitors", "employees", "users",
    ):
        op.drop_table(table_name)

    bind = op.get_bind()
    for enum_type in (
        client_status, client_industry, appointment_type, appointment_status,
        appointment_department, parcel_status, sender_type, travel_status,
        vehicle_type, visitor_status, employee_department, user_role,
    ):
        enum_type.drop(bind, checkfirst=True)
