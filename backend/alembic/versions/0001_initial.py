"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _stamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("created_by_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("updated_by_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(length=80), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column(
            "role",
            sa.Enum("dentist", "assistant", "admin", name="role_enum"),
            nullable=False,
            server_default="dentist",
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("reset_token_hash", sa.String(length=64), nullable=True),
        sa.Column("reset_token_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reset_token_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("phone"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "patients",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("first_name", sa.String(length=120), nullable=False),
        sa.Column("last_name", sa.String(length=120), nullable=False),
        sa.Column("dob", sa.Date(), nullable=True),
        sa.Column("gender", sa.String(length=32), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("address_line1", sa.String(length=200), nullable=True),
        sa.Column("address_line2", sa.String(length=200), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("state", sa.String(length=100), nullable=True),
        sa.Column("pincode", sa.String(length=20), nullable=True),
        sa.Column("occupation", sa.String(length=120), nullable=True),
        sa.Column("emergency_contact", sa.Text(), nullable=True),
        sa.Column("photo_url", sa.Text(), nullable=True),
        *_stamps(),
    )
    op.create_index("ix_patients_created_by_user_id", "patients", ["created_by_user_id"])

    tri_state = [
        ("surgery_or_hospitalized", "surgery_details"),
        ("fever_cold_cough", "fever_details"),
        ("abnormal_bleeding_history", "abnormal_bleeding_details"),
        ("taking_medicine", "medicine_details"),
        ("medication_allergy", "medication_allergy_details"),
    ]
    flags = [
        "artificial_valves_pacemaker",
        "asthma",
        "allergy",
        "bleeding_tendency",
        "epilepsy_seizure",
        "heart_disease",
        "hyp_hypertension",
        "hormone_disorder",
        "jaundice_liver",
        "stomach_ulcer",
        "low_high_pressure",
        "arthritis_joint",
        "kidney_problems",
        "thyroid_problems",
        "other_problem",
    ]
    history_columns: list[sa.Column] = []
    for answer, details in tri_state:
        history_columns.append(sa.Column(answer, sa.String(length=3), nullable=False, server_default=""))
        history_columns.append(sa.Column(details, sa.Text(), nullable=True))
    history_columns.append(sa.Column("past_dental_history", sa.Text(), nullable=True))
    for flag in flags:
        history_columns.append(sa.Column(flag, sa.Boolean(), nullable=False, server_default=sa.text("false")))
    op.create_table(
        "medical_histories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "patient_id",
            sa.Integer(),
            sa.ForeignKey("patients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        *history_columns,
        sa.Column("other_problem_text", sa.Text(), nullable=True),
        *_stamps(),
        sa.UniqueConstraint("patient_id"),
    )

    op.create_table(
        "visits",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "patient_id",
            sa.Integer(),
            sa.ForeignKey("patients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("chief_complaint", sa.Text(), nullable=True),
        sa.Column("duration_onset", sa.Text(), nullable=True),
        sa.Column("trigger_factors", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("diagnosis_notes", sa.Text(), nullable=True),
        sa.Column("treatment_plan_notes", sa.Text(), nullable=True),
        sa.Column("findings", sa.JSON(), nullable=True),
        sa.Column("procedures", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("visit_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        *_stamps(),
    )
    op.create_index("ix_visits_patient_id", "visits", ["patient_id"])
    op.create_index("ix_visits_visit_at", "visits", ["visit_at"])

    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "patient_id",
            sa.Integer(),
            sa.ForeignKey("patients.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("patient_name", sa.String(length=200), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("time_slot", sa.Text(), nullable=False),
        sa.Column("service_type", sa.String(length=120), nullable=False, server_default="Checkup"),
        sa.Column(
            "status",
            sa.Enum(
                "Pending",
                "Confirmed",
                "Cancelled",
                "Completed",
                "No Show",
                "Rescheduled",
                name="appointment_status",
            ),
            nullable=False,
            server_default="Pending",
        ),
        sa.Column("rescheduled_date", sa.Date(), nullable=True),
        sa.Column("rescheduled_time", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_stamps(),
        sa.CheckConstraint(
            "status <> 'Rescheduled' OR "
            "(rescheduled_date IS NOT NULL AND rescheduled_time IS NOT NULL)",
            name="ck_appointments_rescheduled_fields",
        ),
    )
    op.create_index("ix_appointments_date", "appointments", ["date"])

    op.create_table(
        "user_submissions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("dob", sa.Date(), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("institution", sa.String(length=200), nullable=True),
        sa.Column("institution_type", sa.String(length=60), nullable=False, server_default="Other"),
        *_stamps(),
    )

    op.create_table(
        "audit_events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("happened_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("action", sa.String(length=16), nullable=False),
        sa.Column("table_name", sa.String(length=64), nullable=False),
        sa.Column("row_id", sa.String(length=64), nullable=False),
        sa.Column("actor_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("actor_email", sa.String(length=320), nullable=True),
        sa.Column("request_id", sa.String(length=120), nullable=True),
        sa.Column("old_data", sa.JSON(), nullable=True),
        sa.Column("new_data", sa.JSON(), nullable=True),
    )
    op.create_index("ix_audit_events_happened_at", "audit_events", ["happened_at"])
    op.create_index("ix_audit_events_action", "audit_events", ["action"])
    op.create_index("ix_audit_events_table_name", "audit_events", ["table_name"])


def downgrade() -> None:
    op.drop_table("audit_events")
    op.drop_table("user_submissions")
    op.drop_table("appointments")
    op.drop_table("visits")
    op.drop_table("medical_histories")
    op.drop_table("patients")
    op.drop_table("users")
    sa.Enum(name="appointment_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="role_enum").drop(op.get_bind(), checkfirst=True)
