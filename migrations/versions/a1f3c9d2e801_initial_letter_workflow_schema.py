"""initial_letter_workflow_schema

Create the directory (users, students) and workflow tables
(letter_requests, supporting_documents, disposition_assignments,
tracking_logs).

Revision ID: a1f3c9d2e801
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = "a1f3c9d2e801"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    existing_tables = set(sa_inspect(bind).get_table_names())

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("email", sa.String(length=200), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("role", sa.String(length=30), nullable=False),
            sa.Column("prodi", sa.String(length=100), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("email"),
        )
        op.create_index("ix_users_role", "users", ["role"])
        op.create_index("ix_users_role_prodi", "users", ["role", "prodi"])

    if "students" not in existing_tables:
        op.create_table(
            "students",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("nim", sa.String(length=30), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("prodi", sa.String(length=100), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("nim"),
        )
        op.create_index("ix_students_prodi", "students", ["prodi"])

    if "letter_requests" not in existing_tables:
        op.create_table(
            "letter_requests",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("student_id", sa.Integer(), nullable=False),
            sa.Column("created_by_user_id", sa.Integer(), nullable=False),
            sa.Column("letter_type", sa.String(length=200), nullable=False),
            sa.Column("purpose", sa.Text(), nullable=False),
            sa.Column("priority", sa.String(length=10), nullable=False, server_default="NORMAL"),
            sa.Column("status", sa.String(length=40), nullable=False, server_default="DRAFT"),
            sa.Column("current_handler_user_id", sa.Integer(), nullable=True),
            sa.Column("dekan_instructions", sa.Text(), nullable=True),
            sa.Column("final_letter_url", sa.String(length=1000), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["student_id"], ["students.id"]),
            sa.ForeignKeyConstraint(["created_by_user_id"], ["users.id"]),
            sa.ForeignKeyConstraint(["current_handler_user_id"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_letter_requests_status", "letter_requests", ["status"])
        op.create_index("ix_letter_requests_handler", "letter_requests", ["current_handler_user_id"])
        op.create_index("ix_letter_requests_creator", "letter_requests", ["created_by_user_id"])
        op.create_index("ix_letter_requests_created_at", "letter_requests", ["created_at"])

    if "supporting_documents" not in existing_tables:
        op.create_table(
            "supporting_documents",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("letter_request_id", sa.Integer(), nullable=False),
            sa.Column("file_name", sa.String(length=500), nullable=False),
            sa.Column("file_url", sa.String(length=1000), nullable=False),
            sa.Column("uploaded_by_user_id", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["letter_request_id"], ["letter_requests.id"]),
            sa.ForeignKeyConstraint(["uploaded_by_user_id"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(
            "ix_supporting_documents_letter_request_id", "supporting_documents", ["letter_request_id"],
        )

    if "disposition_assignments" not in existing_tables:
        op.create_table(
            "disposition_assignments",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("letter_request_id", sa.Integer(), nullable=False),
            sa.Column("assigned_to_user_id", sa.Integer(), nullable=False),
            sa.Column("assigned_by_user_id", sa.Integer(), nullable=False),
            sa.Column("instructions", sa.Text(), nullable=False),
            sa.Column("order_sequence", sa.Integer(), nullable=False),
            sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("completed_at", sa.DateTime(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["letter_request_id"], ["letter_requests.id"]),
            sa.ForeignKeyConstraint(["assigned_to_user_id"], ["users.id"]),
            sa.ForeignKeyConstraint(["assigned_by_user_id"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint(
                "letter_request_id", "order_sequence", name="uq_disposition_request_sequence",
            ),
        )
        op.create_index(
            "ix_disposition_assignments_letter_request_id",
            "disposition_assignments",
            ["letter_request_id"],
        )
        op.create_index("ix_disposition_assignee", "disposition_assignments", ["assigned_to_user_id"])

    if "tracking_logs" not in existing_tables:
        op.create_table(
            "tracking_logs",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("letter_request_id", sa.Integer(), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("action_type", sa.String(length=30), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("previous_status", sa.String(length=40), nullable=True),
            sa.Column("new_status", sa.String(length=40), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["letter_request_id"], ["letter_requests.id"]),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(
            "ix_tracking_logs_request_created", "tracking_logs", ["letter_request_id", "created_at"],
        )
        op.create_index("ix_tracking_logs_user_id", "tracking_logs", ["user_id"])


def downgrade():
    bind = op.get_bind()
    existing_tables = set(sa_inspect(bind).get_table_names())

    # Children first
    for table in (
        "tracking_logs",
        "disposition_assignments",
        "supporting_documents",
        "letter_requests",
        "students",
        "users",
    ):
        if table in existing_tables:
            op.drop_table(table)
