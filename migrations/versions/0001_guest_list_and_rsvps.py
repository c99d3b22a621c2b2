"""guest_list and rsvps tables

Revision ID: 0001_guest_list_and_rsvps
Revises:
Create Date: 2025-11-02 10:14:06.118204

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_guest_list_and_rsvps"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

attendance_type_enum = sa.Enum("church", "reception", "both", name="attendance_type_enum")


def upgrade() -> None:
    """Create the guest list and the RSVP table (soft-joined by name, no FK)."""
    op.create_table(
        "guest_list",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("first_name", sa.String(length=120), nullable=False),
        sa.Column("last_name", sa.String(length=120), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_inc", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_guest_list_name", "guest_list", ["last_name", "first_name"])

    op.create_table(
        "rsvps",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("first_name", sa.String(length=120), nullable=False),
        sa.Column("last_name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=254), nullable=False),
        sa.Column("attending", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("attendance_type", attendance_type_enum, nullable=False, server_default="both"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("reminder_sent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("reminder_sent_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_rsvps_name", "rsvps", ["last_name", "first_name"])
    op.create_index("ix_rsvps_pending_reminder", "rsvps", ["attending", "reminder_sent"])


def downgrade() -> None:
    """Drop both tables (⚠️ destroys all RSVPs)."""
    op.drop_index("ix_rsvps_pending_reminder", table_name="rsvps")
    op.drop_index("ix_rsvps_name", table_name="rsvps")
    op.drop_table("rsvps")
    attendance_type_enum.drop(op.get_bind(), checkfirst=True)
    op.drop_index("ix_guest_list_name", table_name="guest_list")
    op.drop_table("guest_list")
