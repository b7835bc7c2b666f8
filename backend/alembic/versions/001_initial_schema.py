"""Initial schema — qr_records, scan_events.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "qr_records",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("slug", sa.String(100), nullable=False),
        sa.Column("kind", sa.String(10), nullable=False),
        sa.Column("status", sa.String(10), nullable=False, server_default="active"),
        sa.Column("owner_id", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("target_url", sa.Text, nullable=True),
        sa.Column("fallback_urls", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("scan_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("scan_limit", sa.Integer, nullable=True),
        sa.Column("password_hash", sa.String(128), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("contact", sa.JSON, nullable=True),
        sa.CheckConstraint("kind IN ('link', 'contact')", name="ck_qr_records_kind"),
        sa.CheckConstraint(
            "status IN ('active', 'archived', 'expired')",
            name="ck_qr_records_status",
        ),
        sa.CheckConstraint("scan_count >= 0", name="ck_qr_records_scan_count"),
        sa.CheckConstraint(
            "scan_limit IS NULL OR scan_limit > 0",
            name="ck_qr_records_scan_limit",
        ),
        sa.CheckConstraint(
            "kind = 'link' OR (target_url IS NULL AND scan_limit IS NULL "
            "AND password_hash IS NULL AND expires_at IS NULL)",
            name="ck_qr_records_contact_shape",
        ),
        sa.CheckConstraint(
            "kind = 'contact' OR target_url IS NOT NULL",
            name="ck_qr_records_link_shape",
        ),
    )
    op.create_index("ix_qr_records_slug", "qr_records", ["slug"], unique=True)

    op.create_table(
        "scan_events",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "record_id", UUID(as_uuid=True),
            sa.ForeignKey("qr_records.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("scanned_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("user_agent", sa.Text, nullable=False, server_default=""),
        sa.Column("client_origin", sa.String(64), nullable=True),
        sa.Column("referrer", sa.Text, nullable=True),
    )
    op.create_index("ix_scan_events_record_id", "scan_events", ["record_id"])


def downgrade() -> None:
    op.drop_index("ix_scan_events_record_id", table_name="scan_events")
    op.drop_table("scan_events")
    op.drop_index("ix_qr_records_slug", table_name="qr_records")
    op.drop_table("qr_records")
