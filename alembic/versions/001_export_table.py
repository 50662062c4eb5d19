"""Add export_service_export_tab table.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "export_service_export_tab",
        sa.Column("export_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("requested_by_user_id", sa.Integer, nullable=False),
        sa.Column("request_time", sa.BigInteger, nullable=False),
        sa.Column("type", sa.SmallInteger, nullable=False),
        # 0 until the export is done
        sa.Column("expire_time", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("filter_options", sa.LargeBinary, nullable=False),
        sa.Column("status", sa.SmallInteger, nullable=False, server_default="0"),
        sa.Column("exported_file_filename", sa.String(256), nullable=False, server_default=""),
    )
    op.create_index(
        "export_service_export_requested_by_user_id_request_time_idx",
        "export_service_export_tab",
        ["requested_by_user_id", "request_time"],
    )


def downgrade() -> None:
    op.drop_index(
        "export_service_export_requested_by_user_id_request_time_idx",
        table_name="export_service_export_tab",
    )
    op.drop_table("export_service_export_tab")
