"""Initial schema: hierarchy, counters, catalog overrides and memberships.

Revision ID: 0001
Revises:
Create Date: 2026-03-02 09:00:00
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "channels",
        *_audit_columns(),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("legal_ident", sa.String(20), nullable=False),
        sa.Column("legal_ident_type", sa.String(2), nullable=False),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("phone_code", sa.String(5), nullable=False),
        sa.Column("vat_registration", sa.String(50), nullable=False),
        sa.Column(
            "is_active", sa.Boolean(), server_default=sa.true(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id", name="pk_channels"),
        sa.UniqueConstraint("code", name="uq_channels_code"),
        sa.UniqueConstraint(
            "legal_ident_type",
            "legal_ident",
            name="uq_channels_legal_ident_type_legal_ident",
        ),
    )

    op.create_table(
        "activities",
        *_audit_columns(),
        sa.Column("channel_id", sa.BigInteger(), nullable=False),
        sa.Column("code", sa.String(20), nullable=False),
        sa.Column("personal_name", sa.String(200), nullable=False),
        sa.Column("original_name", sa.String(200), nullable=False),
        sa.Column("kind", sa.String(1), nullable=False),
        sa.Column("status", sa.String(1), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_activities"),
        sa.ForeignKeyConstraint(
            ["channel_id"],
            ["channels.id"],
            name="fk_activities_channel_id_channels",
            ondelete="RESTRICT",
        ),
        sa.UniqueConstraint(
            "code", "channel_id", name="uq_activities_code_channel_id"
        ),
    )
    op.create_index("ix_activities_channel_id", "activities", ["channel_id"])

    op.create_table(
        "branches",
        *_audit_columns(),
        sa.Column("activity_id", sa.BigInteger(), nullable=False),
        sa.Column("code", sa.String(3), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("province", sa.String(50), nullable=False),
        sa.Column("canton", sa.String(50), nullable=False),
        sa.Column("district", sa.String(50), nullable=False),
        sa.Column("address", sa.String(500), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_branches"),
        sa.ForeignKeyConstraint(
            ["activity_id"],
            ["activities.id"],
            name="fk_branches_activity_id_activities",
            ondelete="RESTRICT",
        ),
        sa.UniqueConstraint(
            "code", "activity_id", name="uq_branches_code_activity_id"
        ),
    )
    op.create_index("ix_branches_activity_id", "branches", ["activity_id"])

    op.create_table(
        "registers",
        *_audit_columns(),
        sa.Column("branch_id", sa.BigInteger(), nullable=False),
        sa.Column("number", sa.String(20), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_registers"),
        sa.ForeignKeyConstraint(
            ["branch_id"],
            ["branches.id"],
            name="fk_registers_branch_id_branches",
            ondelete="RESTRICT",
        ),
        sa.UniqueConstraint(
            "number", "branch_id", name="uq_registers_number_branch_id"
        ),
    )
    op.create_index("ix_registers_branch_id", "registers", ["branch_id"])

    op.create_table(
        "register_counters",
        *_audit_columns(),
        sa.Column("register_id", sa.BigInteger(), nullable=False),
        sa.Column("document_type", sa.String(2), nullable=False),
        sa.Column("value", sa.String(20), server_default="0", nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_register_counters"),
        sa.ForeignKeyConstraint(
            ["register_id"],
            ["registers.id"],
            name="fk_register_counters_register_id_registers",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint(
            "register_id",
            "document_type",
            name="uq_register_counters_register_id_document_type",
        ),
    )

    op.create_table(
        "catalog_overrides",
        *_audit_columns(),
        sa.Column("channel_id", sa.BigInteger(), nullable=False),
        sa.Column("code", sa.String(20), nullable=False),
        sa.Column("category", sa.String(200), nullable=False),
        sa.Column("official_description", sa.String(1000), nullable=False),
        sa.Column("kind", sa.String(50), nullable=False),
        sa.Column("personal_description", sa.String(1000), nullable=False),
        sa.Column("discounted_goods_description", sa.String(200), nullable=False),
        sa.Column("economic_activity", sa.String(20), nullable=False),
        sa.Column("useful_life", sa.String(20), nullable=False),
        sa.Column("imported", sa.String(20), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_catalog_overrides"),
        sa.ForeignKeyConstraint(
            ["channel_id"],
            ["channels.id"],
            name="fk_catalog_overrides_channel_id_channels",
            ondelete="RESTRICT",
        ),
        sa.UniqueConstraint(
            "code", "channel_id", name="uq_catalog_overrides_code_channel_id"
        ),
    )
    op.create_index(
        "ix_catalog_overrides_channel_id", "catalog_overrides", ["channel_id"]
    )

    op.create_table(
        "user_channels",
        *_audit_columns(),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("channel_id", sa.BigInteger(), nullable=False),
        sa.Column("is_admin", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column(
            "is_active", sa.Boolean(), server_default=sa.false(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id", name="pk_user_channels"),
        sa.ForeignKeyConstraint(
            ["channel_id"],
            ["channels.id"],
            name="fk_user_channels_channel_id_channels",
            ondelete="RESTRICT",
        ),
        sa.UniqueConstraint(
            "user_id", "channel_id", name="uq_user_channels_user_id_channel_id"
        ),
    )
    op.create_index("ix_user_channels_user_id", "user_channels", ["user_id"])
    op.create_index("ix_user_channels_channel_id", "user_channels", ["channel_id"])


def downgrade() -> None:
    op.drop_table("user_channels")
    op.drop_table("catalog_overrides")
    op.drop_table("register_counters")
    op.drop_table("registers")
    op.drop_table("branches")
    op.drop_table("activities")
    op.drop_table("channels")
