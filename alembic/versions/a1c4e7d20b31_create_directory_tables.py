"""Create directory tables

Revision ID: a1c4e7d20b31
Revises:
Create Date: 2026-10-19 10:12:44.318205

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a1c4e7d20b31"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _optional_strings(*specs: tuple[str, int]) -> list[sa.Column]:
    return [sa.Column(name, sa.String(length=length), nullable=True) for name, length in specs]


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=255), nullable=False, comment="Identity store user id"),
        sa.Column("email", sa.String(length=255), nullable=False, comment="Login email"),
        sa.Column(
            "role", sa.String(length=20), nullable=False, comment="professional | admin"
        ),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_profiles_email"), "profiles", ["email"], unique=True)

    office_columns = []
    for suffix in ("1", "2"):
        office_columns += _optional_strings(
            (f"office_cep{suffix}", 9),
            (f"office_street{suffix}", 255),
            (f"office_number{suffix}", 20),
            (f"office_complement{suffix}", 100),
            (f"office_neighborhood{suffix}", 100),
            (f"office_city{suffix}", 100),
            (f"office_state{suffix}", 2),
        )

    op.create_table(
        "professional_profiles",
        sa.Column("id", sa.String(length=255), nullable=False, comment="Same id as the profile"),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("phone_number", sa.String(length=30), nullable=True),
        sa.Column(
            "cro_number", sa.String(length=30), nullable=True, comment="CRO registration number"
        ),
        sa.Column("cro_state", sa.String(length=2), nullable=True),
        sa.Column(
            "cro_file_url", sa.Text(), nullable=True, comment="URL of the uploaded CRO document"
        ),
        sa.Column("specialty1", sa.String(length=100), nullable=True),
        sa.Column("specialty2", sa.String(length=100), nullable=True),
        *_optional_strings(
            ("mobile_phone", 30),
            ("mobile_phone2", 30),
            ("landline_phone", 30),
            ("whatsapp_phone", 30),
            ("city", 100),
            ("neighborhood", 100),
        ),
        *office_columns,
        sa.Column("accepts_insurance", sa.Boolean(), nullable=False),
        sa.Column(
            "insurance_names", sa.JSON(), nullable=False, comment="Accepted insurance plans"
        ),
        *_optional_strings(
            ("instagram", 255),
            ("facebook", 255),
            ("website", 255),
            ("linkedin", 255),
            ("telegram", 255),
            ("tiktok", 255),
        ),
        sa.Column("data_sharing_consent", sa.Boolean(), nullable=False),
        sa.Column("rules_acceptance", sa.Boolean(), nullable=False),
        sa.Column(
            "approval_status",
            sa.String(length=20),
            nullable=False,
            comment="Projection of the latest approval decision",
        ),
        sa.Column(
            "is_blocked",
            sa.Boolean(),
            nullable=False,
            comment="Projection of the latest decision's block flag",
        ),
        sa.Column(
            "public_page_active",
            sa.Boolean(),
            nullable=False,
            comment="Admin toggle for the public listing",
        ),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.ForeignKeyConstraint(["id"], ["profiles.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_professional_profiles_full_name"), "professional_profiles", ["full_name"]
    )
    op.create_index(
        op.f("ix_professional_profiles_specialty1"), "professional_profiles", ["specialty1"]
    )
    op.create_index(
        op.f("ix_professional_profiles_office_city1"), "professional_profiles", ["office_city1"]
    )
    op.create_index(
        op.f("ix_professional_profiles_approval_status"),
        "professional_profiles",
        ["approval_status"],
    )

    op.create_table(
        "pending_approvals",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("professional_id", sa.String(length=255), nullable=False),
        sa.Column(
            "status", sa.String(length=20), nullable=False, comment="pending | approved | rejected"
        ),
        sa.Column("is_blocked", sa.Boolean(), nullable=False, comment="Canonical block flag"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by", sa.String(length=255), nullable=True, comment="Admin profile id"),
        sa.ForeignKeyConstraint(["professional_id"], ["professional_profiles.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_pending_approvals_professional_id"), "pending_approvals", ["professional_id"]
    )
    op.create_index(
        "ix_pending_approvals_professional_created",
        "pending_approvals",
        ["professional_id", "created_at"],
    )

    op.create_table(
        "field_configurations",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("label", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=20), nullable=False),
        sa.Column("required", sa.Boolean(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "specialties",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )


def downgrade() -> None:
    op.drop_table("specialties")
    op.drop_table("field_configurations")
    op.drop_index("ix_pending_approvals_professional_created", table_name="pending_approvals")
    op.drop_index(op.f("ix_pending_approvals_professional_id"), table_name="pending_approvals")
    op.drop_table("pending_approvals")
    op.drop_index(
        op.f("ix_professional_profiles_approval_status"), table_name="professional_profiles"
    )
    op.drop_index(
        op.f("ix_professional_profiles_office_city1"), table_name="professional_profiles"
    )
    op.drop_index(op.f("ix_professional_profiles_specialty1"), table_name="professional_profiles")
    op.drop_index(op.f("ix_professional_profiles_full_name"), table_name="professional_profiles")
    op.drop_table("professional_profiles")
    op.drop_index(op.f("ix_profiles_email"), table_name="profiles")
    op.drop_table("profiles")
