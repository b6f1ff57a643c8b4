"""members, families and memberships

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


gender_enum = postgresql.ENUM("MALE", "FEMALE", "OTHER", "PREFER_NOT_TO_SAY", name="genderenum", create_type=False)
member_status_enum = postgresql.ENUM(
    "ACTIVE", "INACTIVE", "DECEASED", "ARCHIVED", name="memberstatusenum", create_type=False
)
family_role_enum = postgresql.ENUM("ADMIN", "HEAD", "MEMBER", "VIEWER", name="familyroleenum", create_type=False)
membership_type_enum = postgresql.ENUM("MAIN", "SUB", name="membershiptypeenum", create_type=False)


def upgrade() -> None:
    bind = op.get_bind()
    gender_enum.create(bind, checkfirst=True)
    member_status_enum.create(bind, checkfirst=True)
    family_role_enum.create(bind, checkfirst=True)
    membership_type_enum.create(bind, checkfirst=True)

    op.create_table(
        "members",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True, unique=True),
        sa.Column("gender", gender_enum, nullable=True),
        sa.Column("status", member_status_enum, nullable=False, server_default="ACTIVE"),
        sa.Column("personal_info", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "member_parents",
        sa.Column("child_id", sa.Integer(), sa.ForeignKey("members.id"), primary_key=True),
        sa.Column("parent_id", sa.Integer(), sa.ForeignKey("members.id"), primary_key=True),
    )
    op.create_table(
        "member_spouses",
        sa.Column("member_id", sa.Integer(), sa.ForeignKey("members.id"), primary_key=True),
        sa.Column("spouse_id", sa.Integer(), sa.ForeignKey("members.id"), primary_key=True),
    )

    op.create_table(
        "families",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_sub_family", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("creator_id", sa.Integer(), sa.ForeignKey("members.id"), nullable=False),
        sa.Column("head_of_family_id", sa.Integer(), sa.ForeignKey("members.id"), nullable=True),
        sa.Column("parent_family_id", sa.Integer(), sa.ForeignKey("families.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_families_parent", "families", ["parent_family_id"], unique=False)

    op.create_table(
        "family_memberships",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("member_id", sa.Integer(), sa.ForeignKey("members.id"), nullable=False),
        sa.Column("family_id", sa.Integer(), sa.ForeignKey("families.id"), nullable=False),
        sa.Column("role", family_role_enum, nullable=False, server_default="MEMBER"),
        sa.Column("type", membership_type_enum, nullable=False, server_default="MAIN"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("auto_enrolled", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("manually_edited", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("join_date", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("member_id", "family_id", name="uq_family_memberships_member_family"),
    )
    op.create_index(
        "ix_family_memberships_member_active", "family_memberships", ["member_id", "is_active"], unique=False
    )
    op.create_index(
        "ix_family_memberships_family_active", "family_memberships", ["family_id", "is_active"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_family_memberships_family_active", table_name="family_memberships")
    op.drop_index("ix_family_memberships_member_active", table_name="family_memberships")
    op.drop_table("family_memberships")
    op.drop_index("ix_families_parent", table_name="families")
    op.drop_table("families")
    op.drop_table("member_spouses")
    op.drop_table("member_parents")
    op.drop_table("members")

    bind = op.get_bind()
    membership_type_enum.drop(bind, checkfirst=True)
    family_role_enum.drop(bind, checkfirst=True)
    member_status_enum.drop(bind, checkfirst=True)
    gender_enum.drop(bind, checkfirst=True)
