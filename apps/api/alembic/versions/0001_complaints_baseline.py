"""Complaint taxonomy, numbering counters and petition tables.

Revision ID: 0001_complaints_baseline
Revises:
Create Date: 2026-10-19

Counters are incremented with INSERT...ON CONFLICT against the two partial
unique indexes (global row / one row per category).
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_complaints_baseline"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "complaint_categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("code_alpha", sa.String(3), nullable=False, unique=True),
        sa.Column("code_numeric", sa.String(2), nullable=False, unique=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
    )

    op.create_table(
        "institutions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(5), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("email", sa.String(255), nullable=True),
    )

    op.create_table(
        "complaint_category_institutions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("complaint_categories.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "institution_id",
            sa.Integer(),
            sa.ForeignKey("institutions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.UniqueConstraint(
            "category_id",
            "institution_id",
            name="uq_complaint_category_institutions_category_inst",
        ),
    )

    op.create_table(
        "doc_types",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(3), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
    )

    op.create_table(
        "complaint_templates",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("display_name", sa.String(100), nullable=False, unique=True),
        sa.Column("html", sa.Text(), nullable=False),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("complaint_categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
    )

    op.create_table(
        "complaint_numbering_counters",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("scope", sa.String(20), nullable=False),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("complaint_categories.id"),
            nullable=True,
        ),
        sa.Column("next_value", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "(scope = 'global' AND category_id IS NULL) "
            "OR (scope = 'category' AND category_id IS NOT NULL)",
            name="ck_complaint_numbering_counters_scope_category",
        ),
    )
    op.create_index(
        "uq_complaint_numbering_counters_global",
        "complaint_numbering_counters",
        ["scope"],
        unique=True,
        postgresql_where=sa.text("category_id IS NULL"),
        sqlite_where=sa.text("category_id IS NULL"),
    )
    op.create_index(
        "uq_complaint_numbering_counters_category",
        "complaint_numbering_counters",
        ["scope", "category_id"],
        unique=True,
        postgresql_where=sa.text("category_id IS NOT NULL"),
        sqlite_where=sa.text("category_id IS NOT NULL"),
    )

    op.create_table(
        "complaint_report_personal_data",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("first_name", sa.String(255), nullable=False),
        sa.Column("last_name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("country", sa.String(50), server_default=sa.text("'Romania'"), nullable=False),
        sa.Column("county", sa.String(50), nullable=False),
        sa.Column("city", sa.String(255), nullable=False),
        sa.Column("street", sa.String(255), nullable=False),
        sa.Column("house_number", sa.String(50), nullable=False),
        sa.Column("building", sa.String(50), nullable=True),
        sa.Column("staircase", sa.String(50), nullable=True),
        sa.Column("apartment", sa.String(50), nullable=True),
        sa.Column("phone_number", sa.String(20), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "uq_complaint_personal_data_email_phone",
        "complaint_report_personal_data",
        ["email", "phone_number"],
        unique=True,
    )

    op.create_table(
        "complaint_report_content",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "personal_data_id",
            sa.Integer(),
            sa.ForeignKey("complaint_report_personal_data.id"),
            nullable=False,
        ),
        sa.Column("incident_type_id", sa.Integer(), sa.ForeignKey("complaint_templates.id"), nullable=True),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("complaint_categories.id"), nullable=True),
        sa.Column("doc_type_id", sa.Integer(), sa.ForeignKey("doc_types.id"), nullable=True),
        sa.Column("primary_institution_id", sa.Integer(), sa.ForeignKey("institutions.id"), nullable=True),
        sa.Column("is_public", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("is_validated", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("obj_no", sa.Integer(), nullable=False),
        sa.Column("gen_no", sa.Integer(), nullable=False),
        sa.Column("total_no", sa.Integer(), nullable=False),
        sa.Column("full_public_rep_no", sa.String(64), nullable=False),
        sa.Column("full_internal_rep_no", sa.Text(), nullable=False),
        sa.Column("incident_date", sa.Date(), nullable=True),
        sa.Column("incident_county", sa.String(50), nullable=False),
        sa.Column("incident_city", sa.String(255), nullable=True),
        sa.Column("incident_address", sa.String(255), nullable=True),
        sa.Column("destination_institute", sa.String(255), nullable=False),
        sa.Column("incident_description", sa.Text(), nullable=False),
        sa.Column("document_s3_key", sa.String(512), nullable=False),
        sa.Column(
            "attachments_s3",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=False,
        ),
        *_timestamps(),
    )
    op.create_index(
        "ix_complaint_content_personal_data", "complaint_report_content", ["personal_data_id"]
    )
    op.create_index(
        "ix_complaint_content_public_no", "complaint_report_content", ["full_public_rep_no"]
    )
    op.create_index(
        "ix_complaint_content_category", "complaint_report_content", ["category_id", "obj_no"]
    )


def downgrade() -> None:
    op.drop_table("complaint_report_content")
    op.drop_table("complaint_report_personal_data")
    op.drop_index("uq_complaint_numbering_counters_category", table_name="complaint_numbering_counters")
    op.drop_index("uq_complaint_numbering_counters_global", table_name="complaint_numbering_counters")
    op.drop_table("complaint_numbering_counters")
    op.drop_table("complaint_templates")
    op.drop_table("doc_types")
    op.drop_table("complaint_category_institutions")
    op.drop_table("institutions")
    op.drop_table("complaint_categories")
