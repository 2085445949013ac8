"""SQLAlchemy ORM models for complaint reference data."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from animalert.db.base import Base


# =============================================================================
# Categories & Institutions
# =============================================================================


class ComplaintCategory(Base):
    """
    Complaint category (poaching, cruelty, illegal waste...).

    code_alpha feeds the internal registry id, code_numeric the public id.
    """

    __tablename__ = "complaint_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code_alpha: Mapped[str] = mapped_column(String(3), unique=True, nullable=False)
    code_numeric: Mapped[str] = mapped_column(String(2), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)

    institutions: Mapped[list["Institution"]] = relationship(
        secondary="complaint_category_institutions",
        order_by="Institution.id",
        viewonly=True,
    )


class Institution(Base):
    """Authority a petition can be routed to (police, environmental guard...)."""

    __tablename__ = "institutions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(5), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)


class CategoryInstitutionLink(Base):
    __tablename__ = "complaint_category_institutions"
    __table_args__ = (
        UniqueConstraint(
            "category_id",
            "institution_id",
            name="uq_complaint_category_institutions_category_inst",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category_id: Mapped[int] = mapped_column(
        ForeignKey("complaint_categories.id", ondelete="CASCADE"), nullable=False
    )
    institution_id: Mapped[int] = mapped_column(
        ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False
    )


class DocType(Base):
    """Class of generated document (PET = petition)."""

    __tablename__ = "doc_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(3), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


# =============================================================================
# Templates
# =============================================================================


class ComplaintTemplate(Base):
    """
    HTML petition template.

    The incident type selected in the form is the template id.
    Placeholders use the {{ name }} syntax.
    """

    __tablename__ = "complaint_templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    html: Mapped[str] = mapped_column(Text, nullable=False)
    category_id: Mapped[int | None] = mapped_column(
        ForeignKey("complaint_categories.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    category: Mapped[ComplaintCategory | None] = relationship()


# =============================================================================
# Numbering
# =============================================================================


class NumberingCounter(Base):
    """
    Atomic counter for petition numbers.

    One global row (category_id NULL) and one row per category. next_value
    holds the last issued number; rows are only touched through the
    INSERT...ON CONFLICT increment in numbering_service.
    """

    __tablename__ = "complaint_numbering_counters"
    __table_args__ = (
        CheckConstraint(
            "(scope = 'global' AND category_id IS NULL) "
            "OR (scope = 'category' AND category_id IS NOT NULL)",
            name="ck_complaint_numbering_counters_scope_category",
        ),
        # NULLs are distinct in a plain unique index, so the global row gets
        # its own partial index.
        Index(
            "uq_complaint_numbering_counters_global",
            "scope",
            unique=True,
            postgresql_where=text("category_id IS NULL"),
            sqlite_where=text("category_id IS NULL"),
        ),
        Index(
            "uq_complaint_numbering_counters_category",
            "scope",
            "category_id",
            unique=True,
            postgresql_where=text("category_id IS NOT NULL"),
            sqlite_where=text("category_id IS NOT NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    scope: Mapped[str] = mapped_column(String(20), nullable=False)
    category_id: Mapped[int | None] = mapped_column(
        ForeignKey("complaint_categories.id"), nullable=True
    )
    next_value: Mapped[int] = mapped_column(Integer, server_default=text("1"), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )
