"""SQLAlchemy ORM models for submitted petitions."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from animalert.db.base import Base


class PersonalDataRecord(Base):
    """
    Petitioner contact details.

    Reused across submissions with the same (email, phone_number) pair.
    """

    __tablename__ = "complaint_report_personal_data"
    __table_args__ = (
        Index("uq_complaint_personal_data_email_phone", "email", "phone_number", unique=True),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    country: Mapped[str] = mapped_column(
        String(50), server_default=text("'Romania'"), nullable=False
    )
    county: Mapped[str] = mapped_column(String(50), nullable=False)
    city: Mapped[str] = mapped_column(String(255), nullable=False)
    street: Mapped[str] = mapped_column(String(255), nullable=False)
    house_number: Mapped[str] = mapped_column(String(50), nullable=False)
    building: Mapped[str | None] = mapped_column(String(50), nullable=True)
    staircase: Mapped[str | None] = mapped_column(String(50), nullable=True)
    apartment: Mapped[str | None] = mapped_column(String(50), nullable=True)
    phone_number: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    complaints: Mapped[list["ComplaintContent"]] = relationship(
        back_populates="personal_data"
    )


class ComplaintContent(Base):
    """
    One submitted petition, pending manual validation.

    Written once by complaint_service; is_validated is flipped only by
    moderators outside this API.
    """

    __tablename__ = "complaint_report_content"
    __table_args__ = (
        Index("ix_complaint_content_personal_data", "personal_data_id"),
        Index("ix_complaint_content_public_no", "full_public_rep_no"),
        Index("ix_complaint_content_category", "category_id", "obj_no"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    personal_data_id: Mapped[int] = mapped_column(
        ForeignKey("complaint_report_personal_data.id"), nullable=False
    )
    incident_type_id: Mapped[int | None] = mapped_column(
        ForeignKey("complaint_templates.id"), nullable=True
    )
    category_id: Mapped[int | None] = mapped_column(
        ForeignKey("complaint_categories.id"), nullable=True
    )
    doc_type_id: Mapped[int | None] = mapped_column(ForeignKey("doc_types.id"), nullable=True)
    primary_institution_id: Mapped[int | None] = mapped_column(
        ForeignKey("institutions.id"), nullable=True
    )
    is_public: Mapped[bool] = mapped_column(Boolean, server_default=text("true"), nullable=False)
    is_validated: Mapped[bool] = mapped_column(
        Boolean, server_default=text("false"), nullable=False
    )

    # Numbering
    obj_no: Mapped[int] = mapped_column(Integer, nullable=False)
    gen_no: Mapped[int] = mapped_column(Integer, nullable=False)
    total_no: Mapped[int] = mapped_column(Integer, nullable=False)
    full_public_rep_no: Mapped[str] = mapped_column(String(64), nullable=False)
    full_internal_rep_no: Mapped[str] = mapped_column(Text, nullable=False)

    # Incident
    incident_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    incident_county: Mapped[str] = mapped_column(String(50), nullable=False)
    incident_city: Mapped[str | None] = mapped_column(String(255), nullable=True)
    incident_address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    destination_institute: Mapped[str] = mapped_column(String(255), nullable=False)
    incident_description: Mapped[str] = mapped_column(Text, nullable=False)

    # Storage
    s3_key: Mapped[str] = mapped_column("document_s3_key", String(512), nullable=False)
    attachments_s3: Mapped[list[str]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), default=list, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    personal_data: Mapped[PersonalDataRecord] = relationship(back_populates="complaints")
