"""Complaint service: petition submission pipeline and persistence helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from animalert.core.config import settings
from animalert.core.structured_logging import build_log_context
from animalert.db.enums import DEFAULT_DOC_TYPE_DESCRIPTION, DEFAULT_DOC_TYPE_NAME
from animalert.db.models import (
    CategoryInstitutionLink,
    ComplaintContent,
    DocType,
    Institution,
    PersonalDataRecord,
)
from animalert.db.upsert import dialect_insert
from animalert.schemas.complaint import ComplaintCreate
from animalert.services import (
    complaint_notification_service,
    complaint_template_service,
    document_storage_service,
    numbering_service,
    pdf_render_service,
    template_fill_service,
)
from animalert.services.errors import (
    ComplaintSubmissionError,
    ComplaintValidationError,
    DocumentUploadError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComplaintSubmitResult:
    public_id: str
    internal_id: str
    complaint_id: int
    personal_data_id: int
    document_key: str
    email_sent: bool


# =============================================================================
# Persistence helpers
# =============================================================================


def resolve_or_create_personal_data(db: Session, data: ComplaintCreate) -> PersonalDataRecord:
    """
    Reuse the petitioner record matching (email, phone_number), else create one.

    An existing record is returned unchanged; later submissions never
    overwrite earlier contact details. The insert is ON CONFLICT DO NOTHING
    against the unique (email, phone_number) index, so concurrent first
    submissions from the same petitioner converge on one row.
    """
    email = str(data.email)
    lookup = (
        select(PersonalDataRecord)
        .where(
            PersonalDataRecord.email == email,
            PersonalDataRecord.phone_number == data.phone_number,
        )
        .limit(1)
    )
    existing = db.scalars(lookup).first()
    if existing is not None:
        return existing

    insert = dialect_insert(db)
    table = PersonalDataRecord.__table__
    db.execute(
        insert(table)
        .values(
            first_name=data.first_name,
            last_name=data.last_name,
            email=email,
            country=data.country,
            county=data.county,
            city=data.city,
            street=data.street,
            house_number=data.house_number,
            building=data.building,
            staircase=data.staircase,
            apartment=data.apartment,
            phone_number=data.phone_number,
        )
        .on_conflict_do_nothing(index_elements=[table.c.email, table.c.phone_number])
    )
    return db.scalars(lookup).one()


def get_or_create_doc_type(
    db: Session,
    code: str,
    name: str = DEFAULT_DOC_TYPE_NAME,
    description: str = DEFAULT_DOC_TYPE_DESCRIPTION,
) -> DocType:
    """Upsert a document type by code and return it (existing rows keep their name)."""
    insert = dialect_insert(db)
    table = DocType.__table__
    db.execute(
        insert(table)
        .values(code=code, name=name, description=description)
        .on_conflict_do_nothing(index_elements=[table.c.code])
    )
    return db.scalars(select(DocType).where(DocType.code == code)).one()


def list_category_institutions(db: Session, category_id: int) -> list[Institution]:
    """Institutions linked to a category, in link order (possibly empty)."""
    return list(
        db.scalars(
            select(Institution)
            .join(CategoryInstitutionLink, CategoryInstitutionLink.institution_id == Institution.id)
            .where(CategoryInstitutionLink.category_id == category_id)
            .order_by(CategoryInstitutionLink.id)
        ).all()
    )


def resolve_primary_institution(
    institutions: list[Institution],
    destination_institute: str | None,
) -> Institution | None:
    """
    Pick the institution a petition is addressed to.

    A linked institution whose code or name matches the form's destination
    wins; otherwise the first linked one; None when nothing is linked.
    """
    if not institutions:
        return None
    wanted = (destination_institute or "").strip().lower()
    if wanted:
        for institution in institutions:
            if wanted in (institution.code.lower(), institution.name.strip().lower()):
                return institution
    return institutions[0]


# =============================================================================
# Submission pipeline
# =============================================================================


def generate_and_send_complaint(db: Session, data: ComplaintCreate) -> ComplaintSubmitResult:
    """
    Number, render, store and persist a petition, then email it.

    The template, doc type and institutions are resolved first, then the
    session is committed so the number claim never needs a second pooled
    connection while this one is held. Numbers are committed on their own.
    Everything after the claim up to the final commit is one transaction:
    any failure rolls it back, removes the uploaded PDF and raises
    ComplaintSubmissionError. The claimed numbers stay spent.
    Email delivery happens after the commit and never fails the call.
    """
    log_context = build_log_context(incident_type=data.incident_type, step="template")
    document_key: str | None = None

    try:
        template = complaint_template_service.get_template(db, data.incident_type)
        if template is None:
            raise ComplaintValidationError(f"Unknown incident type: {data.incident_type}")
        if not template.has_complete_category:
            raise ComplaintValidationError(
                f"Template {template.id} is missing category linkage"
            )

        log_context["step"] = "doc_type"
        doc_type = get_or_create_doc_type(db, settings.PETITION_DOC_TYPE_CODE)
        doc_type_id, doc_type_code = doc_type.id, doc_type.code

        log_context["step"] = "institutions"
        institutions = list_category_institutions(db, template.category_id)
        institution_codes = [institution.code for institution in institutions]
        primary_institution = resolve_primary_institution(
            institutions, data.destination_institute
        )
        primary_institution_id = primary_institution.id if primary_institution else None

        # Hand the connection back before claiming: the claim checks out its
        # own, and holding both per request can exhaust the pool.
        db.commit()

        log_context["step"] = "numbering"
        numbers = numbering_service.claim_numbers(db.get_bind(), template.category_id)

        public_id = numbering_service.build_public_id(
            template.category_code_numeric, numbers.obj_no, numbers.gen_no
        )
        internal_id = numbering_service.build_internal_id(
            doc_type_code=doc_type_code,
            institution_codes=institution_codes,
            category_code_alpha=template.category_code_alpha,
            obj_no=numbers.obj_no,
            gen_no=numbers.gen_no,
            total_no=numbers.total_no,
            title=template.display_name,
        )
        log_context = build_log_context(
            public_id=public_id,
            internal_id=internal_id,
            incident_type=data.incident_type,
            step="fill",
        )

        values = template_fill_service.build_petition_values(data)
        filled_html = template_fill_service.fill_pdf_template(template.html, values)
        filled_html = template_fill_service.inject_public_id(filled_html, public_id)

        log_context["step"] = "render"
        pdf_bytes = pdf_render_service.generate_pdf_from_template(filled_html)

        log_context["step"] = "upload"
        pdf_file_name = f"petitie-{public_id}.pdf"
        stored = document_storage_service.upload_pdf_buffer(pdf_bytes, pdf_file_name)
        if stored is None:
            raise DocumentUploadError(f"Failed to store petition PDF {pdf_file_name}")
        document_key = stored.key

        log_context["step"] = "persist"
        personal_data = resolve_or_create_personal_data(db, data)
        complaint = ComplaintContent(
            personal_data_id=personal_data.id,
            incident_type_id=template.id,
            category_id=template.category_id,
            doc_type_id=doc_type_id,
            primary_institution_id=primary_institution_id,
            is_public=data.is_public,
            is_validated=False,
            obj_no=numbers.obj_no,
            gen_no=numbers.gen_no,
            total_no=numbers.total_no,
            full_public_rep_no=public_id,
            full_internal_rep_no=internal_id,
            incident_date=data.incident_date,
            incident_county=data.incident_county,
            incident_city=data.incident_city,
            incident_address=data.incident_address,
            destination_institute=data.destination_institute,
            incident_description=data.incident_description,
            s3_key=document_key,
            attachments_s3=list(data.attachments),
        )
        db.add(complaint)
        db.flush()
        complaint_id = complaint.id
        personal_data_id = personal_data.id

        db.commit()
    except Exception as exc:
        db.rollback()
        if document_key:
            document_storage_service.delete_object(document_key)
        logger.exception("Complaint submission failed", extra=log_context)
        raise ComplaintSubmissionError("Failed to submit complaint") from exc

    log_context["complaint_id"] = complaint_id
    logger.info("Complaint submitted", extra=log_context)

    try:
        email_sent = complaint_notification_service.send_complaint_notification(
            template_name=template.display_name,
            public_id=public_id,
            internal_id=internal_id,
            data=data,
            pdf_bytes=pdf_bytes,
            pdf_file_name=pdf_file_name,
            attachment_keys=list(data.attachments),
            institution=primary_institution,
        )
    except Exception:
        logger.exception("Petition email crashed after commit", extra=log_context)
        email_sent = False

    return ComplaintSubmitResult(
        public_id=public_id,
        internal_id=internal_id,
        complaint_id=complaint_id,
        personal_data_id=personal_data_id,
        document_key=document_key,
        email_sent=email_sent,
    )
