"""Tests for the petition submission pipeline."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from animalert.core.config import settings
from animalert.db.enums import CounterScope
from animalert.db.models import (
    ComplaintCategory,
    ComplaintContent,
    ComplaintTemplate,
    DocType,
    Institution,
    PersonalDataRecord,
)
from animalert.db.session import SessionLocal, _connect_args
from animalert.schemas.complaint import ComplaintCreate
from animalert.services import (
    complaint_notification_service,
    complaint_service,
    numbering_service,
    pdf_render_service,
)
from animalert.services.errors import (
    ComplaintSubmissionError,
    ComplaintValidationError,
    EmailTransportError,
    PdfRenderError,
)


@pytest.fixture
def fake_pdf(monkeypatch):
    rendered: list[str] = []

    def fake_generate(html: str) -> bytes:
        rendered.append(html)
        return b"%PDF-1.7 petitie"

    monkeypatch.setattr(pdf_render_service, "generate_pdf_from_template", fake_generate)
    return rendered


@pytest.fixture
def sent_emails(monkeypatch):
    sent: list[dict] = []

    def fake_notify(**kwargs):
        sent.append(kwargs)
        return True

    monkeypatch.setattr(complaint_notification_service, "send_complaint_notification", fake_notify)
    return sent


# =============================================================================
# Persistence helpers
# =============================================================================


def test_resolve_or_create_personal_data_deduplicates(db, complaint_payload):
    first = complaint_service.resolve_or_create_personal_data(db, ComplaintCreate(**complaint_payload))
    complaint_payload["first_name"] = "Ioan"
    second = complaint_service.resolve_or_create_personal_data(db, ComplaintCreate(**complaint_payload))

    assert second.id == first.id
    assert second.first_name == "Ion"
    assert db.query(PersonalDataRecord).count() == 1


def test_resolve_or_create_personal_data_new_phone_creates_record(db, complaint_payload):
    first = complaint_service.resolve_or_create_personal_data(db, ComplaintCreate(**complaint_payload))
    complaint_payload["phone_number"] = "0740999888"
    second = complaint_service.resolve_or_create_personal_data(db, ComplaintCreate(**complaint_payload))

    assert second.id != first.id


def test_get_or_create_doc_type_is_idempotent(db):
    first = complaint_service.get_or_create_doc_type(db, "PET")
    second = complaint_service.get_or_create_doc_type(db, "PET", name="Other")

    assert first.id == second.id
    assert second.name == "Petition"
    assert db.query(DocType).count() == 1


def test_list_category_institutions(db, taxonomy):
    extra = Institution(code="GNM", name="Garda de Mediu")
    db.add(extra)
    db.flush()
    from animalert.db.models import CategoryInstitutionLink

    db.add(CategoryInstitutionLink(category_id=taxonomy.category.id, institution_id=extra.id))
    db.flush()

    codes = [i.code for i in complaint_service.list_category_institutions(db, taxonomy.category.id)]

    assert codes == ["PJ", "GNM"]


def test_resolve_primary_institution():
    police = Institution(code="PJ", name="Politia Judeteana")
    guard = Institution(code="GNM", name="Garda de Mediu")

    assert complaint_service.resolve_primary_institution([police, guard], "garda de mediu") is guard
    assert complaint_service.resolve_primary_institution([police, guard], "GNM") is guard
    assert complaint_service.resolve_primary_institution([police, guard], "Primaria") is police
    assert complaint_service.resolve_primary_institution([], "GNM") is None


# =============================================================================
# Pipeline
# =============================================================================


def test_generate_and_send_complaint(db, taxonomy, complaint_data, fake_pdf, sent_emails, monkeypatch):
    monkeypatch.setattr(numbering_service.random, "randint", lambda _a, _b: 42)

    result = complaint_service.generate_and_send_complaint(db, complaint_data)

    assert result.public_id == "07-001-042"
    assert result.internal_id.startswith("PET-PJ [BRC-001-042]/1/")
    assert result.internal_id.endswith('-- "Braconaj"')
    assert result.email_sent is True

    complaint = db.get(ComplaintContent, result.complaint_id)
    assert complaint.full_public_rep_no == result.public_id
    assert complaint.full_internal_rep_no == result.internal_id
    assert complaint.is_validated is False
    assert complaint.is_public is True
    assert complaint.s3_key == result.document_key
    assert complaint.primary_institution_id == taxonomy.institution.id
    assert complaint.attachments_s3 == []
    assert (complaint.obj_no, complaint.gen_no, complaint.total_no) == (1, 42, 1)

    html = fake_pdf[0]
    assert "ID public: 07-001-042" in html
    assert "Ion Popescu" in html
    assert "{{" not in html

    assert sent_emails[0]["institution"].code == "PJ"
    assert sent_emails[0]["pdf_bytes"] == b"%PDF-1.7 petitie"


def test_sequential_submissions_increment_numbers(db, taxonomy, complaint_data, fake_pdf, sent_emails):
    first = complaint_service.generate_and_send_complaint(db, complaint_data)
    second = complaint_service.generate_and_send_complaint(db, complaint_data)

    assert first.public_id.split("-")[1] == "001"
    assert second.public_id.split("-")[1] == "002"
    assert "/2/" in second.internal_id
    assert first.personal_data_id == second.personal_data_id
    assert db.query(ComplaintContent).count() == 2


def test_unknown_incident_type_fails_before_reservation(db, taxonomy, complaint_payload, fake_pdf):
    complaint_payload["incident_type"] = 9999

    with pytest.raises(ComplaintSubmissionError) as exc_info:
        complaint_service.generate_and_send_complaint(db, ComplaintCreate(**complaint_payload))

    assert isinstance(exc_info.value.__cause__, ComplaintValidationError)
    assert numbering_service.peek_counter(db, CounterScope.GLOBAL) == 0
    assert fake_pdf == []


def test_template_without_category_fails_before_reservation(db, taxonomy, complaint_payload, fake_pdf):
    orphan = ComplaintTemplate(name="orfan.html", display_name="Orfan", html="<p></p>")
    db.add(orphan)
    db.commit()
    complaint_payload["incident_type"] = orphan.id

    with pytest.raises(ComplaintSubmissionError) as exc_info:
        complaint_service.generate_and_send_complaint(db, ComplaintCreate(**complaint_payload))

    assert isinstance(exc_info.value.__cause__, ComplaintValidationError)
    assert numbering_service.peek_counter(db, CounterScope.GLOBAL) == 0


def test_render_failure_rolls_back_and_skips_numbers(
    db, taxonomy, complaint_data, sent_emails, monkeypatch, local_storage
):
    def broken_render(_html):
        raise PdfRenderError("browser crashed")

    monkeypatch.setattr(pdf_render_service, "generate_pdf_from_template", broken_render)

    with pytest.raises(ComplaintSubmissionError) as exc_info:
        complaint_service.generate_and_send_complaint(db, complaint_data)

    assert isinstance(exc_info.value.__cause__, PdfRenderError)
    assert db.query(ComplaintContent).count() == 0
    assert db.query(PersonalDataRecord).count() == 0
    assert sent_emails == []

    monkeypatch.setattr(pdf_render_service, "generate_pdf_from_template", lambda _html: b"%PDF")
    result = complaint_service.generate_and_send_complaint(db, complaint_data)

    # objNo/totalNo 1 were spent by the failed attempt.
    assert result.public_id.split("-")[1] == "002"
    assert "/2/" in result.internal_id


def test_persistence_failure_deletes_uploaded_pdf(
    db, taxonomy, complaint_data, fake_pdf, sent_emails, monkeypatch, local_storage
):
    def broken_personal_data(_db, _data):
        raise RuntimeError("constraint violation")

    monkeypatch.setattr(complaint_service, "resolve_or_create_personal_data", broken_personal_data)

    with pytest.raises(ComplaintSubmissionError):
        complaint_service.generate_and_send_complaint(db, complaint_data)

    assert list((local_storage / "complaints").iterdir()) == []
    assert db.query(ComplaintContent).count() == 0


def test_upload_failure_is_fatal(db, taxonomy, complaint_data, fake_pdf, sent_emails, monkeypatch):
    from animalert.services import document_storage_service

    monkeypatch.setattr(document_storage_service, "upload_pdf_buffer", lambda *_args: None)

    with pytest.raises(ComplaintSubmissionError):
        complaint_service.generate_and_send_complaint(db, complaint_data)

    assert db.query(ComplaintContent).count() == 0


def test_email_failure_is_not_fatal(
    db, taxonomy, complaint_data, fake_pdf, email_settings, monkeypatch, caplog
):
    async def failing_send_email(**_kwargs):
        raise EmailTransportError("provider down", status_code=500)

    monkeypatch.setattr(
        complaint_notification_service.email_service, "send_email", failing_send_email
    )

    with caplog.at_level(logging.ERROR):
        result = complaint_service.generate_and_send_complaint(db, complaint_data)

    assert result.email_sent is False
    assert db.get(ComplaintContent, result.complaint_id) is not None
    assert "Petition email failed" in caplog.text


def test_unexpected_notification_crash_is_not_fatal(
    db, taxonomy, complaint_data, fake_pdf, monkeypatch
):
    def crash(**_kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(complaint_notification_service, "send_complaint_notification", crash)

    result = complaint_service.generate_and_send_complaint(db, complaint_data)

    assert result.email_sent is False
    assert db.query(ComplaintContent).count() == 1


def test_internal_id_uses_na_without_linked_institution(
    db, complaint_payload, fake_pdf, sent_emails
):
    category = ComplaintCategory(code_alpha="WST", code_numeric="03", name="Waste")
    db.add(category)
    db.flush()
    template = ComplaintTemplate(
        name="petitie-deseu.html",
        display_name="Deseuri",
        html="<body>{{ descriere_incident }}</body>",
        category_id=category.id,
    )
    db.add(template)
    db.commit()
    complaint_payload["incident_type"] = template.id

    result = complaint_service.generate_and_send_complaint(db, ComplaintCreate(**complaint_payload))

    assert result.internal_id.startswith("PET-NA [WST-001-")
    assert result.public_id.startswith("03-001-")
    assert sent_emails[0]["institution"] is None


def test_doc_type_failure_spends_no_numbers(db, taxonomy, complaint_data, fake_pdf, monkeypatch):
    def broken_doc_type(_db, _code):
        raise RuntimeError("doc_types unavailable")

    monkeypatch.setattr(complaint_service, "get_or_create_doc_type", broken_doc_type)

    with pytest.raises(ComplaintSubmissionError):
        complaint_service.generate_and_send_complaint(db, complaint_data)

    assert numbering_service.peek_counter(db, CounterScope.GLOBAL) == 0
    assert numbering_service.peek_counter(db, CounterScope.CATEGORY, taxonomy.category.id) == 0


def test_returning_petitioner_is_stored_once(db, taxonomy, complaint_payload, fake_pdf, sent_emails):
    first = complaint_service.generate_and_send_complaint(db, ComplaintCreate(**complaint_payload))
    complaint_payload["first_name"] = "Ioan"
    complaint_payload["last_name"] = "Popa"
    second = complaint_service.generate_and_send_complaint(db, ComplaintCreate(**complaint_payload))

    records = db.query(PersonalDataRecord).all()
    assert len(records) == 1
    assert (records[0].first_name, records[0].last_name) == ("Ion", "Popescu")
    complaints = db.query(ComplaintContent).order_by(ComplaintContent.id).all()
    assert [c.id for c in complaints] == [first.complaint_id, second.complaint_id]
    assert {c.personal_data_id for c in complaints} == {records[0].id}


# =============================================================================
# Concurrency
# =============================================================================


def test_concurrent_first_submissions_share_personal_data(db, complaint_payload, monkeypatch):
    data = ComplaintCreate(**complaint_payload)
    both_missed = threading.Barrier(2, timeout=10)
    real_dialect_insert = complaint_service.dialect_insert

    def insert_after_both_missed(session):
        both_missed.wait()
        return real_dialect_insert(session)

    monkeypatch.setattr(complaint_service, "dialect_insert", insert_after_both_missed)

    def _resolve() -> int:
        with SessionLocal() as session:
            record = complaint_service.resolve_or_create_personal_data(session, data)
            session.commit()
            return record.id

    with ThreadPoolExecutor(max_workers=2) as pool:
        ids = [f.result() for f in [pool.submit(_resolve) for _ in range(2)]]

    assert ids[0] == ids[1]
    assert db.query(PersonalDataRecord).count() == 1


def test_concurrent_submissions_fit_in_one_connection_each(
    db, taxonomy, complaint_data, fake_pdf, sent_emails, monkeypatch
):
    small_engine = create_engine(
        settings.DATABASE_URL,
        pool_size=2,
        max_overflow=0,
        pool_timeout=5,
        connect_args=_connect_args(settings.DATABASE_URL),
    )
    both_ready = threading.Barrier(2, timeout=10)
    real_claim = numbering_service.claim_numbers

    def claim_when_both_ready(bind, category_id):
        both_ready.wait()
        return real_claim(bind, category_id)

    monkeypatch.setattr(numbering_service, "claim_numbers", claim_when_both_ready)

    def _submit():
        with Session(bind=small_engine) as session:
            return complaint_service.generate_and_send_complaint(session, complaint_data)

    try:
        with ThreadPoolExecutor(max_workers=2) as pool:
            results = [f.result() for f in [pool.submit(_submit) for _ in range(2)]]
    finally:
        small_engine.dispose()

    assert sorted(r.public_id.split("-")[1] for r in results) == ["001", "002"]
    assert results[0].personal_data_id == results[1].personal_data_id
    assert db.query(ComplaintContent).count() == 2
