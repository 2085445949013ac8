"""Petition delivery to institutions by email."""

from __future__ import annotations

import html
import logging
from typing import Iterable

from botocore.exceptions import BotoCoreError, ClientError

from animalert.core.async_utils import run_async
from animalert.core.config import settings
from animalert.core.constants import COUNTIES
from animalert.core.structured_logging import build_log_context
from animalert.db.models import Institution
from animalert.schemas.complaint import ComplaintCreate
from animalert.services import email_service
from animalert.services.document_storage_service import (
    PDF_CONTENT_TYPE,
    display_name_for_key,
    get_object,
)
from animalert.services.email_service import EmailAttachment
from animalert.services.errors import EmailTransportError

logger = logging.getLogger(__name__)

SUBJECT_TEMPLATE = "Petitie {internal_id}"
OMITTED_ATTACHMENTS_NOTE = (
    "Dovezile atasate depasesc limita de dimensiune a emailului si nu au fost incluse."
)


def resolve_recipient(institution: Institution | None) -> str | None:
    """Institution address, else the configured fallback, else the admin inbox."""
    if institution is not None and (institution.email or "").strip():
        return institution.email.strip()
    for candidate in (settings.COMPLAINT_FALLBACK_EMAIL, settings.EMAIL_ADMIN):
        if (candidate or "").strip():
            return candidate.strip()
    return None


def _cc_for(recipient: str) -> list[str]:
    admin = (settings.EMAIL_ADMIN or "").strip()
    if admin and admin.lower() != recipient.lower():
        return [admin]
    return []


def _load_user_attachments(keys: Iterable[str], log_context: dict) -> list[EmailAttachment]:
    attachments: list[EmailAttachment] = []
    for key in keys:
        try:
            stored = get_object(key)
        except (BotoCoreError, ClientError, OSError, ValueError):
            logger.warning("Could not fetch attachment key=%s", key, exc_info=True, extra=log_context)
            continue
        if stored is None:
            logger.warning("Attachment missing from storage key=%s", key, extra=log_context)
            continue
        attachments.append(
            EmailAttachment(
                filename=display_name_for_key(key),
                content=stored.body,
                content_type=stored.content_type,
            )
        )
    return attachments


def build_bodies(
    *,
    template_name: str,
    public_id: str,
    internal_id: str,
    data: ComplaintCreate,
    attachment_names: list[str],
    attachments_omitted: bool,
) -> tuple[str, str]:
    """Return (text, html) bodies summarising the petition."""
    incident_county = COUNTIES.get(data.incident_county, data.incident_county)
    rows = [
        ("Tip incident", template_name),
        ("ID public", public_id),
        ("Numar inregistrare", internal_id),
        ("Petent", f"{data.first_name} {data.last_name}"),
        ("Email", str(data.email)),
        ("Telefon", data.phone_number),
        ("Institutie selectata", data.destination_institute),
        (
            "Data incident",
            data.incident_date.strftime("%d.%m.%Y") if data.incident_date else "-",
        ),
        (
            "Locatie incident",
            ", ".join(
                part
                for part in (incident_county, data.incident_city, data.incident_address)
                if part
            ),
        ),
        ("Dovezi", ", ".join(attachment_names) if attachment_names else "-"),
    ]

    text_lines = ["Petitie noua transmisa prin AnimAlert.", ""]
    text_lines += [f"{label}: {value}" for label, value in rows]
    text_lines += ["", "Descriere:", data.incident_description]
    if attachments_omitted:
        text_lines += ["", OMITTED_ATTACHMENTS_NOTE]

    html_rows = "".join(
        f"<tr><td><strong>{html.escape(label)}</strong></td><td>{html.escape(str(value))}</td></tr>"
        for label, value in rows
    )
    html_body = (
        "<p>Petitie noua transmisa prin AnimAlert.</p>"
        f"<table>{html_rows}</table>"
        f"<p><strong>Descriere:</strong><br>{html.escape(data.incident_description)}</p>"
    )
    if attachments_omitted:
        html_body += f"<p><em>{html.escape(OMITTED_ATTACHMENTS_NOTE)}</em></p>"
    return "\n".join(text_lines), html_body


async def _deliver(
    *,
    recipient: str,
    subject: str,
    template_name: str,
    public_id: str,
    internal_id: str,
    data: ComplaintCreate,
    pdf_attachment: EmailAttachment,
    user_attachments: list[EmailAttachment],
    attachment_names: list[str],
    log_context: dict,
) -> str:
    include_user_files = bool(user_attachments) and (
        sum(a.size for a in user_attachments) + pdf_attachment.size
        <= settings.EMAIL_MAX_ATTACHMENT_BYTES
    )
    if user_attachments and not include_user_files:
        logger.info("User attachments exceed email size limit, sending PDF only", extra=log_context)

    async def send(with_user_files: bool, idempotency_key: str) -> str:
        text_body, html_body = build_bodies(
            template_name=template_name,
            public_id=public_id,
            internal_id=internal_id,
            data=data,
            attachment_names=attachment_names,
            attachments_omitted=bool(attachment_names) and not with_user_files,
        )
        files = [pdf_attachment] + (user_attachments if with_user_files else [])
        return await email_service.send_email(
            to=recipient,
            cc=_cc_for(recipient),
            subject=subject,
            text=text_body,
            html=html_body,
            attachments=files,
            idempotency_key=idempotency_key,
        )

    try:
        return await send(include_user_files, f"petition-{public_id}")
    except EmailTransportError as exc:
        if not (include_user_files and exc.is_too_large):
            raise
        logger.warning(
            "Email rejected as too large (%s), resending with PDF only",
            exc.status_code,
            extra=log_context,
        )
        return await send(False, f"petition-{public_id}-pdf-only")


def send_complaint_notification(
    *,
    template_name: str,
    public_id: str,
    internal_id: str,
    data: ComplaintCreate,
    pdf_bytes: bytes,
    pdf_file_name: str,
    attachment_keys: list[str],
    institution: Institution | None,
) -> bool:
    """
    Email the petition PDF (and evidence, size permitting) to the institution.

    Returns True when the provider accepted the message. Failures are logged
    and reported as False; the petition is already stored at this point.
    """
    log_context = build_log_context(
        public_id=public_id,
        internal_id=internal_id,
        incident_type=data.incident_type,
        step="notify",
    )
    recipient = resolve_recipient(institution)
    if recipient is None:
        logger.error("No recipient configured for petition email", extra=log_context)
        return False

    pdf_attachment = EmailAttachment(
        filename=pdf_file_name,
        content=pdf_bytes,
        content_type=PDF_CONTENT_TYPE,
    )
    user_attachments = _load_user_attachments(attachment_keys, log_context)
    attachment_names = [display_name_for_key(key) for key in attachment_keys]

    try:
        message_id = run_async(
            _deliver(
                recipient=recipient,
                subject=SUBJECT_TEMPLATE.format(internal_id=internal_id),
                template_name=template_name,
                public_id=public_id,
                internal_id=internal_id,
                data=data,
                pdf_attachment=pdf_attachment,
                user_attachments=user_attachments,
                attachment_names=attachment_names,
                log_context=log_context,
            ),
            timeout=settings.EMAIL_SEND_TIMEOUT_SECONDS,
        )
    except TimeoutError:
        logger.error(
            "Petition email timed out after %ss",
            settings.EMAIL_SEND_TIMEOUT_SECONDS,
            extra=log_context,
        )
        return False
    except EmailTransportError:
        logger.exception("Petition email failed", extra=log_context)
        return False

    logger.info("Petition email sent message_id=%s", message_id, extra=log_context)
    return True
