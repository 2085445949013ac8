"""Petition template filling and public-id badge injection."""

from __future__ import annotations

import html
import re
from datetime import date
from typing import Mapping

from animalert.core.constants import COUNTIES
from animalert.schemas.complaint import ComplaintCreate
from animalert.services.document_storage_service import display_name_for_key


# Form-derived field -> placeholder used in the stored HTML templates.
PETITION_PLACEHOLDERS: dict[str, str] = {
    "name": "nume_utilizator",
    "email": "email_utilizator",
    "phone_number": "telefon_utilizator",
    "address": "adresa_utilizator",
    "generation_date": "data_generare",
    "destination_institute": "institutie_selectata",
    "incident_date": "data_incident",
    "incident_location": "locatie_incident",
    "incident_description": "descriere_incident",
    "attachments": "dovezi_atasate",
}

NO_ATTACHMENTS_LABEL = "-"

_BODY_OPEN_TAG = re.compile(r"<body\b[^>]*>", re.IGNORECASE)

PUBLIC_ID_BADGE = (
    '<div style="text-align:right;font-weight:bold;font-size:12px;margin-bottom:8px;">'
    "ID public: {public_id}</div>"
)


def _format_date(value: date | None) -> str:
    return value.strftime("%d.%m.%Y") if value else ""


def _join(parts: list[str | None]) -> str:
    return ", ".join(part.strip() for part in parts if part and part.strip())


def build_petition_values(
    data: ComplaintCreate,
    generated_on: date | None = None,
) -> dict[str, str]:
    """Derive the petition fields (full name, address, location...) from the form."""
    generated_on = generated_on or date.today()
    attachment_names = [display_name_for_key(key) for key in data.attachments]
    return {
        "name": f"{data.first_name} {data.last_name}".strip(),
        "email": str(data.email),
        "phone_number": data.phone_number,
        "address": _join(
            [
                data.country,
                COUNTIES.get(data.county, data.county),
                data.city,
                data.street,
                data.house_number,
                data.building,
                data.staircase,
                data.apartment,
            ]
        ),
        "generation_date": _format_date(generated_on),
        "destination_institute": data.destination_institute,
        "incident_date": _format_date(data.incident_date),
        "incident_location": _join(
            [
                COUNTIES.get(data.incident_county, data.incident_county),
                data.incident_city,
                data.incident_address,
            ]
        ),
        "incident_description": data.incident_description,
        "attachments": ", ".join(attachment_names) if attachment_names else NO_ATTACHMENTS_LABEL,
    }


def fill_pdf_template(
    template_html: str,
    values: Mapping[str, object],
    placeholders: Mapping[str, str] = PETITION_PLACEHOLDERS,
    raw_fields: frozenset[str] = frozenset(),
) -> str:
    """
    Replace {{ placeholder }} tokens with form values.

    Values are HTML-escaped; fields listed in raw_fields are inserted as-is
    and must already be sanitized. Missing values render as empty strings.
    """
    result = template_html
    for field, placeholder in placeholders.items():
        value = values.get(field)
        text = "" if value is None else str(value)
        if field not in raw_fields:
            text = html.escape(text)
        pattern = re.compile(r"\{\{\s*" + re.escape(placeholder) + r"\s*\}\}")
        # Callable replacement so backslashes in user text stay literal.
        result = pattern.sub(lambda _match, text=text: text, result)
    return result


def inject_public_id(template_html: str, public_id: str) -> str:
    """Insert the public-id badge right after <body>, or prepend it when there is none."""
    badge = PUBLIC_ID_BADGE.format(public_id=html.escape(public_id or ""))
    match = _BODY_OPEN_TAG.search(template_html or "")
    if match is None:
        return badge + (template_html or "")
    return template_html[: match.end()] + badge + template_html[match.end():]
