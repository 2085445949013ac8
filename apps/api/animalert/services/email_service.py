"""Transactional email transport (Resend API).

Used for petition delivery to institutions. Attachments are sent inline as
base64 content, so the caller is responsible for keeping messages under the
provider's size limit.
"""

from __future__ import annotations

import base64
import html as html_module
import logging
import re
from dataclasses import dataclass

import httpx

from animalert.core.config import settings
from animalert.services.errors import EmailTransportError
from animalert.services.http_service import DEFAULT_RETRY_STATUSES, request_with_retries

logger = logging.getLogger(__name__)

RESEND_SEND_URL = "https://api.resend.com/emails"
RESEND_MAX_ATTEMPTS = 3
RESEND_RETRY_BASE_DELAY = 0.5
RESEND_RETRY_MAX_DELAY = 4.0
RESEND_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class EmailAttachment:
    filename: str
    content: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.content)


def html_to_text(content: str) -> str:
    """Convert HTML into readable text for the plain-text alternative."""
    text = re.sub(r"<(script|style)[^>]*>.*?</\1>", "", content, flags=re.DOTALL | re.I)
    text = re.sub(r"<br\s*/?>|</p>|</div>|</li>", "\n", text, flags=re.I)
    text = re.sub(r"<[^>]+>", " ", text)
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\s*\n\s*", "\n", text).strip()
    return html_module.unescape(text)


def _error_detail(response: httpx.Response) -> str | None:
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict):
        detail = data.get("message") or data.get("error")
        return str(detail) if detail else None
    return None


def build_payload(
    *,
    to: list[str],
    subject: str,
    text: str,
    html: str | None,
    cc: list[str] | None,
    attachments: list[EmailAttachment] | None,
) -> dict[str, object]:
    payload: dict[str, object] = {
        "from": settings.EMAIL_FROM,
        "to": to,
        "subject": settings.email_subject_prefix + subject,
        "text": text,
    }
    if html:
        payload["html"] = html
    if cc:
        payload["cc"] = cc
    if attachments:
        payload["attachments"] = [
            {
                "filename": attachment.filename,
                "content": base64.b64encode(attachment.content).decode("ascii"),
                "content_type": attachment.content_type,
            }
            for attachment in attachments
        ]
    return payload


async def send_email(
    *,
    to: str | list[str],
    subject: str,
    text: str | None = None,
    html: str | None = None,
    cc: str | list[str] | None = None,
    attachments: list[EmailAttachment] | None = None,
    idempotency_key: str | None = None,
) -> str:
    """
    Send an email and return the provider message id.

    An idempotency key makes provider-side retries of the same message safe.

    Raises EmailTransportError when the sender is not configured, the
    provider is unreachable or the message is rejected.
    """
    if not settings.RESEND_API_KEY:
        raise EmailTransportError("Email sender not configured (missing RESEND_API_KEY)")
    if not (settings.EMAIL_FROM or "").strip():
        raise EmailTransportError("Email sender not configured (missing EMAIL_FROM)")

    recipients = [to] if isinstance(to, str) else list(to)
    cc_list = [cc] if isinstance(cc, str) else list(cc or [])
    resolved_text = text if (text or "").strip() else html_to_text(html or "")

    payload = build_payload(
        to=recipients,
        subject=subject,
        text=resolved_text,
        html=html,
        cc=cc_list,
        attachments=attachments,
    )
    headers = {
        "Authorization": f"Bearer {settings.RESEND_API_KEY}",
        "Content-Type": "application/json",
    }
    if idempotency_key:
        headers["Idempotency-Key"] = idempotency_key

    try:
        async with httpx.AsyncClient(timeout=RESEND_TIMEOUT_SECONDS) as client:

            async def request_fn() -> httpx.Response:
                return await client.post(RESEND_SEND_URL, headers=headers, json=payload)

            response = await request_with_retries(
                request_fn,
                max_attempts=RESEND_MAX_ATTEMPTS,
                base_delay=RESEND_RETRY_BASE_DELAY,
                max_delay=RESEND_RETRY_MAX_DELAY,
                retry_statuses=DEFAULT_RETRY_STATUSES,
            )
    except httpx.TimeoutException as exc:
        raise EmailTransportError("Email provider timeout") from exc
    except httpx.RequestError as exc:
        raise EmailTransportError(f"Email connection error: {exc.__class__.__name__}") from exc

    if 200 <= response.status_code < 300:
        message_id = response.json().get("id")
        if not isinstance(message_id, str) or not message_id:
            raise EmailTransportError("Email provider returned success without message id")
        logger.info("Email sent message_id=%s recipients=%s", message_id, len(recipients))
        return message_id

    detail = _error_detail(response)
    message = f"Email provider error: {response.status_code}"
    if detail:
        message = f"{message} ({detail})"
    raise EmailTransportError(message, status_code=response.status_code)
