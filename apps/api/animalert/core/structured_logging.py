"""Structured logging helpers (PII-safe)."""

from typing import Any


def build_log_context(
    *,
    public_id: str | None = None,
    internal_id: str | None = None,
    complaint_id: int | None = None,
    incident_type: int | None = None,
    step: str | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict.

    Petitioner names, emails and phone numbers never go in here; the
    identifiers are enough to find the record.
    """
    context: dict[str, Any] = {}
    if public_id:
        context["public_id"] = public_id
    if internal_id:
        context["internal_id"] = internal_id
    if complaint_id is not None:
        context["complaint_id"] = complaint_id
    if incident_type is not None:
        context["incident_type"] = incident_type
    if step:
        context["step"] = step
    return context
