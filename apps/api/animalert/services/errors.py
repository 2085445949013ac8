"""Exceptions raised by the petition pipeline."""


class ComplaintError(Exception):
    """Base exception for complaint pipeline errors."""

    pass


class ComplaintValidationError(ComplaintError):
    """Input or reference data is unusable (bad request)."""

    pass


class ComplaintSubmissionError(ComplaintError):
    """Submission failed and was rolled back (internal server error)."""

    pass


class PdfRenderError(ComplaintError):
    """Headless browser failed to produce the petition PDF."""

    pass


class DocumentUploadError(ComplaintError):
    """Generated document could not be stored."""

    pass


class EmailTransportError(ComplaintError):
    """Email provider rejected or never received the message."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_too_large(self) -> bool:
        return self.status_code in (413, 422)
