"""Petition PDF rendering via headless Chromium (Playwright)."""

from __future__ import annotations

import logging

import anyio

from animalert.core.async_utils import run_async
from animalert.core.config import settings
from animalert.services.errors import PdfRenderError

logger = logging.getLogger(__name__)

PDF_FORMAT = "A4"
PDF_MARGIN = {"top": "15mm", "bottom": "15mm", "left": "15mm", "right": "15mm"}


def _playwright_context():
    from playwright.async_api import async_playwright

    return async_playwright()


async def render_html_to_pdf(html_content: str) -> bytes:
    """Render HTML content to an A4 PDF using a fresh browser."""
    async with _playwright_context() as p:
        browser = await p.chromium.launch(
            headless=True,
            chromium_sandbox=settings.PDF_CHROMIUM_SANDBOX,
        )
        try:
            page = await browser.new_page()
            await page.set_content(html_content, wait_until="networkidle")
            return await page.pdf(
                format=PDF_FORMAT,
                print_background=True,
                margin=PDF_MARGIN,
            )
        finally:
            # Still runs when the render deadline cancels us.
            with anyio.CancelScope(shield=True):
                await browser.close()


def generate_pdf_from_template(html_content: str) -> bytes:
    """
    Render a filled petition to PDF bytes.

    Bounded by PDF_RENDER_TIMEOUT_SECONDS; any failure (browser launch,
    navigation, timeout) is raised as PdfRenderError.
    """
    try:
        pdf_bytes = run_async(
            render_html_to_pdf(html_content),
            timeout=settings.PDF_RENDER_TIMEOUT_SECONDS,
        )
    except TimeoutError as exc:
        raise PdfRenderError(
            f"PDF rendering exceeded {settings.PDF_RENDER_TIMEOUT_SECONDS}s"
        ) from exc
    except Exception as exc:
        raise PdfRenderError(f"PDF rendering failed: {exc}") from exc

    if not pdf_bytes:
        raise PdfRenderError("PDF rendering produced an empty document")
    logger.debug("Rendered petition PDF size=%s", len(pdf_bytes))
    return pdf_bytes
