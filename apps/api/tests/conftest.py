"""
Test configuration and fixtures.

Provides:
- Throwaway SQLite database, schema created and dropped per test
- Seeded taxonomy (category, institution, petition template)
- Local document storage under tmp_path
- HTTPX AsyncClient bound to the app
"""
import os
import tempfile
from dataclasses import dataclass
from typing import AsyncGenerator, Generator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

_DB_DIR = tempfile.mkdtemp(prefix="animalert-tests-")
os.environ["DATABASE_URL"] = os.environ.get(
    "TEST_DATABASE_URL", f"sqlite:///{_DB_DIR}/animalert-test.db"
)
os.environ["TESTING"] = "1"
os.environ.setdefault("ENV", "test")

from animalert.core.config import settings
from animalert.core.deps import get_db
from animalert.db.base import Base
from animalert.db.models import (
    CategoryInstitutionLink,
    ComplaintCategory,
    ComplaintTemplate,
    Institution,
)
from animalert.db.session import SessionLocal, engine
from animalert.main import app
from animalert.schemas.complaint import ComplaintCreate


PETITION_HTML = (
    "<html><head><title>Petitie</title></head><body>"
    "<p>Catre: {{ institutie_selectata }}</p>"
    "<p>Subsemnatul {{ nume_utilizator }}, {{ adresa_utilizator }}, "
    "tel. {{telefon_utilizator}}, email {{ email_utilizator }}</p>"
    "<p>Data incident: {{ data_incident }}, locatie: {{ locatie_incident }}</p>"
    "<p>{{ descriere_incident }}</p>"
    "<p>Dovezi: {{ dovezi_atasate }}</p>"
    "<p>Data: {{ data_generare }}</p>"
    "</body></html>"
)


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Fresh schema per test.

    App code commits for real, so every test starts from empty tables
    instead of rolling back a savepoint.
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@dataclass
class SeededTaxonomy:
    category: ComplaintCategory
    institution: Institution
    template: ComplaintTemplate


@pytest.fixture(scope="function")
def taxonomy(db: Session) -> SeededTaxonomy:
    """Poaching category routed to the police, with one petition template."""
    category = ComplaintCategory(code_alpha="BRC", code_numeric="07", name="Braconaj")
    institution = Institution(code="PJ", name="Politia Judeteana", email="petitii@politia.test")
    db.add_all([category, institution])
    db.flush()

    db.add(CategoryInstitutionLink(category_id=category.id, institution_id=institution.id))
    template = ComplaintTemplate(
        name="petitie-braconaj.html",
        display_name="Braconaj",
        html=PETITION_HTML,
        category_id=category.id,
    )
    db.add(template)
    db.commit()
    return SeededTaxonomy(category=category, institution=institution, template=template)


# =============================================================================
# Storage / Email Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def local_storage(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Route document storage to a per-test directory."""
    storage_dir = tmp_path / "documents"
    monkeypatch.setattr(settings, "STORAGE_BACKEND", "local")
    monkeypatch.setattr(settings, "LOCAL_STORAGE_PATH", str(storage_dir))
    return storage_dir


@pytest.fixture
def email_settings(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "ENV", "test")
    monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test_key")
    monkeypatch.setattr(settings, "EMAIL_FROM", "AnimAlert <petitii@animalert.test>")
    monkeypatch.setattr(settings, "EMAIL_ADMIN", "admin@animalert.test")
    monkeypatch.setattr(settings, "COMPLAINT_FALLBACK_EMAIL", "")
    return settings


# =============================================================================
# Form Fixtures
# =============================================================================

@pytest.fixture
def complaint_payload(taxonomy: SeededTaxonomy) -> dict:
    return {
        "first_name": "Ion",
        "last_name": "Popescu",
        "email": "ion.popescu@example.com",
        "country": "Romania",
        "county": "CJ",
        "city": "Cluj-Napoca",
        "street": "Strada Memorandumului",
        "house_number": "12",
        "building": "",
        "staircase": None,
        "apartment": "4",
        "phone_number": "0740123456",
        "incident_type": taxonomy.template.id,
        "incident_date": "2024-03-10",
        "incident_county": "CJ",
        "incident_city": "Floresti",
        "incident_address": "Padurea Faget",
        "destination_institute": "Politia Judeteana",
        "incident_description": "Capcane pentru caprioare montate la marginea padurii.",
        "attachments": [],
        "is_public": True,
    }


@pytest.fixture
def complaint_data(complaint_payload: dict) -> ComplaintCreate:
    return ComplaintCreate(**complaint_payload)


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient for the public endpoints, sharing the test session."""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
