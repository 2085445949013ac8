"""
Reference data seeder for complaint categories, institutions and templates.

Provides the default taxonomy and petition templates every deployment needs:
- complaint categories (alpha code for internal ids, numeric code for public ids)
- institutions petitions are routed to
- document types
- category -> institution routing
- HTML petition templates bundled in animalert/petition_templates
"""

from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy.orm import Session

from animalert.db.models import (
    CategoryInstitutionLink,
    ComplaintCategory,
    ComplaintTemplate,
    DocType,
    Institution,
)

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "petition_templates"


# =============================================================================
# Seed data
# =============================================================================

CATEGORY_SEED = [
    {"code_alpha": "POA", "code_numeric": "01", "name": "Poaching"},
    {"code_alpha": "WLD", "code_numeric": "02", "name": "Wildlife Issue"},
    {"code_alpha": "WST", "code_numeric": "03", "name": "Waste"},
    {"code_alpha": "PLT", "code_numeric": "04", "name": "Pollution"},
    {"code_alpha": "CNS", "code_numeric": "05", "name": "Illegal Constructions"},
    {"code_alpha": "OFR", "code_numeric": "06", "name": "Off-road Activity"},
    {"code_alpha": "CND", "code_numeric": "07", "name": "Bad Animal Conditions"},
    {"code_alpha": "CRU", "code_numeric": "08", "name": "Cruelty"},
    {"code_alpha": "INF", "code_numeric": "09", "name": "Information Request"},
    {"code_alpha": "MCD", "code_numeric": "10", "name": "Misconduct"},
    {"code_alpha": "INS", "code_numeric": "11", "name": "Internal Matter"},
    {"code_alpha": "REP", "code_numeric": "12", "name": "Institutional Report"},
]

INSTITUTION_SEED = [
    {"code": "POL", "name": "Police"},
    {"code": "ENV", "name": "Environmental Authority"},
    {"code": "GNM", "name": "National Environmental Guard"},
    {"code": "APM", "name": "Environmental Protection Agency"},
    {"code": "WAT", "name": "Water Authority"},
    {"code": "VET", "name": "Veterinary Authority"},
    {"code": "ISU", "name": "Firefighters"},
]

DOC_TYPE_SEED = [
    {"code": "PET", "name": "Petition", "description": "Petitii publice"},
    {"code": "ADR", "name": "Adresa", "description": "Adrese generale"},
    {"code": "CMP", "name": "Complaint", "description": "Plangeri formale"},
    {"code": "MEM", "name": "Memorandum", "description": "Memoriu oficial"},
    {"code": "DCL", "name": "Declaration", "description": "Declaratii"},
]

CATEGORY_INSTITUTION_MAP: dict[str, list[str]] = {
    "POA": ["POL"],
    "WLD": ["POL"],
    "WST": ["ENV"],
    "PLT": ["ENV"],
    "CNS": ["POL"],
    "OFR": ["POL", "GNM"],
    "CND": ["VET"],
    "CRU": ["POL"],
    "INF": ["ENV"],
    "MCD": ["POL"],
    "INS": ["POL"],
    "REP": ["ENV"],
}

TEMPLATE_FILES = [
    {"display_name": "DEPUNERE ILEGALA DE DESEURI", "name": "petitie-deseu.html", "category": "WST"},
    {"display_name": "CRUZIME IMPOTRIVA ANIMALELOR", "name": "petitie-cruzime.html", "category": "CRU"},
    {"display_name": "BRACONAJ", "name": "petitie-braconaj.html", "category": "POA"},
]


# =============================================================================
# Seeders
# =============================================================================


def seed_categories(db: Session) -> dict[str, int]:
    """Upsert categories by alpha code. Returns {code_alpha: id}."""
    id_map: dict[str, int] = {}
    for data in CATEGORY_SEED:
        category = (
            db.query(ComplaintCategory)
            .filter(ComplaintCategory.code_alpha == data["code_alpha"])
            .first()
        )
        if category is None:
            category = ComplaintCategory(code_alpha=data["code_alpha"])
            db.add(category)
        category.code_numeric = data["code_numeric"]
        category.name = data["name"]
        db.flush()
        id_map[category.code_alpha] = category.id
    return id_map


def seed_institutions(db: Session) -> dict[str, int]:
    """
    Upsert institutions by code. Returns {code: id}.

    Routing emails are deployment-specific and never overwritten here.
    """
    id_map: dict[str, int] = {}
    for data in INSTITUTION_SEED:
        institution = db.query(Institution).filter(Institution.code == data["code"]).first()
        if institution is None:
            institution = Institution(code=data["code"])
            db.add(institution)
        institution.name = data["name"]
        db.flush()
        id_map[institution.code] = institution.id
    return id_map


def seed_doc_types(db: Session) -> int:
    created_count = 0
    for data in DOC_TYPE_SEED:
        doc_type = db.query(DocType).filter(DocType.code == data["code"]).first()
        if doc_type is None:
            doc_type = DocType(code=data["code"])
            db.add(doc_type)
            created_count += 1
        doc_type.name = data["name"]
        doc_type.description = data["description"]
    db.flush()
    return created_count


def seed_category_institution_links(
    db: Session,
    category_ids: dict[str, int],
    institution_ids: dict[str, int],
) -> int:
    """Link categories to institutions. Idempotent: existing pairs are skipped."""
    created_count = 0
    for category_code, institution_codes in CATEGORY_INSTITUTION_MAP.items():
        category_id = category_ids.get(category_code)
        if category_id is None:
            continue
        for code in institution_codes:
            institution_id = institution_ids.get(code)
            if institution_id is None:
                continue
            existing = (
                db.query(CategoryInstitutionLink)
                .filter(
                    CategoryInstitutionLink.category_id == category_id,
                    CategoryInstitutionLink.institution_id == institution_id,
                )
                .first()
            )
            if existing:
                continue
            db.add(CategoryInstitutionLink(category_id=category_id, institution_id=institution_id))
            created_count += 1
    if created_count > 0:
        db.flush()
    return created_count


def seed_templates(
    db: Session,
    category_ids: dict[str, int],
    templates_dir: Path | str | None = None,
) -> int:
    """
    Upsert petition templates by file name, refreshing HTML and category.

    Returns:
        Number of templates written.
    """
    base_dir = Path(templates_dir) if templates_dir else DEFAULT_TEMPLATES_DIR
    written = 0
    for data in TEMPLATE_FILES:
        html = (base_dir / data["name"]).read_text(encoding="utf-8")
        template = (
            db.query(ComplaintTemplate).filter(ComplaintTemplate.name == data["name"]).first()
        )
        if template is None:
            template = ComplaintTemplate(name=data["name"], display_name=data["display_name"])
            db.add(template)
        template.html = html
        template.category_id = category_ids.get(data["category"])
        written += 1
        logger.info("Seeded template %s", data["name"])
    db.flush()
    return written


def seed_all(db: Session, templates_dir: Path | str | None = None) -> dict:
    """
    Seed the full taxonomy and templates. Caller commits.

    Returns:
        Dictionary with counts of seeded items.
    """
    category_ids = seed_categories(db)
    institution_ids = seed_institutions(db)
    doc_types_created = seed_doc_types(db)
    links_created = seed_category_institution_links(db, category_ids, institution_ids)
    templates_written = seed_templates(db, category_ids, templates_dir)

    return {
        "categories": len(category_ids),
        "institutions": len(institution_ids),
        "doc_types_created": doc_types_created,
        "links_created": links_created,
        "templates": templates_written,
    }
