"""Petition template lookup."""

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from animalert.db.models import ComplaintCategory, ComplaintTemplate


@dataclass(frozen=True)
class TemplateRecord:
    id: int
    html: str
    display_name: str
    category_id: int | None
    category_code_alpha: str | None
    category_code_numeric: str | None

    @property
    def has_complete_category(self) -> bool:
        return bool(
            self.category_id is not None
            and self.category_code_alpha
            and self.category_code_numeric
        )


@dataclass(frozen=True)
class TemplateType:
    id: int
    display_name: str


def get_template(db: Session, template_id: int) -> TemplateRecord | None:
    """Return a template with its category codes, or None if it doesn't exist."""
    row = db.execute(
        select(
            ComplaintTemplate.id,
            ComplaintTemplate.html,
            ComplaintTemplate.display_name,
            ComplaintTemplate.category_id,
            ComplaintCategory.code_alpha,
            ComplaintCategory.code_numeric,
        )
        .outerjoin(ComplaintCategory, ComplaintCategory.id == ComplaintTemplate.category_id)
        .where(ComplaintTemplate.id == template_id)
    ).first()
    if row is None:
        return None
    return TemplateRecord(
        id=row.id,
        html=row.html,
        display_name=row.display_name,
        category_id=row.category_id,
        category_code_alpha=row.code_alpha,
        category_code_numeric=row.code_numeric,
    )


def list_template_types(db: Session) -> list[TemplateType]:
    """Incident types offered in the petition form."""
    rows = db.execute(
        select(ComplaintTemplate.id, ComplaintTemplate.display_name).order_by(
            ComplaintTemplate.id
        )
    ).all()
    return [TemplateType(id=row.id, display_name=row.display_name) for row in rows]
