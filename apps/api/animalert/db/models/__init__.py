"""SQLAlchemy ORM models."""

from animalert.db.models.complaints import ComplaintContent, PersonalDataRecord
from animalert.db.models.taxonomy import (
    CategoryInstitutionLink,
    ComplaintCategory,
    ComplaintTemplate,
    DocType,
    Institution,
    NumberingCounter,
)

__all__ = [
    "CategoryInstitutionLink",
    "ComplaintCategory",
    "ComplaintContent",
    "ComplaintTemplate",
    "DocType",
    "Institution",
    "NumberingCounter",
    "PersonalDataRecord",
]
