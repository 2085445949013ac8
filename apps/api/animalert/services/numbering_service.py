"""Petition numbering: durable sequence counters and identifier formatting."""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from sqlalchemy import func
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.orm import Session

from animalert.db.enums import CounterScope
from animalert.db.models import NumberingCounter
from animalert.db.upsert import dialect_insert
from animalert.services.errors import ComplaintValidationError


GEN_NO_MIN = 100
GEN_NO_MAX = 999
MISSING_INSTITUTION_CODE = "NA"


@dataclass(frozen=True)
class ReservedNumbers:
    """Numbers reserved for one petition."""

    obj_no: int  # per-category sequence
    total_no: int  # global sequence
    gen_no: int  # random 3-digit filler, not unique


# =============================================================================
# Counter Store
# =============================================================================


def increment_counter(
    db: Session,
    scope: CounterScope | str,
    category_id: int | None = None,
) -> int:
    """
    Atomically increment a numbering counter and return its new value.

    The first reservation for a scope/category creates the row with 1.
    Uses a single INSERT...ON CONFLICT DO UPDATE...RETURNING so concurrent
    callers never receive the same number, including on the very first
    insert. Runs in the caller's transaction, so a rollback discards the
    increment; see claim_numbers for numbers that must outlive it.
    """
    scope = CounterScope(scope)
    if scope is CounterScope.CATEGORY and category_id is None:
        raise ComplaintValidationError("Category counter requires a category id")
    if scope is CounterScope.GLOBAL:
        category_id = None

    insert = dialect_insert(db)
    table = NumberingCounter.__table__
    stmt = insert(table).values(scope=scope.value, category_id=category_id, next_value=1)

    if scope is CounterScope.GLOBAL:
        conflict_target = {
            "index_elements": [table.c.scope],
            "index_where": table.c.category_id.is_(None),
        }
    else:
        conflict_target = {
            "index_elements": [table.c.scope, table.c.category_id],
            "index_where": table.c.category_id.isnot(None),
        }

    stmt = stmt.on_conflict_do_update(
        **conflict_target,
        set_={
            "next_value": table.c.next_value + 1,
            "updated_at": func.now(),
        },
    ).returning(table.c.next_value)

    result = db.execute(stmt).scalar_one_or_none()
    if result is None:
        raise RuntimeError(f"Failed to increment {scope.value} counter")
    return int(result)


def reserve_numbers(db: Session, category_id: int) -> ReservedNumbers:
    """Reserve objNo (per category), totalNo (global) and draw a random genNo."""
    obj_no = increment_counter(db, CounterScope.CATEGORY, category_id)
    total_no = increment_counter(db, CounterScope.GLOBAL)
    gen_no = random.randint(GEN_NO_MIN, GEN_NO_MAX)
    return ReservedNumbers(obj_no=obj_no, total_no=total_no, gen_no=gen_no)


def claim_numbers(bind: Engine | Connection, category_id: int) -> ReservedNumbers:
    """
    Reserve numbers in their own short transaction and commit them at once.

    Claimed numbers survive a rollback of the submission that asked for
    them, so a failed petition leaves a permanent gap instead of handing the
    same objNo/totalNo to the next submitter.
    """
    with Session(bind=bind) as session:
        numbers = reserve_numbers(session, category_id)
        session.commit()
    return numbers


def peek_counter(db: Session, scope: CounterScope | str, category_id: int | None = None) -> int:
    """Return the last issued value for a scope (0 if nothing was reserved yet)."""
    scope = CounterScope(scope)
    query = db.query(NumberingCounter.next_value).filter(NumberingCounter.scope == scope.value)
    if scope is CounterScope.GLOBAL:
        query = query.filter(NumberingCounter.category_id.is_(None))
    else:
        query = query.filter(NumberingCounter.category_id == category_id)
    value = query.scalar()
    return int(value) if value is not None else 0


# =============================================================================
# Identifier Builder
# =============================================================================


def build_public_id(category_code_numeric: str | int, obj_no: int, gen_no: int) -> str:
    """Short id shown to the citizen, e.g. 07-003-042."""
    return f"{int(category_code_numeric):02d}-{obj_no:03d}-{gen_no:03d}"


def _institution_segment(institution_codes: str | Iterable[str] | None) -> str:
    if institution_codes is None:
        return MISSING_INSTITUTION_CODE
    if isinstance(institution_codes, str):
        return institution_codes.strip() or MISSING_INSTITUTION_CODE
    codes = [code.strip() for code in institution_codes if code and code.strip()]
    return "+".join(codes) if codes else MISSING_INSTITUTION_CODE


def build_internal_id(
    *,
    doc_type_code: str,
    institution_codes: str | Iterable[str] | None,
    category_code_alpha: str,
    obj_no: int,
    gen_no: int,
    total_no: int,
    title: str,
    issued_on: date | None = None,
) -> str:
    """
    Registry id used for institutional filing.

    Format: PET-PJ [BRC-003-042]/128/15.03.2024 -- "Braconaj"
    issued_on is the processing date (server clock), not the incident date.
    """
    issued_on = issued_on or date.today()
    institution = _institution_segment(institution_codes)
    return (
        f"{doc_type_code}-{institution} "
        f"[{category_code_alpha}-{obj_no:03d}-{gen_no:03d}]"
        f"/{total_no}/{issued_on.strftime('%d.%m.%Y')}"
        f' -- "{title}"'
    )
