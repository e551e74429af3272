# tests/test_term_service.py
from datetime import date, datetime

import pytest

from app.core.errors import ConstraintViolationError, InvalidStateError
from app.services.term_service import TermService


@pytest.fixture
def terms(db):
    return TermService(db)


def summer(terms, uni, **overrides):
    values = dict(
        batch_id=uni.batch.id,
        name="Summer 2025",
        type="SUMMER",
        start_date=date(2025, 6, 20),
        end_date=date(2025, 8, 20),
        registration_start=datetime(2025, 6, 1),
        registration_end=datetime(2025, 6, 25),
    )
    values.update(overrides)
    return terms.create_term(**values)


def test_create_between_existing_terms(terms, uni):
    term = summer(terms, uni)

    assert term.status == "INACTIVE"
    assert [t.name for t in terms.list_terms(uni.batch.id)] == ["Spring 2025", "Summer 2025", "Fall 2025"]


def test_overlapping_dates_rejected(terms, uni):
    with pytest.raises(ConstraintViolationError, match="overlap with Spring 2025"):
        summer(terms, uni, start_date=date(2025, 6, 15))


def test_inverted_ranges_rejected(terms, uni):
    with pytest.raises(ConstraintViolationError, match="Start date"):
        summer(terms, uni, start_date=date(2025, 8, 21))
    with pytest.raises(ConstraintViolationError, match="Registration start"):
        summer(terms, uni, registration_start=datetime(2025, 7, 1))


def test_only_one_active_term_per_batch(terms, db, uni):
    term = summer(terms, uni)

    terms.activate_term(term.id)

    db.refresh(uni.fall)
    assert term.status == "ACTIVE"
    assert uni.fall.status == "INACTIVE"


def test_completed_term_cannot_be_activated(terms, uni):
    with pytest.raises(InvalidStateError):
        terms.activate_term(uni.spring.id)


def test_update_rechecks_overlap(terms, uni):
    term = summer(terms, uni)

    with pytest.raises(ConstraintViolationError):
        terms.update_term(term.id, end_date=date(2025, 9, 5))

    updated = terms.update_term(term.id, name=" Summer Session ", end_date=date(2025, 8, 31))
    assert (updated.name, updated.end_date) == ("Summer Session", date(2025, 8, 31))


def test_update_rejects_unknown_fields(terms, uni):
    with pytest.raises(ConstraintViolationError, match="Unknown term fields"):
        terms.update_term(uni.fall.id, capacity=10)


def test_delete_blocked_by_sections(terms, uni):
    with pytest.raises(ConstraintViolationError, match="Cannot delete term with"):
        terms.delete_term(uni.fall.id)

    empty = summer(terms, uni)
    terms.delete_term(empty.id)
    assert [t.name for t in terms.list_terms(uni.batch.id)] == ["Spring 2025", "Fall 2025"]
