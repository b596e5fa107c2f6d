from unittest.mock import patch

import pytest
from sqlalchemy.orm import Query

from app.core.exceptions import ConflictError
from app.models.waitlist_entry import WaitlistStatus
from app.schemas.waitlist import WaitlistEntryCreate
from app.services.waitlist_service import DUPLICATE_ENTRY_MESSAGE, WaitlistService


def _data(email="a@x.com", product_id="p1"):
    return WaitlistEntryCreate(email=email, name="Test Customer", product_id=product_id)


def test_unique_constraint_rejects_concurrent_duplicate(database):
    first = database.session()
    second = database.session()
    try:
        WaitlistService(first).create_entry(_data())
        first.close()

        service = WaitlistService(second)
        # Simulate the second request passing its duplicate check before the first commit landed
        with patch.object(Query, "first", return_value=None):
            with pytest.raises(ConflictError) as exc_info:
                service.create_entry(_data())
        assert exc_info.value.message == DUPLICATE_ENTRY_MESSAGE

        # Session was rolled back and is still usable
        assert service.count() == 1
        other = service.create_entry(_data(product_id="p2"))
        assert other.status is WaitlistStatus.PENDING
        assert service.count() == 2
    finally:
        second.close()


def test_count_applies_filters(db_session):
    service = WaitlistService(db_session)
    service.create_entry(_data("a@x.com", "p1"))
    service.create_entry(_data("b@x.com", "p1"))
    entry = service.create_entry(_data("a@x.com", "p2"))
    service.update_status(entry.id, WaitlistStatus.APPROVED)

    assert service.count() == 3
    assert service.count(product_id="p1") == 2
    assert service.count(status="Approved") == 1
    assert service.count(status="Pending", product_id="p2") == 0


def test_list_total_matches_count(db_session):
    service = WaitlistService(db_session)
    for i in range(5):
        service.create_entry(_data(f"user{i}@x.com", "p1"))

    entries, total = service.list_entries(product_id="p1", page=2, limit=2)
    assert len(entries) == 2
    assert total == service.count(product_id="p1") == 5
