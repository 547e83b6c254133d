from datetime import datetime

from erp.models import DocumentSequence, Quotation, SalesOrder
from erp.services.numbering_service import numbering_service
from erp.services.quotation_service import quotation_service
from factories import line, quotation_input


def test_sequential_within_month_and_reset_next_month(db, make_contact):
    contact = make_contact()
    march = datetime(2024, 3, 15, 10, 0)

    first = quotation_service.create(db, quotation_input(contact, [line()]), now=march)
    second = quotation_service.create(db, quotation_input(contact, [line()]), now=march)
    april = quotation_service.create(db, quotation_input(contact, [line()]), now=datetime(2024, 4, 1))

    assert first.quotation_number == "DEV-202403-001"
    assert second.quotation_number == "DEV-202403-002"
    assert april.quotation_number == "DEV-202404-001"


def test_counter_seeds_from_existing_numbers(db, make_contact):
    contact = make_contact()
    db.add(Quotation(quotation_number="DEV-202403-007", contact_id=contact.id, status="draft"))
    db.add(Quotation(quotation_number="DEV-202402-041", contact_id=contact.id, status="draft"))
    db.commit()

    number = numbering_service.next_number(db, "DEV", Quotation.quotation_number, datetime(2024, 3, 20))
    db.commit()

    assert number == "DEV-202403-008"


def test_prefixes_have_independent_counters(db):
    now = datetime(2024, 5, 2)
    assert numbering_service.next_number(db, "DEV", Quotation.quotation_number, now) == "DEV-202405-001"
    assert numbering_service.next_number(db, "CMD", SalesOrder.order_number, now) == "CMD-202405-001"
    assert numbering_service.next_number(db, "DEV", Quotation.quotation_number, now) == "DEV-202405-002"


def test_padding_widens_past_999(db, make_contact):
    contact = make_contact()
    db.add(Quotation(quotation_number="DEV-202406-999", contact_id=contact.id, status="draft"))
    db.commit()

    assert numbering_service.next_number(db, "DEV", Quotation.quotation_number, datetime(2024, 6, 30)) == "DEV-202406-1000"


def test_counter_created_concurrently_is_reused(db, monkeypatch):
    db.add(DocumentSequence(prefix="DEV", period="202407", last_value=4))
    db.commit()

    # first lookup misses, as when another transaction opens the period at the same moment
    real_lookup = numbering_service._locked_counter
    lookups = []

    def racing_lookup(session, prefix, period):
        lookups.append(period)
        return None if len(lookups) == 1 else real_lookup(session, prefix, period)

    monkeypatch.setattr(numbering_service, "_locked_counter", racing_lookup)

    number = numbering_service.next_number(db, "DEV", Quotation.quotation_number, datetime(2024, 7, 3))
    db.commit()

    assert number == "DEV-202407-005"
    assert len(lookups) == 2
    assert db.query(DocumentSequence).filter(DocumentSequence.prefix == "DEV").count() == 1
