from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from erp.config import settings
from erp.errors import ConflictError, NotFoundError, ValidationError
from erp.models import Notification, Quotation, QuotationLine, QuotationLineComponent
from erp.schemas.quotation import QuotationUpdate
from erp.services.quotation_service import quotation_service
from factories import component, line, quotation_input


def scenario_input(contact, product=None):
    return quotation_input(
        contact,
        [line(product, quantity="3", unit_price="100", discount_value="10")],
        discount_type="percent",
        discount_value=Decimal("5"),
        shipping_cost=Decimal("20"),
        tax_rate=Decimal("20"),
        include_tax=True,
    )


def test_create_persists_computed_totals(db, make_contact):
    quotation = quotation_service.create(db, scenario_input(make_contact()))

    assert quotation.status == "draft"
    assert quotation.subtotal == Decimal("270.00")
    assert quotation.discount_amount == Decimal("13.50")
    assert quotation.tax_amount == Decimal("55.30")
    assert quotation.total_amount == Decimal("331.80")
    assert quotation.lines[0].line_total == Decimal("270.00")
    assert quotation.lines[0].line_number == 1
    assert quotation.payment_terms == settings.default_payment_terms


def test_expiration_defaults_to_validity_days(db, make_contact):
    now = datetime(2024, 1, 10, 9, 0)
    contact = make_contact()

    default = quotation_service.create(db, quotation_input(contact, [line()]), now=now)
    custom = quotation_service.create(db, quotation_input(contact, [line()], validity_days=7), now=now)

    assert default.expiration_date == date(2024, 2, 9)
    assert custom.expiration_date == date(2024, 1, 17)


def test_unknown_contact_is_not_found(db, make_contact):
    contact = make_contact()
    data = quotation_input(contact, [line()])
    data.contact_id = contact.id + 100

    with pytest.raises(NotFoundError):
        quotation_service.create(db, data)
    assert db.query(Quotation).count() == 0


def test_quotation_needs_a_line(db, make_contact):
    with pytest.raises(ValidationError):
        quotation_service.create(db, quotation_input(make_contact(), []))


def test_unknown_material_is_not_found(db, make_contact, make_material):
    material = make_material()
    bad = component(material)
    bad.material_id = material.id + 1

    with pytest.raises(NotFoundError):
        quotation_service.create(db, quotation_input(make_contact(), [line(components=[bad])]))


def test_customized_line_keeps_components(db, make_contact, make_material, make_finish):
    material = make_material()
    finish = make_finish()

    quotation = quotation_service.create(db, quotation_input(
        make_contact(), [line(components=[component(material, finish, quantity="2.5")])]
    ))

    stored = quotation.lines[0]
    assert stored.is_customized
    assert len(stored.components) == 1
    assert stored.components[0].material_id == material.id
    assert stored.components[0].quantity == Decimal("2.500")


def test_recomputing_persisted_totals_is_stable(db, make_contact):
    quotation = quotation_service.create(db, quotation_input(
        make_contact(),
        [
            line(quantity="1.5", unit_price="33.33", discount_value="7.5", tax_rate="5.5"),
            line(quantity="4", unit_price="12.49", discount_type="amount", discount_value="1.99"),
        ],
        discount_value=Decimal("3"),
        shipping_cost=Decimal("15.50"),
        installation_cost=Decimal("40"),
    ))
    db.expire_all()
    quotation = quotation_service.get(db, quotation.id)

    first = quotation_service.recompute_totals(quotation)
    second = quotation_service.recompute_totals(quotation)

    assert first == second
    assert first.total_amount == quotation.total_amount
    assert first.subtotal == quotation.subtotal


def test_update_replaces_lines_and_components(db, make_contact, make_material):
    contact = make_contact()
    material = make_material()
    quotation = quotation_service.create(db, quotation_input(
        contact, [line(components=[component(material)]), line(unit_price="50")]
    ))

    update = QuotationUpdate(**quotation_input(contact, [line(quantity="2", unit_price="80")]).model_dump(
        exclude={"validity_days"}
    ))
    updated = quotation_service.update(db, quotation.id, update)

    assert len(updated.lines) == 1
    assert updated.lines[0].line_total == Decimal("160.00")
    assert updated.subtotal == Decimal("160.00")
    assert updated.quotation_number == quotation.quotation_number
    assert db.query(QuotationLine).count() == 1
    assert db.query(QuotationLineComponent).count() == 0


def test_update_of_converted_quotation_follows_policy(db, make_contact, monkeypatch):
    contact = make_contact()
    quotation = quotation_service.create(db, quotation_input(contact, [line()]))
    quotation.sales_order_id = 42
    db.commit()
    update = QuotationUpdate(contact_id=contact.id, line_items=[line(unit_price="10")])

    monkeypatch.setattr(settings, "allow_edit_converted_quotations", False)
    with pytest.raises(ConflictError):
        quotation_service.update(db, quotation.id, update)

    monkeypatch.setattr(settings, "allow_edit_converted_quotations", True)
    assert quotation_service.update(db, quotation.id, update).total_amount == Decimal("12.00")


def test_status_is_set_directly_and_acceptance_notifies(db, make_contact):
    quotation = quotation_service.create(db, quotation_input(make_contact(), [line()]))

    assert quotation_service.update_status(db, quotation.id, "rejected").status == "rejected"
    assert quotation_service.update_status(db, quotation.id, "accepted").status == "accepted"

    notification = db.query(Notification).one()
    assert notification.event_type == "quotation_accepted"
    assert notification.reference == quotation.quotation_number


def test_duplicate_copies_snapshot_as_new_draft(db, make_contact, make_material):
    now = datetime(2024, 3, 1)
    material = make_material()
    source = quotation_service.create(
        db, scenario_input(make_contact()), now=now
    )
    source.lines[0].is_customized = True
    source.lines[0].components = [QuotationLineComponent(material_id=material.id, quantity=Decimal("1"))]
    source.status = "accepted"
    source.sales_order_id = 7
    db.commit()

    copy = quotation_service.duplicate(db, source.id, now=datetime(2024, 3, 5))

    assert copy.id != source.id
    assert copy.quotation_number == "DEV-202403-002"
    assert copy.status == "draft"
    assert copy.sales_order_id is None
    assert copy.expiration_date == date(2024, 4, 4)
    assert copy.total_amount == source.total_amount == Decimal("331.80")
    assert copy.discount_type == source.discount_type
    assert [l.line_total for l in copy.lines] == [l.line_total for l in source.lines]
    assert copy.lines[0].components[0].material_id == material.id
    assert quotation_service.recompute_totals(copy).total_amount == copy.total_amount


def test_listing_expires_stale_sent_quotations(db, make_contact):
    contact = make_contact()
    stale = quotation_service.create(db, quotation_input(contact, [line()], expiration_date=date(2024, 1, 31)))
    fresh = quotation_service.create(db, quotation_input(contact, [line()], expiration_date=date(2024, 3, 31)))
    draft = quotation_service.create(db, quotation_input(contact, [line()], expiration_date=date(2024, 1, 31)))
    for quotation in (stale, fresh):
        quotation_service.update_status(db, quotation.id, "sent")

    quotation_service.list_quotations(db, today=date(2024, 2, 15))

    assert quotation_service.get(db, stale.id).status == "expired"
    assert quotation_service.get(db, fresh.id).status == "sent"
    assert quotation_service.get(db, draft.id).status == "draft"


def test_list_filters_and_paginates(db, make_contact):
    dupont = make_contact(first_name="Jean", last_name="Dupont")
    other = make_contact(first_name="Anna", last_name="Weber")
    for _ in range(3):
        quotation_service.create(db, quotation_input(dupont, [line()]))
    accepted = quotation_service.create(db, quotation_input(other, [line()]))
    quotation_service.update_status(db, accepted.id, "accepted")

    rows, pagination = quotation_service.list_quotations(db, search="dupont", page=1, limit=2)
    assert len(rows) == 2
    assert pagination == {"page": 1, "limit": 2, "total": 3, "total_pages": 2}

    rows, _ = quotation_service.list_quotations(db, status="accepted")
    assert [q.id for q in rows] == [accepted.id]

    rows, _ = quotation_service.list_quotations(db, contact_id=other.id)
    assert rows[0].contact_name == "Anna Weber"


def test_delete_cascades_lines(db, make_contact, make_material):
    quotation = quotation_service.create(db, quotation_input(
        make_contact(), [line(components=[component(make_material())])]
    ))

    quotation_service.delete(db, quotation.id)

    assert db.query(Quotation).count() == 0
    assert db.query(QuotationLine).count() == 0
    assert db.query(QuotationLineComponent).count() == 0
    with pytest.raises(NotFoundError):
        quotation_service.get(db, quotation.id)


def test_delete_of_converted_quotation_follows_policy(db, make_contact, monkeypatch):
    quotation = quotation_service.create(db, quotation_input(make_contact(), [line()]))
    quotation.sales_order_id = 3
    db.commit()

    monkeypatch.setattr(settings, "allow_delete_converted_quotations", False)
    with pytest.raises(ConflictError):
        quotation_service.delete(db, quotation.id)
    assert db.query(Quotation).count() == 1
