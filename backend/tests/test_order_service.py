from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy import text

from erp.config import settings
from erp.errors import ConflictError, NotFoundError
from erp.models import Notification, Quotation, SalesOrder, StockMovement
from erp.schemas.sales_order import (
    ConvertToOrderRequest,
    PaymentEntryCreate,
    PaymentEntryUpdate,
    SalesOrderStatusUpdate,
)
from erp.services.order_service import order_service
from erp.services.quotation_service import quotation_service
from factories import component, line, quotation_input


def stock_of(db, row):
    db.refresh(row)
    return row.stock_quantity


def test_convert_copies_snapshot_and_links_quotation(db, accepted_quotation, make_product):
    product = make_product(stock="10")
    quotation = accepted_quotation(
        [line(product, quantity="3", unit_price="100", discount_value="10")],
        discount_value=Decimal("5"),
        shipping_cost=Decimal("20"),
        delivery_address="12 rue des Lilas",
    )

    result = order_service.convert(db, quotation.id, ConvertToOrderRequest(), now=datetime(2024, 3, 4, 12, 0))
    order = result.order

    assert result.warnings == []
    assert order.order_number == "CMD-202403-001"
    assert order.status == "in_progress"
    assert order.order_date == date(2024, 3, 4)
    assert order.total_amount == Decimal("331.80")
    assert order.subtotal == Decimal("270.00")
    assert order.shipping_cost == Decimal("20.00")
    assert order.delivery_address == "12 rue des Lilas"
    assert order.payments == []
    assert [i.line_total for i in order.items] == [Decimal("270.00")]

    db.refresh(quotation)
    assert quotation.sales_order_id == order.id
    assert quotation.converted_to_order_at is not None
    assert stock_of(db, product) == Decimal("7.000")


def test_order_is_independent_of_later_quotation_edits(db, accepted_quotation, make_product):
    product = make_product()
    quotation = accepted_quotation([line(product, unit_price="100")])
    order = order_service.convert(db, quotation.id, ConvertToOrderRequest()).order

    db.refresh(quotation)
    quotation.lines[0].unit_price = Decimal("999")
    quotation.total_amount = Decimal("999")
    db.commit()

    order = order_service.get(db, order.id)
    assert order.total_amount == Decimal("120.00")
    assert order.items[0].unit_price == Decimal("100.00")


def test_only_accepted_quotations_convert(db, make_contact, make_product):
    quotation = quotation_service.create(db, quotation_input(make_contact(), [line(make_product())]))

    with pytest.raises(ConflictError):
        order_service.convert(db, quotation.id, ConvertToOrderRequest())
    assert db.query(SalesOrder).count() == 0


def test_unknown_quotation_is_not_found(db):
    with pytest.raises(NotFoundError):
        order_service.convert(db, 123, ConvertToOrderRequest())


def test_second_conversion_conflicts_without_double_deduction(db, accepted_quotation, make_product):
    product = make_product(stock="10")
    quotation = accepted_quotation([line(product, quantity="2")])

    order_service.convert(db, quotation.id, ConvertToOrderRequest())
    with pytest.raises(ConflictError):
        order_service.convert(db, quotation.id, ConvertToOrderRequest())

    assert db.query(SalesOrder).count() == 1
    assert db.query(StockMovement).count() == 1
    assert stock_of(db, product) == Decimal("8.000")


def test_backorder_creates_order_with_warning(db, accepted_quotation, make_product):
    product = make_product(name="Velvet sofa", stock="5")
    quotation = accepted_quotation([line(product, quantity="8")])

    result = order_service.convert(db, quotation.id, ConvertToOrderRequest())

    assert result.order.id is not None
    assert len(result.warnings) == 1
    assert "Velvet sofa" in result.warnings[0]
    assert stock_of(db, product) == Decimal("-3.000")

    movement = db.query(StockMovement).one()
    assert movement.quantity_before == Decimal("5.000")
    assert movement.quantity_after == Decimal("-3.000")
    assert movement.reason == "Sales Order"
    assert movement.reference_number == result.order.order_number

    notification = db.query(Notification).filter(Notification.event_type == "order_created").one()
    assert "Velvet sofa" in notification.message


def test_shortfall_aggregates_lines_of_the_same_product(db, accepted_quotation, make_product):
    product = make_product(stock="5")
    quotation = accepted_quotation([line(product, quantity="3"), line(product, quantity="3")])

    result = order_service.convert(db, quotation.id, ConvertToOrderRequest())

    assert len(result.warnings) == 1
    assert stock_of(db, product) == Decimal("-1.000")


def test_blocking_policy_rejects_and_rolls_back(db, accepted_quotation, make_product, monkeypatch):
    monkeypatch.setattr(settings, "block_conversion_on_insufficient_stock", True)
    product = make_product(stock="1")
    quotation = accepted_quotation([line(product, quantity="2")])

    with pytest.raises(ConflictError):
        order_service.convert(db, quotation.id, ConvertToOrderRequest())

    assert db.query(SalesOrder).count() == 0
    assert db.query(StockMovement).count() == 0
    assert quotation_service.get(db, quotation.id).sales_order_id is None


def test_customized_line_consumes_materials(db, accepted_quotation, make_product, make_material, make_finish):
    product = make_product(stock="10")
    oak = make_material(name="Oak", stock="50")
    quotation = accepted_quotation([
        line(product, quantity="2", components=[component(oak, make_finish(), quantity="1.5")]),
        line(name="Made-to-measure shelf", quantity="3", components=[component(oak, quantity="0.25")]),
    ])

    order = order_service.convert(db, quotation.id, ConvertToOrderRequest()).order

    assert stock_of(db, product) == Decimal("8.000")
    assert stock_of(db, oak) == Decimal("46.250")
    material_moves = db.query(StockMovement).filter(StockMovement.material_id == oak.id).all()
    assert sorted(m.quantity for m in material_moves) == [Decimal("-3.000"), Decimal("-0.750")]
    assert {m.reason for m in material_moves} == {"Sales Order - Custom Product"}
    assert order.items[0].is_customized
    assert order.items[0].custom_components[0]["material_id"] == oak.id


def test_cancel_restores_stock_exactly_with_new_rows(db, accepted_quotation, make_product, make_material):
    product = make_product(stock="4")
    walnut = make_material(stock="10")
    quotation = accepted_quotation([
        line(product, quantity="6", components=[component(walnut, quantity="0.333")]),
    ])
    order = order_service.convert(db, quotation.id, ConvertToOrderRequest()).order
    original_ids = [m.id for m in db.query(StockMovement).all()]

    cancelled = order_service.cancel(db, order.id)

    assert cancelled.status == "cancelled"
    assert stock_of(db, product) == Decimal("4.000")
    assert stock_of(db, walnut) == Decimal("10.000")

    movements = db.query(StockMovement).order_by(StockMovement.id).all()
    assert len(movements) == 4
    assert [m.id for m in movements[:2]] == original_ids
    assert [m.reason for m in movements[:2]] == ["Sales Order", "Sales Order - Custom Product"]
    assert {m.reason for m in movements[2:]} == {"Sales Order Cancelled"}
    assert sum(m.quantity for m in movements if m.product_id) == 0
    assert sum(m.quantity for m in movements if m.material_id) == 0
    assert db.query(Notification).filter(Notification.event_type == "order_cancelled").count() == 1


def test_cancel_guards(db, accepted_quotation, make_product):
    quotation = accepted_quotation([line(make_product())])
    order = order_service.convert(db, quotation.id, ConvertToOrderRequest()).order

    order_service.cancel(db, order.id)
    with pytest.raises(ConflictError):
        order_service.cancel(db, order.id)

    other = accepted_quotation([line(make_product(name="Lamp"))])
    completed = order_service.convert(db, other.id, ConvertToOrderRequest()).order
    order_service.update_status(db, completed.id, SalesOrderStatusUpdate(status="completed"))
    with pytest.raises(ConflictError):
        order_service.cancel(db, completed.id)


def test_delete_restores_stock_and_releases_quotation(db, accepted_quotation, make_product, make_material):
    product = make_product(stock="3")
    material = make_material(stock="2")
    quotation = accepted_quotation([line(product, quantity="1", components=[component(material, quantity="2")])])
    order = order_service.convert(db, quotation.id, ConvertToOrderRequest()).order

    order_service.delete(db, order.id)

    assert db.query(SalesOrder).count() == 0
    assert stock_of(db, product) == Decimal("3.000")
    assert stock_of(db, material) == Decimal("2.000")
    reasons = [m.reason for m in db.query(StockMovement).order_by(StockMovement.id)]
    assert reasons[2:] == ["Sales Order Deleted", "Sales Order Deleted"]

    quotation = quotation_service.get(db, quotation.id)
    assert quotation.sales_order_id is None


def test_delete_after_cancel_does_not_restore_twice(db, accepted_quotation, make_product):
    product = make_product(stock="5")
    quotation = accepted_quotation([line(product, quantity="2")])
    order = order_service.convert(db, quotation.id, ConvertToOrderRequest()).order

    order_service.cancel(db, order.id)
    order_service.delete(db, order.id)

    assert stock_of(db, product) == Decimal("5.000")
    assert db.query(StockMovement).count() == 2


def test_reversal_falls_back_to_quotation_components(db, accepted_quotation, make_product, make_material):
    product = make_product(stock="5")
    material = make_material(stock="20")
    quotation = accepted_quotation([line(product, quantity="2", components=[component(material, quantity="1.5")])])
    order = order_service.convert(db, quotation.id, ConvertToOrderRequest()).order
    order.items[0].custom_components = None
    db.commit()

    order_service.cancel(db, order.id)

    assert stock_of(db, material) == Decimal("20.000")


def test_down_payment_seeds_payments(db, accepted_quotation, make_product):
    quotation = accepted_quotation([line(make_product(), unit_price="500", tax_rate="0")], tax_rate=Decimal("0"))

    order = order_service.convert(db, quotation.id, ConvertToOrderRequest(
        down_payment_amount=Decimal("150"),
        down_payment_method="transfer",
        down_payment_date=date(2024, 5, 2),
    )).order

    assert order.down_payment_amount == Decimal("150.00")
    assert len(order.payments) == 1
    assert order.payments[0]["amount"] == "150.00"
    assert order.payments[0]["method"] == "transfer"
    assert order.payments[0]["date"] == "2024-05-02"
    assert order.total_paid == Decimal("150.00")
    assert order.balance_due == Decimal("350.00")


def test_payment_entries_management(db, accepted_quotation, make_product):
    quotation = accepted_quotation([line(make_product(), unit_price="1000", tax_rate="0")], tax_rate=Decimal("0"))
    order = order_service.convert(db, quotation.id, ConvertToOrderRequest()).order

    order = order_service.add_payment(db, order.id, PaymentEntryCreate(amount=Decimal("300"), method="card"))
    order = order_service.add_payment(db, order.id, PaymentEntryCreate(amount=Decimal("200"), method="cash"))
    assert order.total_paid == Decimal("500.00")

    first_id = order.payments[0]["id"]
    order = order_service.update_payment(db, order.id, first_id, PaymentEntryUpdate(amount=Decimal("350")))
    assert order.total_paid == Decimal("550.00")
    assert order.payments[0]["method"] == "card"

    order = order_service.delete_payment(db, order.id, first_id)
    assert order.total_paid == Decimal("200.00")
    assert order.balance_due == Decimal("800.00")

    with pytest.raises(NotFoundError):
        order_service.delete_payment(db, order.id, "missing")


def test_update_status_keeps_unsent_fields(db, accepted_quotation, make_product):
    quotation = accepted_quotation([line(make_product())])
    order = order_service.convert(db, quotation.id, ConvertToOrderRequest()).order

    order_service.update_status(db, order.id, SalesOrderStatusUpdate(
        status="shipped", shipped_date=date(2024, 6, 1), tracking_number="TRK-1"
    ))
    order = order_service.update_status(db, order.id, SalesOrderStatusUpdate(
        status="delivered", delivered_date=date(2024, 6, 3)
    ))

    assert order.status == "delivered"
    assert order.shipped_date == date(2024, 6, 1)
    assert order.tracking_number == "TRK-1"
    assert order.delivered_date == date(2024, 6, 3)


def test_status_cancelled_goes_through_cancellation(db, accepted_quotation, make_product):
    product = make_product(stock="5")
    quotation = accepted_quotation([line(product, quantity="1")])
    order = order_service.convert(db, quotation.id, ConvertToOrderRequest()).order

    order = order_service.update_status(db, order.id, SalesOrderStatusUpdate(status="cancelled"))

    assert order.status == "cancelled"
    assert stock_of(db, product) == Decimal("5.000")
    with pytest.raises(ConflictError):
        order_service.update_status(db, order.id, SalesOrderStatusUpdate(status="in_progress"))


def test_update_status_rereads_the_locked_row(db, accepted_quotation, make_product):
    quotation = accepted_quotation([line(make_product())])
    order = order_service.convert(db, quotation.id, ConvertToOrderRequest()).order
    assert order.status == "in_progress"

    # cancelled elsewhere while this session still holds the old row
    db.execute(text("UPDATE sales_orders SET status = 'cancelled' WHERE id = :id"), {"id": order.id})

    with pytest.raises(ConflictError):
        order_service.update_status(db, order.id, SalesOrderStatusUpdate(status="shipped"))
    db.refresh(order)
    assert order.status != "shipped"


def test_list_orders_filters(db, accepted_quotation, make_product):
    first = order_service.convert(db, accepted_quotation([line(make_product())]).id, ConvertToOrderRequest()).order
    second = order_service.convert(
        db, accepted_quotation([line(make_product(name="Stool"))]).id, ConvertToOrderRequest()
    ).order
    order_service.cancel(db, second.id)

    rows, pagination = order_service.list_orders(db, status="in_progress")
    assert [o.id for o in rows] == [first.id]
    assert pagination["total"] == 1

    rows, _ = order_service.list_orders(db, search=second.order_number)
    assert [o.id for o in rows] == [second.id]
    assert rows[0].quotation_number is not None
