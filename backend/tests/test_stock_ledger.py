from decimal import Decimal

import pytest
from sqlalchemy import text

from erp.errors import NotFoundError, ValidationError
from erp.models import StockMovement
from erp.services.stock_ledger import StockTarget, stock_ledger


def test_apply_delta_records_before_and_after(db, make_product):
    product = make_product(stock="5")

    movement = stock_ledger.apply_delta(db, StockTarget.product(product.id), Decimal("-2"), "Sales Order", "CMD-202401-001")
    db.commit()

    assert movement.quantity == Decimal("-2.000")
    assert movement.quantity_before == Decimal("5.000")
    assert movement.quantity_after == Decimal("3.000")
    assert movement.movement_type == "out"
    assert movement.target_type == "product"
    db.refresh(product)
    assert product.stock_quantity == Decimal("3.000")


def test_pipeline_delta_may_go_negative(db, make_material):
    material = make_material(stock="1.5")

    movement = stock_ledger.apply_delta(db, StockTarget.material(material.id), Decimal("-4.25"), "Sales Order - Custom Product")
    db.commit()

    db.refresh(material)
    assert material.stock_quantity == Decimal("-2.750")
    assert movement.material_id == material.id
    assert movement.product_id is None


def test_unknown_target_is_not_found(db):
    with pytest.raises(NotFoundError):
        stock_ledger.apply_delta(db, StockTarget.product(999), Decimal("1"), "Manual")


@pytest.mark.parametrize("mode,quantity,expected", [
    ("add", "4", "14.000"),
    ("remove", "3", "7.000"),
    ("set", "2.5", "2.500"),
])
def test_manual_adjustment_modes(db, make_product, mode, quantity, expected):
    product = make_product(stock="10")

    movement = stock_ledger.adjust(db, StockTarget.product(product.id), mode, Decimal(quantity), "Inventory count")

    db.refresh(product)
    assert product.stock_quantity == Decimal(expected)
    assert movement.quantity_after == Decimal(expected)
    assert movement.reason == "Inventory count"


def test_manual_adjustment_rejects_negative_result(db, make_product):
    product = make_product(stock="2")

    with pytest.raises(ValidationError):
        stock_ledger.adjust(db, StockTarget.product(product.id), "remove", Decimal("3"), "Breakage")

    db.refresh(product)
    assert product.stock_quantity == Decimal("2.000")
    assert db.query(StockMovement).count() == 0


def test_set_to_current_level_is_an_adjustment_row(db, make_product):
    product = make_product(stock="6")
    movement = stock_ledger.adjust(db, StockTarget.product(product.id), "set", Decimal("6"), "Count")
    assert movement.movement_type == "adjustment"
    assert movement.quantity == Decimal("0.000")


def test_movements_are_immutable(db, make_product):
    product = make_product()
    movement = stock_ledger.apply_delta(db, StockTarget.product(product.id), Decimal("1"), "Manual")
    db.commit()

    movement.reason = "rewritten"
    with pytest.raises(RuntimeError):
        db.flush()
    db.rollback()

    db.delete(movement)
    with pytest.raises(RuntimeError):
        db.flush()
    db.rollback()

    assert db.query(StockMovement).one().reason == "Manual"


def test_list_movements_filters_newest_first(db, make_product):
    table = make_product(name="Table")
    chair = make_product(name="Chair")
    stock_ledger.apply_delta(db, StockTarget.product(table.id), Decimal("-1"), "Sales Order", "CMD-1")
    stock_ledger.apply_delta(db, StockTarget.product(chair.id), Decimal("-1"), "Sales Order", "CMD-1")
    stock_ledger.apply_delta(db, StockTarget.product(table.id), Decimal("1"), "Sales Order Cancelled", "CMD-1")
    db.commit()

    table_moves = stock_ledger.list_movements(db, product_id=table.id)
    assert [m.reason for m in table_moves] == ["Sales Order Cancelled", "Sales Order"]
    assert len(stock_ledger.list_movements(db, reference_number="CMD-1")) == 3


def test_shortfall_reads_current_stock(db, make_product):
    product = make_product(name="Rattan chair", stock="5")
    assert product.stock_quantity == Decimal("5.000")

    # stock drawn down elsewhere after this session loaded the product
    db.execute(text("UPDATE products SET stock_quantity = 1 WHERE id = :id"), {"id": product.id})

    warning = stock_ledger.shortfall(db, StockTarget.product(product.id), Decimal("3"))

    assert warning == "Insufficient stock for Rattan chair: 1.000 available, 3.000 required"
    db.rollback()
