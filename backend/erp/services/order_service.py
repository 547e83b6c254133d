"""
Order Service - quotation to sales order conversion and its reversal.

Conversion, cancellation and deletion each run as one transaction: the order
row, its items and every stock movement commit together or not at all.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from sqlalchemy import or_
from sqlalchemy.orm import Session

from erp.config import settings
from erp.database import transaction
from erp.errors import ConflictError, NotFoundError
from erp.models.contact import Contact
from erp.models.invoice import Invoice
from erp.models.quotation import Quotation
from erp.models.sales_order import SalesOrder
from erp.models.sales_order_item import SalesOrderItem
from erp.schemas.sales_order import (
    ConvertToOrderRequest,
    PaymentEntryCreate,
    PaymentEntryUpdate,
    SalesOrderStatusUpdate,
)
from erp.services.notification_service import notification_service
from erp.services.numbering_service import numbering_service
from erp.services.stock_ledger import StockTarget, stock_ledger
from erp.utils.pagination import paginate
from erp.utils.pricing import component_consumption, round2, round_quantity

logger = logging.getLogger(__name__)

CONSUMPTION_REASON = "Sales Order"
CUSTOM_CONSUMPTION_REASON = "Sales Order - Custom Product"
CANCEL_REASON = "Sales Order Cancelled"
DELETE_REASON = "Sales Order Deleted"


@dataclass
class ConversionResult:
    order: SalesOrder
    warnings: List[str] = field(default_factory=list)


class OrderService:
    """Sales order conversion, status, payments and stock reversal"""

    def get(self, db: Session, order_id: int, lock: bool = False) -> SalesOrder:
        query = db.query(SalesOrder).filter(SalesOrder.id == order_id)
        if lock:
            query = query.with_for_update().populate_existing()
        order = query.first()
        if not order:
            raise NotFoundError(f"Sales order {order_id} not found")
        return order

    def list_orders(
        self,
        db: Session,
        status: Optional[str] = None,
        contact_id: Optional[int] = None,
        search: Optional[str] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Tuple[List[SalesOrder], dict]:
        query = db.query(SalesOrder).outerjoin(Contact, SalesOrder.contact_id == Contact.id)
        if status:
            query = query.filter(SalesOrder.status == status)
        if contact_id:
            query = query.filter(SalesOrder.contact_id == contact_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                SalesOrder.order_number.ilike(pattern),
                SalesOrder.notes.ilike(pattern),
                Contact.company_name.ilike(pattern),
                Contact.first_name.ilike(pattern),
                Contact.last_name.ilike(pattern),
            ))
        if from_date:
            query = query.filter(SalesOrder.order_date >= from_date)
        if to_date:
            query = query.filter(SalesOrder.order_date <= to_date)

        return paginate(query.order_by(SalesOrder.order_date.desc(), SalesOrder.id.desc()), page, limit)

    def convert(
        self,
        db: Session,
        quotation_id: int,
        request: ConvertToOrderRequest,
        now: Optional[datetime] = None,
    ) -> ConversionResult:
        """
        Materialize a sales order from an accepted quotation.

        Stock shortfalls are returned as warnings; the order is still created
        and stock may go negative unless block_conversion_on_insufficient_stock
        is enabled.

        Raises:
            NotFoundError: unknown quotation
            ConflictError: quotation not accepted, already converted, or
                blocked by insufficient stock
        """
        now = now or datetime.now()

        with transaction(db):
            quotation = db.query(Quotation).filter(
                Quotation.id == quotation_id
            ).with_for_update().populate_existing().first()
            if not quotation:
                raise NotFoundError(f"Quotation {quotation_id} not found")
            if quotation.status != "accepted":
                raise ConflictError(
                    f"Quotation {quotation.quotation_number} must be accepted before conversion (status: {quotation.status})"
                )
            if quotation.sales_order_id is not None:
                raise ConflictError(f"Quotation {quotation.quotation_number} has already been converted to an order")

            requirements = self._requirements(quotation.lines)
            warnings = [
                warning for warning in (
                    stock_ledger.shortfall(db, target, required) for target, required in requirements.items()
                ) if warning
            ]
            if warnings and settings.block_conversion_on_insufficient_stock:
                raise ConflictError("; ".join(warnings))

            order = SalesOrder(
                order_number=numbering_service.next_number(db, settings.order_prefix, SalesOrder.order_number, now),
                quotation_id=quotation.id,
                contact_id=quotation.contact_id,
                status="in_progress",
                order_date=now.date(),
                expected_delivery_date=request.expected_delivery_date or quotation.delivery_date,
                delivery_address=request.delivery_address or quotation.delivery_address,
                subtotal=quotation.subtotal,
                discount_amount=quotation.discount_amount,
                tax_amount=quotation.tax_amount,
                shipping_cost=quotation.shipping_cost,
                installation_cost=quotation.installation_cost,
                total_amount=quotation.total_amount,
                currency=quotation.currency,
                payment_terms=quotation.payment_terms or settings.default_payment_terms,
                delivery_terms=quotation.delivery_terms or settings.default_delivery_terms,
                terms_conditions=quotation.terms_conditions,
                notes=request.notes or quotation.notes,
                payments=[],
            )

            down_payment = round2(request.down_payment_amount)
            if down_payment > 0:
                paid_on = request.down_payment_date or now.date()
                order.down_payment_amount = down_payment
                order.down_payment_method = request.down_payment_method
                order.down_payment_date = paid_on
                order.down_payment_notes = request.down_payment_notes
                order.payments = [{
                    "id": uuid4().hex,
                    "amount": str(down_payment),
                    "method": request.down_payment_method,
                    "date": paid_on.isoformat(),
                    "notes": request.down_payment_notes or "Down payment",
                }]
            else:
                order.down_payment_amount = Decimal("0.00")

            order.items = [self._copy_line(line) for line in quotation.lines]
            db.add(order)
            db.flush()

            for line in quotation.lines:
                if line.product_id is not None:
                    stock_ledger.apply_delta(
                        db,
                        StockTarget.product(line.product_id),
                        -round_quantity(line.quantity),
                        CONSUMPTION_REASON,
                        order.order_number,
                        f"{line.product_name} x {line.quantity}",
                    )
                if line.is_customized:
                    for component in line.components:
                        if component.material_id is None:
                            continue
                        stock_ledger.apply_delta(
                            db,
                            StockTarget.material(component.material_id),
                            -component_consumption(component.quantity, line.quantity),
                            CUSTOM_CONSUMPTION_REASON,
                            order.order_number,
                            f"{line.product_name} / {component.component_name or 'component'}",
                        )

            quotation.sales_order_id = order.id
            quotation.converted_to_order_at = now

        db.refresh(order)
        logger.info(
            f"Converted quotation {quotation.quotation_number} to order {order.order_number}: "
            f"total {order.total_amount}, down payment {order.down_payment_amount}"
        )
        for warning in warnings:
            logger.warning(f"Order {order.order_number}: {warning}")

        notification_service.notify(
            db,
            "order_created",
            f"Sales order {order.order_number} created",
            "\n".join([f"From quotation {quotation.quotation_number}"] + warnings),
            order.order_number,
        )
        return ConversionResult(order=order, warnings=warnings)

    def update_status(self, db: Session, order_id: int, data: SalesOrderStatusUpdate) -> SalesOrder:
        if data.status == "cancelled":
            return self.cancel(db, order_id)

        with transaction(db):
            order = self.get(db, order_id, lock=True)
            if order.status == "cancelled":
                raise ConflictError(f"Order {order.order_number} is cancelled")

            previous = order.status
            order.status = data.status
            if data.shipped_date is not None:
                order.shipped_date = data.shipped_date
            if data.delivered_date is not None:
                order.delivered_date = data.delivered_date
            if data.tracking_number is not None:
                order.tracking_number = data.tracking_number

        db.refresh(order)
        logger.info(f"Order {order.order_number} status {previous} -> {order.status}")
        return order

    def cancel(self, db: Session, order_id: int) -> SalesOrder:
        """
        Cancel an order and put back every unit of stock it consumed.

        Raises:
            ConflictError: order already cancelled or completed
        """
        with transaction(db):
            order = self.get(db, order_id, lock=True)
            if order.status == "cancelled":
                raise ConflictError(f"Order {order.order_number} is already cancelled")
            if order.status == "completed":
                raise ConflictError(f"Order {order.order_number} is completed and cannot be cancelled")

            self._restore_stock(db, order, CANCEL_REASON)
            order.status = "cancelled"

        db.refresh(order)
        logger.info(f"Cancelled order {order.order_number}, stock restored")
        notification_service.notify(
            db,
            "order_cancelled",
            f"Sales order {order.order_number} cancelled",
            reference=order.order_number,
        )
        return order

    def delete(self, db: Session, order_id: int) -> None:
        """Hard-delete an order. Stock is restored unless a cancellation already did it."""
        with transaction(db):
            order = self.get(db, order_id, lock=True)
            number = order.order_number
            if order.status != "cancelled":
                self._restore_stock(db, order, DELETE_REASON)

            db.query(Quotation).filter(Quotation.sales_order_id == order.id).update(
                {Quotation.sales_order_id: None, Quotation.converted_to_order_at: None},
                synchronize_session=False,
            )
            db.query(Invoice).filter(Invoice.sales_order_id == order.id).update(
                {Invoice.sales_order_id: None}, synchronize_session=False
            )
            db.delete(order)

        logger.info(f"Deleted order {number}")

    def add_payment(self, db: Session, order_id: int, data: PaymentEntryCreate) -> SalesOrder:
        order = self.get(db, order_id)
        entry = {
            "id": uuid4().hex,
            "amount": str(round2(data.amount)),
            "method": data.method,
            "date": (data.date or date.today()).isoformat(),
            "notes": data.notes,
        }
        with transaction(db):
            # JSON columns only track reassignment
            order.payments = list(order.payments or []) + [entry]

        db.refresh(order)
        logger.info(f"Order {order.order_number}: payment {entry['amount']} recorded, balance {order.balance_due}")
        return order

    def update_payment(self, db: Session, order_id: int, payment_id: str, data: PaymentEntryUpdate) -> SalesOrder:
        order = self.get(db, order_id)
        payments = [dict(p) for p in (order.payments or [])]
        entry = next((p for p in payments if p.get("id") == payment_id), None)
        if entry is None:
            raise NotFoundError(f"Payment {payment_id} not found on order {order.order_number}")

        if data.amount is not None:
            entry["amount"] = str(round2(data.amount))
        if data.method is not None:
            entry["method"] = data.method
        if data.date is not None:
            entry["date"] = data.date.isoformat()
        if data.notes is not None:
            entry["notes"] = data.notes

        with transaction(db):
            order.payments = payments

        db.refresh(order)
        logger.info(f"Order {order.order_number}: payment {payment_id} updated")
        return order

    def delete_payment(self, db: Session, order_id: int, payment_id: str) -> SalesOrder:
        order = self.get(db, order_id)
        payments = [p for p in (order.payments or []) if p.get("id") != payment_id]
        if len(payments) == len(order.payments or []):
            raise NotFoundError(f"Payment {payment_id} not found on order {order.order_number}")

        with transaction(db):
            order.payments = payments

        db.refresh(order)
        logger.info(f"Order {order.order_number}: payment {payment_id} removed")
        return order

    def _requirements(self, lines) -> Dict[StockTarget, Decimal]:
        """Total quantity each product and material must supply for these lines."""
        required: Dict[StockTarget, Decimal] = {}
        for line in lines:
            if line.product_id is not None:
                target = StockTarget.product(line.product_id)
                required[target] = required.get(target, Decimal("0")) + round_quantity(line.quantity)
            if line.is_customized:
                for component in line.components:
                    if component.material_id is None:
                        continue
                    target = StockTarget.material(component.material_id)
                    required[target] = required.get(target, Decimal("0")) + component_consumption(
                        component.quantity, line.quantity
                    )
        return required

    def _copy_line(self, line) -> SalesOrderItem:
        return SalesOrderItem(
            line_number=line.line_number,
            product_id=line.product_id,
            product_name=line.product_name,
            product_sku=line.product_sku,
            description=line.description,
            quantity=line.quantity,
            unit_price=line.unit_price,
            discount_type=line.discount_type,
            discount_value=line.discount_value,
            discount_amount=line.discount_amount,
            tax_rate=line.tax_rate,
            tax_amount=line.tax_amount,
            line_total=line.line_total,
            is_customized=bool(line.is_customized),
            custom_components=[c.snapshot() for c in line.components] if line.is_customized else None,
        )

    def _components_for(self, order: SalesOrder, item: SalesOrderItem) -> List[dict]:
        """Frozen components of an item; orders without a snapshot fall back to the quotation line."""
        if item.custom_components is not None:
            return item.custom_components
        if order.quotation is None:
            return []
        for line in order.quotation.lines:
            if line.product_id == item.product_id and line.is_customized:
                return [c.snapshot() for c in line.components]
        return []

    def _restore_stock(self, db: Session, order: SalesOrder, reason: str) -> None:
        for item in order.items:
            if item.product_id is not None:
                stock_ledger.apply_delta(
                    db,
                    StockTarget.product(item.product_id),
                    round_quantity(item.quantity),
                    reason,
                    order.order_number,
                    f"{item.product_name} x {item.quantity}",
                )
            if item.is_customized:
                for component in self._components_for(order, item):
                    if component.get("material_id") is None:
                        continue
                    stock_ledger.apply_delta(
                        db,
                        StockTarget.material(component["material_id"]),
                        component_consumption(component["quantity"], item.quantity),
                        reason,
                        order.order_number,
                        f"{item.product_name} / {component.get('component_name') or 'component'}",
                    )


order_service = OrderService()
