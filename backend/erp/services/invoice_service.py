"""
Invoice Service - invoices derived from sales orders and their settlement.

amount_due = total_amount - down_payment_amount - amount_paid, where
amount_paid accumulates every recorded payment.
"""
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from erp.config import settings
from erp.database import transaction
from erp.errors import ConflictError, NotFoundError
from erp.models.contact import Contact
from erp.models.invoice import Invoice
from erp.models.invoice_item import InvoiceItem
from erp.models.sales_order import SalesOrder
from erp.schemas.invoice import InvoiceCreate, PaymentRecord
from erp.services.notification_service import notification_service
from erp.services.numbering_service import numbering_service
from erp.utils.pagination import paginate
from erp.utils.pricing import round2, to_decimal

logger = logging.getLogger(__name__)


def settled_status(current: str, amount_due: Decimal) -> str:
    """Status after a payment: paid within tolerance, draft moves to sent, nothing moves backwards."""
    if amount_due <= to_decimal(settings.payment_tolerance):
        return "paid"
    if current == "draft":
        return "sent"
    return current


class InvoiceService:
    """Invoice creation from orders and cumulative payment tracking"""

    def get(self, db: Session, invoice_id: int, lock: bool = False) -> Invoice:
        query = db.query(Invoice).filter(Invoice.id == invoice_id)
        if lock:
            query = query.with_for_update().populate_existing()
        invoice = query.first()
        if not invoice:
            raise NotFoundError(f"Invoice {invoice_id} not found")
        return invoice

    def list_invoices(
        self,
        db: Session,
        status: Optional[str] = None,
        contact_id: Optional[int] = None,
        search: Optional[str] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Tuple[List[Invoice], dict]:
        query = db.query(Invoice).outerjoin(Contact, Invoice.contact_id == Contact.id)
        if status:
            query = query.filter(Invoice.status == status)
        if contact_id:
            query = query.filter(Invoice.contact_id == contact_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Invoice.invoice_number.ilike(pattern),
                Invoice.notes.ilike(pattern),
                Contact.company_name.ilike(pattern),
                Contact.first_name.ilike(pattern),
                Contact.last_name.ilike(pattern),
            ))
        if from_date:
            query = query.filter(Invoice.invoice_date >= from_date)
        if to_date:
            query = query.filter(Invoice.invoice_date <= to_date)

        return paginate(query.order_by(Invoice.invoice_date.desc(), Invoice.id.desc()), page, limit)

    def create_from_order(self, db: Session, data: InvoiceCreate, today: Optional[date] = None) -> Invoice:
        """
        Invoice a sales order, copying its financial snapshot and items.

        Raises:
            NotFoundError: unknown order
            ConflictError: order already invoiced or cancelled
        """
        today = today or date.today()

        with transaction(db):
            order = db.query(SalesOrder).filter(
                SalesOrder.id == data.sales_order_id
            ).with_for_update().populate_existing().first()
            if not order:
                raise NotFoundError(f"Sales order {data.sales_order_id} not found")
            if order.invoice_id is not None:
                raise ConflictError(f"Order {order.order_number} has already been invoiced")
            if order.status == "cancelled":
                raise ConflictError(f"Order {order.order_number} is cancelled")

            total = round2(order.total_amount)
            down_payment = round2(order.down_payment_amount)

            invoice = Invoice(
                invoice_number=numbering_service.next_number(db, settings.invoice_prefix, Invoice.invoice_number),
                sales_order_id=order.id,
                quotation_id=order.quotation_id,
                contact_id=order.contact_id,
                status="draft",
                invoice_date=today,
                due_date=data.due_date or today + timedelta(days=settings.invoice_due_days),
                subtotal=order.subtotal,
                discount_amount=order.discount_amount,
                tax_amount=order.tax_amount,
                shipping_cost=order.shipping_cost,
                installation_cost=order.installation_cost,
                total_amount=total,
                currency=order.currency,
                down_payment_amount=down_payment,
                amount_paid=Decimal("0.00"),
                amount_due=round2(total - down_payment),
                payment_terms=data.payment_terms or order.payment_terms,
                notes=data.notes or order.notes,
                terms_conditions=order.terms_conditions,
            )
            invoice.items = [
                InvoiceItem(
                    line_number=item.line_number,
                    product_id=item.product_id,
                    product_name=item.product_name,
                    product_sku=item.product_sku,
                    description=item.description,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    discount_type=item.discount_type,
                    discount_value=item.discount_value,
                    discount_amount=item.discount_amount,
                    tax_rate=item.tax_rate,
                    tax_amount=item.tax_amount,
                    line_total=item.line_total,
                )
                for item in order.items
            ]
            db.add(invoice)
            db.flush()
            order.invoice_id = invoice.id

        db.refresh(invoice)
        logger.info(
            f"Created invoice {invoice.invoice_number} for order {invoice.order_number}: "
            f"total {invoice.total_amount}, due {invoice.amount_due}"
        )
        notification_service.notify(
            db,
            "invoice_created",
            f"Invoice {invoice.invoice_number} created",
            f"Amount due {invoice.amount_due} {invoice.currency}",
            invoice.invoice_number,
        )
        return invoice

    def record_payment(self, db: Session, invoice_id: int, data: PaymentRecord, today: Optional[date] = None) -> Invoice:
        """
        Add a payment to the cumulative amount paid and settle the status.

        Raises:
            ConflictError: invoice is cancelled
        """
        today = today or date.today()

        with transaction(db):
            invoice = self.get(db, invoice_id, lock=True)
            if invoice.status == "cancelled":
                raise ConflictError(f"Invoice {invoice.invoice_number} is cancelled")

            previous = invoice.status
            amount_paid = round2(to_decimal(invoice.amount_paid) + to_decimal(data.amount_paid))
            amount_due = round2(
                to_decimal(invoice.total_amount) - to_decimal(invoice.down_payment_amount) - amount_paid
            )

            invoice.amount_paid = amount_paid
            invoice.amount_due = amount_due
            invoice.status = settled_status(invoice.status, amount_due)
            if data.payment_method is not None:
                invoice.payment_method = data.payment_method
            if data.payment_reference is not None:
                invoice.payment_reference = data.payment_reference
            if data.payment_date is not None:
                invoice.payment_date = data.payment_date
            elif invoice.status == "paid":
                invoice.payment_date = today

        db.refresh(invoice)
        logger.info(
            f"Invoice {invoice.invoice_number}: payment {round2(data.amount_paid)} recorded, "
            f"paid {invoice.amount_paid}, due {invoice.amount_due}, status {invoice.status}"
        )
        if invoice.status == "paid" and previous != "paid":
            notification_service.notify(
                db,
                "invoice_paid",
                f"Invoice {invoice.invoice_number} paid",
                reference=invoice.invoice_number,
            )
        return invoice

    def update_status(self, db: Session, invoice_id: int, status: str) -> Invoice:
        invoice = self.get(db, invoice_id)
        previous = invoice.status
        with transaction(db):
            invoice.status = status
        db.refresh(invoice)
        logger.info(f"Invoice {invoice.invoice_number} status {previous} -> {status}")
        return invoice

    def delete(self, db: Session, invoice_id: int) -> None:
        """Remove an invoice and release its order so it can be invoiced again."""
        invoice = self.get(db, invoice_id)
        number = invoice.invoice_number
        with transaction(db):
            db.query(SalesOrder).filter(SalesOrder.invoice_id == invoice.id).update(
                {SalesOrder.invoice_id: None}, synchronize_session=False
            )
            db.delete(invoice)
        logger.info(f"Deleted invoice {number}")


invoice_service = InvoiceService()
