"""
Quotation Service - quotation lifecycle.

Totals are never accepted from the caller: every create and update re-runs
the pricing rules and persists the result together with the lines.
"""
import logging
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from erp.config import settings
from erp.database import transaction
from erp.errors import ConflictError, NotFoundError, ValidationError
from erp.models.contact import Contact
from erp.models.finish import Finish
from erp.models.invoice import Invoice
from erp.models.material import Material
from erp.models.quotation import Quotation
from erp.models.quotation_line import QuotationLine
from erp.models.quotation_line_component import QuotationLineComponent
from erp.models.sales_order import SalesOrder
from erp.schemas.quotation import QuotationBase, QuotationCreate, QuotationLineInput, QuotationUpdate
from erp.services.notification_service import notification_service
from erp.services.numbering_service import numbering_service
from erp.services.pricing_service import price_document
from erp.utils.pagination import paginate
from erp.utils.pricing import PricingResult

logger = logging.getLogger(__name__)


class QuotationService:
    """Create, price, edit, duplicate and expire quotations"""

    def get(self, db: Session, quotation_id: int) -> Quotation:
        quotation = db.query(Quotation).filter(Quotation.id == quotation_id).first()
        if not quotation:
            raise NotFoundError(f"Quotation {quotation_id} not found")
        return quotation

    def expire_stale(self, db: Session, today: Optional[date] = None) -> int:
        """Flip every sent quotation past its expiration date to expired, in one statement."""
        today = today or date.today()
        with transaction(db):
            count = db.query(Quotation).filter(
                Quotation.status == "sent",
                Quotation.expiration_date < today,
            ).update({Quotation.status: "expired"}, synchronize_session=False)
        if count:
            logger.info(f"Expired {count} quotation(s) past their expiration date")
        return count

    def list_quotations(
        self,
        db: Session,
        status: Optional[str] = None,
        contact_id: Optional[int] = None,
        search: Optional[str] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        page: int = 1,
        limit: Optional[int] = None,
        today: Optional[date] = None,
    ) -> Tuple[List[Quotation], dict]:
        self.expire_stale(db, today)

        query = db.query(Quotation).outerjoin(Contact, Quotation.contact_id == Contact.id)
        if status:
            query = query.filter(Quotation.status == status)
        if contact_id:
            query = query.filter(Quotation.contact_id == contact_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Quotation.quotation_number.ilike(pattern),
                Quotation.notes.ilike(pattern),
                Contact.company_name.ilike(pattern),
                Contact.first_name.ilike(pattern),
                Contact.last_name.ilike(pattern),
            ))
        if from_date:
            query = query.filter(func.date(Quotation.created_at) >= from_date)
        if to_date:
            query = query.filter(func.date(Quotation.created_at) <= to_date)

        return paginate(query.order_by(Quotation.created_at.desc(), Quotation.id.desc()), page, limit)

    def recompute_totals(self, quotation: Quotation) -> PricingResult:
        """Price a persisted quotation from its stored lines."""
        return price_document(quotation, quotation.lines)

    def create(self, db: Session, data: QuotationCreate, now: Optional[datetime] = None) -> Quotation:
        """
        Create a draft quotation with its lines and customization components.

        Raises:
            NotFoundError: unknown contact, material or finish
            ValidationError: no line items
        """
        now = now or datetime.now()
        self._validate(db, data)
        pricing = price_document(data, data.line_items)

        validity_days = data.validity_days or settings.quotation_validity_days
        with transaction(db):
            quotation = Quotation(
                quotation_number=numbering_service.next_number(
                    db, settings.quotation_prefix, Quotation.quotation_number, now
                ),
                contact_id=data.contact_id,
                status="draft",
                expiration_date=data.expiration_date or (now.date() + timedelta(days=validity_days)),
                currency=settings.currency,
            )
            self._apply_header(quotation, data, pricing)
            quotation.lines = self._build_lines(data.line_items, pricing)
            db.add(quotation)

        db.refresh(quotation)
        logger.info(f"Created quotation {quotation.quotation_number}: total {quotation.total_amount}")
        return quotation

    def update(self, db: Session, quotation_id: int, data: QuotationUpdate) -> Quotation:
        """Re-price and replace the whole line set."""
        quotation = self.get(db, quotation_id)
        if quotation.sales_order_id and not settings.allow_edit_converted_quotations:
            raise ConflictError(f"Quotation {quotation.quotation_number} has been converted and cannot be edited")
        self._validate(db, data)
        pricing = price_document(data, data.line_items)

        with transaction(db):
            quotation.contact_id = data.contact_id
            if data.expiration_date:
                quotation.expiration_date = data.expiration_date
            self._apply_header(quotation, data, pricing)
            # Orphan cascade deletes the previous lines and their components
            quotation.lines = []
            db.flush()
            quotation.lines = self._build_lines(data.line_items, pricing)

        db.refresh(quotation)
        logger.info(f"Updated quotation {quotation.quotation_number}: total {quotation.total_amount}")
        return quotation

    def update_status(self, db: Session, quotation_id: int, status: str) -> Quotation:
        quotation = self.get(db, quotation_id)
        previous = quotation.status
        with transaction(db):
            quotation.status = status
        db.refresh(quotation)
        logger.info(f"Quotation {quotation.quotation_number} status {previous} -> {status}")

        if status == "accepted" and previous != "accepted":
            notification_service.notify(
                db,
                "quotation_accepted",
                f"Quotation {quotation.quotation_number} accepted",
                f"Total {quotation.total_amount} {quotation.currency}",
                quotation.quotation_number,
            )
        return quotation

    def duplicate(self, db: Session, quotation_id: int, now: Optional[datetime] = None) -> Quotation:
        """Copy a quotation verbatim as a new draft with a fresh number and validity."""
        now = now or datetime.now()
        source = self.get(db, quotation_id)

        with transaction(db):
            copy = Quotation(
                quotation_number=numbering_service.next_number(
                    db, settings.quotation_prefix, Quotation.quotation_number, now
                ),
                contact_id=source.contact_id,
                status="draft",
                expiration_date=now.date() + timedelta(days=settings.quotation_validity_days),
                currency=source.currency,
            )
            for field in self._copied_fields:
                setattr(copy, field, getattr(source, field))
            copy.lines = [self._copy_line(line) for line in source.lines]
            db.add(copy)

        db.refresh(copy)
        logger.info(f"Duplicated quotation {source.quotation_number} as {copy.quotation_number}")
        return copy

    def delete(self, db: Session, quotation_id: int) -> None:
        quotation = self.get(db, quotation_id)
        if quotation.sales_order_id and not settings.allow_delete_converted_quotations:
            raise ConflictError(f"Quotation {quotation.quotation_number} has been converted and cannot be deleted")

        number = quotation.quotation_number
        with transaction(db):
            db.query(SalesOrder).filter(SalesOrder.quotation_id == quotation_id).update(
                {SalesOrder.quotation_id: None}, synchronize_session=False
            )
            db.query(Invoice).filter(Invoice.quotation_id == quotation_id).update(
                {Invoice.quotation_id: None}, synchronize_session=False
            )
            db.delete(quotation)
        logger.info(f"Deleted quotation {number}")

    _copied_fields = (
        "delivery_date", "delivery_address", "payment_terms", "delivery_terms",
        "discount_type", "discount_value", "shipping_cost", "installation_cost",
        "tax_rate", "include_tax", "subtotal", "discount_amount", "tax_amount",
        "total_amount", "notes", "internal_notes", "terms_conditions",
    )

    _line_fields = (
        "line_number", "product_id", "product_name", "product_sku", "description",
        "quantity", "unit_price", "discount_type", "discount_value", "discount_amount",
        "tax_rate", "tax_amount", "line_total", "notes", "is_optional", "is_customized",
    )

    def _validate(self, db: Session, data: QuotationBase) -> None:
        if not db.query(Contact.id).filter(Contact.id == data.contact_id).first():
            raise NotFoundError(f"Contact {data.contact_id} not found")
        if not data.line_items:
            raise ValidationError("A quotation needs at least one line item")

        for line in data.line_items:
            for component in line.custom_components:
                if component.material_id is not None and not db.query(Material.id).filter(
                    Material.id == component.material_id
                ).first():
                    raise NotFoundError(f"Material {component.material_id} not found")
                if component.finish_id is not None and not db.query(Finish.id).filter(
                    Finish.id == component.finish_id
                ).first():
                    raise NotFoundError(f"Finish {component.finish_id} not found")

    def _apply_header(self, quotation: Quotation, data: QuotationBase, pricing: PricingResult) -> None:
        quotation.delivery_date = data.delivery_date
        quotation.delivery_address = data.delivery_address
        quotation.payment_terms = data.payment_terms or settings.default_payment_terms
        quotation.delivery_terms = data.delivery_terms or settings.default_delivery_terms
        quotation.discount_type = data.discount_type
        quotation.discount_value = data.discount_value
        quotation.shipping_cost = pricing.shipping_cost
        quotation.installation_cost = pricing.installation_cost
        quotation.tax_rate = data.tax_rate
        quotation.include_tax = data.include_tax
        quotation.subtotal = pricing.subtotal
        quotation.discount_amount = pricing.discount_amount
        quotation.tax_amount = pricing.tax_amount
        quotation.total_amount = pricing.total_amount
        quotation.notes = data.notes
        quotation.internal_notes = data.internal_notes
        quotation.terms_conditions = data.terms_conditions

    def _build_lines(self, items: List[QuotationLineInput], pricing: PricingResult) -> List[QuotationLine]:
        lines = []
        for number, (item, breakdown) in enumerate(zip(items, pricing.lines), start=1):
            line = QuotationLine(
                line_number=number,
                product_id=item.product_id,
                product_name=item.product_name,
                product_sku=item.product_sku,
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                discount_type=item.discount_type,
                discount_value=item.discount_value,
                discount_amount=breakdown.discount_amount,
                tax_rate=item.tax_rate,
                tax_amount=breakdown.tax_amount,
                line_total=breakdown.line_total,
                notes=item.notes,
                is_optional=item.is_optional,
                is_customized=item.is_customized,
            )
            if item.is_customized:
                line.components = [
                    QuotationLineComponent(
                        component_name=component.component_name,
                        material_id=component.material_id,
                        finish_id=component.finish_id,
                        quantity=component.quantity,
                        unit_cost=component.unit_cost,
                        upcharge_percentage=component.upcharge_percentage,
                    )
                    for component in item.custom_components
                ]
            lines.append(line)
        return lines

    def _copy_line(self, line: QuotationLine) -> QuotationLine:
        copy = QuotationLine(**{field: getattr(line, field) for field in self._line_fields})
        copy.components = [
            QuotationLineComponent(
                component_name=c.component_name,
                material_id=c.material_id,
                finish_id=c.finish_id,
                quantity=c.quantity,
                unit_cost=c.unit_cost,
                upcharge_percentage=c.upcharge_percentage,
            )
            for c in line.components
        ]
        return copy


quotation_service = QuotationService()
