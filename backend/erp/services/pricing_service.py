"""
Pricing Service - bridges request schemas and the pure pricing rules.
"""
import logging
from typing import List

from sqlalchemy.orm import Session

from erp.errors import NotFoundError
from erp.models.finish import Finish
from erp.models.material import Material
from erp.schemas.pricing import CustomPriceRequest, PricingLineInput, PricingPreviewRequest
from erp.utils.pricing import (
    CustomPriceResult,
    LineInput,
    PricingResult,
    Upcharge,
    calculate_custom_price,
    compute_totals,
    discount_from,
)

logger = logging.getLogger(__name__)


def to_line_input(line) -> LineInput:
    """Accepts a PricingLineInput or any persisted line with the same columns."""
    return LineInput(
        quantity=line.quantity,
        unit_price=line.unit_price,
        discount=discount_from(line.discount_type, line.discount_value),
        tax_rate=line.tax_rate or 0,
    )


def price_document(document, lines) -> PricingResult:
    """Run the pricing rules on a header (request or row) and its lines."""
    return compute_totals(
        [to_line_input(line) for line in lines],
        discount=discount_from(document.discount_type, document.discount_value),
        shipping_cost=document.shipping_cost or 0,
        installation_cost=document.installation_cost or 0,
        tax_rate=document.tax_rate or 0,
        include_tax=bool(document.include_tax),
    )


class PricingService:

    def preview(self, request: PricingPreviewRequest) -> PricingResult:
        return price_document(request, request.line_items)

    def custom_price(self, db: Session, request: CustomPriceRequest) -> CustomPriceResult:
        """
        Resolve material and finish upcharges and price a customized product.

        Raises:
            NotFoundError: a referenced material or finish does not exist
        """
        upcharges: List[Upcharge] = []
        for component in request.custom_components:
            if component.material_id is not None:
                material = db.query(Material).filter(Material.id == component.material_id).first()
                if material is None:
                    raise NotFoundError(f"Material {component.material_id} not found")
                upcharges.append(Upcharge(
                    component_name=component.component_name,
                    kind="material",
                    name=material.name,
                    upcharge_percentage=material.upcharge_percentage or 0,
                ))
            if component.finish_id is not None:
                finish = db.query(Finish).filter(Finish.id == component.finish_id).first()
                if finish is None:
                    raise NotFoundError(f"Finish {component.finish_id} not found")
                upcharges.append(Upcharge(
                    component_name=component.component_name,
                    kind="finish",
                    name=finish.name,
                    upcharge_percentage=finish.upcharge_percentage or 0,
                ))

        result = calculate_custom_price(request.base_price, upcharges)
        logger.debug(f"Custom price {result.custom_price} (base {result.base_price}, upcharge {result.total_upcharge})")
        return result


pricing_service = PricingService()
