"""
Pricing rules for quotations, orders and invoices.

Pure functions over Decimal: no session, no settings. Every intermediate
amount is rounded half-up to cents so that re-deriving totals from persisted
lines always reproduces the persisted figures.
"""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence, Union

CENT = Decimal("0.01")
QUANTITY_STEP = Decimal("0.001")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round2(value) -> Decimal:
    """Round half-up to 2 decimals."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_quantity(value) -> Decimal:
    """Round half-up to the stock precision (3 decimals)."""
    return to_decimal(value).quantize(QUANTITY_STEP, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Percent:
    value: Decimal

    @property
    def discount_type(self) -> str:
        return "percent"


@dataclass(frozen=True)
class Absolute:
    value: Decimal

    @property
    def discount_type(self) -> str:
        return "amount"


Discount = Union[Percent, Absolute]

NO_DISCOUNT = Percent(Decimal("0"))


def discount_from(discount_type: Optional[str], value) -> Discount:
    """Resolve the stored (type, value) pair into a Discount variant."""
    amount = to_decimal(value)
    if discount_type in (None, "", "percent"):
        return Percent(amount)
    if discount_type == "amount":
        return Absolute(amount)
    raise ValueError(f"Unknown discount type: {discount_type}")


def discount_amount(base: Decimal, discount: Discount) -> Decimal:
    """Discount applied on `base`, never larger than `base` itself."""
    if isinstance(discount, Percent):
        amount = round2(base * discount.value / HUNDRED)
    else:
        amount = round2(discount.value)
    return min(amount, base)


@dataclass(frozen=True)
class LineInput:
    quantity: Decimal
    unit_price: Decimal
    discount: Discount = NO_DISCOUNT
    tax_rate: Decimal = Decimal("0")


@dataclass(frozen=True)
class LineBreakdown:
    line_subtotal: Decimal
    discount_amount: Decimal
    line_total: Decimal  # tax-exclusive
    tax_amount: Decimal  # display only, never summed into totals


@dataclass(frozen=True)
class PricingResult:
    lines: List[LineBreakdown]
    subtotal: Decimal
    discount_amount: Decimal
    subtotal_after_discount: Decimal
    shipping_cost: Decimal
    installation_cost: Decimal
    base_for_tax: Decimal
    tax_amount: Decimal
    total_amount: Decimal


def price_line(line: LineInput) -> LineBreakdown:
    line_subtotal = round2(to_decimal(line.quantity) * to_decimal(line.unit_price))
    line_discount = discount_amount(line_subtotal, line.discount)
    line_total = round2(line_subtotal - line_discount)
    tax_amount = round2(line_total * to_decimal(line.tax_rate) / HUNDRED)
    return LineBreakdown(
        line_subtotal=line_subtotal,
        discount_amount=line_discount,
        line_total=line_total,
        tax_amount=tax_amount,
    )


def compute_totals(
    lines: Sequence[LineInput],
    discount: Discount = NO_DISCOUNT,
    shipping_cost=0,
    installation_cost=0,
    tax_rate=0,
    include_tax: bool = True,
) -> PricingResult:
    """
    Compute line and document totals.

    Tax is applied once, on the discounted subtotal plus shipping and
    installation; per-line tax amounts are informational.

    Args:
        lines: priced lines (quantity > 0, unit price >= 0)
        discount: document-level discount
        shipping_cost: added to the taxable base
        installation_cost: added to the taxable base
        tax_rate: percentage applied on the taxable base
        include_tax: when False the tax is zero regardless of tax_rate

    Returns:
        PricingResult with every intermediate amount rounded to cents
    """
    breakdowns = [price_line(line) for line in lines]
    subtotal = round2(sum((b.line_total for b in breakdowns), ZERO))

    order_discount = discount_amount(subtotal, discount)
    subtotal_after_discount = round2(subtotal - order_discount)

    shipping = round2(shipping_cost)
    installation = round2(installation_cost)
    base_for_tax = round2(subtotal_after_discount + shipping + installation)

    tax = round2(base_for_tax * to_decimal(tax_rate) / HUNDRED) if include_tax else ZERO
    total = round2(base_for_tax + tax)

    return PricingResult(
        lines=breakdowns,
        subtotal=subtotal,
        discount_amount=order_discount,
        subtotal_after_discount=subtotal_after_discount,
        shipping_cost=shipping,
        installation_cost=installation,
        base_for_tax=base_for_tax,
        tax_amount=tax,
        total_amount=total,
    )


def component_consumption(component_quantity, line_quantity) -> Decimal:
    """Material units consumed by one customized line."""
    return round_quantity(to_decimal(component_quantity) * to_decimal(line_quantity))


@dataclass(frozen=True)
class Upcharge:
    component_name: Optional[str]
    kind: str  # material, finish
    name: str
    upcharge_percentage: Decimal


@dataclass(frozen=True)
class UpchargeDetail:
    component_name: Optional[str]
    kind: str
    name: str
    upcharge_percentage: Decimal
    upcharge_amount: Decimal


@dataclass(frozen=True)
class CustomPriceResult:
    base_price: Decimal
    total_upcharge: Decimal
    custom_price: Decimal
    component_details: List[UpchargeDetail] = field(default_factory=list)


def calculate_custom_price(base_price, upcharges: Sequence[Upcharge]) -> CustomPriceResult:
    """
    Unit price of a customized product: base price plus one percentage
    upcharge per substituted material or finish, each taken on the base price.
    """
    base = round2(base_price)
    details = []
    for upcharge in upcharges:
        amount = round2(base * to_decimal(upcharge.upcharge_percentage) / HUNDRED)
        details.append(UpchargeDetail(
            component_name=upcharge.component_name,
            kind=upcharge.kind,
            name=upcharge.name,
            upcharge_percentage=to_decimal(upcharge.upcharge_percentage),
            upcharge_amount=amount,
        ))
    total_upcharge = round2(sum((d.upcharge_amount for d in details), ZERO))
    return CustomPriceResult(
        base_price=base,
        total_upcharge=total_upcharge,
        custom_price=round2(base + total_upcharge),
        component_details=details,
    )
