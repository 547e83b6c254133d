"""
Seed script to generate synthetic contacts, catalog rows and a few
quotations (one converted and invoiced) for demo purposes
"""
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.orm import Session
from erp.database import SessionLocal, engine, Base
from erp.models import Contact, Product, Material, Finish
from erp.schemas.quotation import QuotationCreate, QuotationLineInput, CustomComponentInput
from erp.schemas.sales_order import ConvertToOrderRequest
from erp.schemas.invoice import InvoiceCreate
from erp.services.quotation_service import quotation_service
from erp.services.order_service import order_service
from erp.services.invoice_service import invoice_service
from decimal import Decimal
from faker import Faker

fake = Faker("fr_FR")

FURNITURE = ["Sofa", "Armchair", "Dining table", "Coffee table", "Bookcase", "Bed frame", "Sideboard", "Desk"]
MATERIALS = [("Oak", "m2", 15), ("Walnut", "m2", 25), ("Leather", "m2", 30), ("Linen", "m2", 10), ("Steel", "kg", 5)]
FINISHES = [("Matte varnish", 5), ("Gloss lacquer", 12), ("Natural oil", 8)]


def create_contacts(db: Session, count: int = 10) -> list[Contact]:
    """Create synthetic customers"""
    contacts = []
    for _ in range(count):
        contact = Contact(
            first_name=fake.first_name(),
            last_name=fake.last_name(),
            company_name=fake.company() if fake.boolean(chance_of_getting_true=30) else None,
            email=fake.email(),
            phone=fake.phone_number(),
            address_street=fake.street_address(),
            address_city=fake.city(),
            address_zip=fake.postcode(),
            address_country="France",
        )
        db.add(contact)
        contacts.append(contact)
    db.commit()
    return contacts


def create_catalog(db: Session) -> tuple[list[Product], list[Material], list[Finish]]:
    """Create products, materials and finishes"""
    products = []
    for i, name in enumerate(FURNITURE, start=1):
        product = Product(
            sku=f"FUR-{i:04d}",
            name=name,
            unit_price=Decimal(str(round(fake.random.uniform(150.0, 2500.0), 2))),
            stock_quantity=Decimal(fake.random_int(min=0, max=20)),
            min_stock_level=Decimal("2"),
        )
        db.add(product)
        products.append(product)

    materials = []
    for i, (name, unit, upcharge) in enumerate(MATERIALS, start=1):
        material = Material(
            code=f"MAT-{i:03d}",
            name=name,
            unit_of_measure=unit,
            cost_per_unit=Decimal(str(round(fake.random.uniform(5.0, 120.0), 2))),
            upcharge_percentage=Decimal(upcharge),
            stock_quantity=Decimal(fake.random_int(min=10, max=200)),
        )
        db.add(material)
        materials.append(material)

    finishes = []
    for name, upcharge in FINISHES:
        finish = Finish(name=name, extra_cost=Decimal("0"), upcharge_percentage=Decimal(upcharge))
        db.add(finish)
        finishes.append(finish)

    db.commit()
    return products, materials, finishes


def create_quotations(db: Session, contacts, products, materials, finishes, count: int = 6):
    """Create quotations through the service so totals and numbers are real"""
    quotations = []
    for _ in range(count):
        lines = []
        for product in fake.random_elements(elements=products, length=fake.random_int(min=1, max=3), unique=True):
            customized = fake.boolean(chance_of_getting_true=30)
            lines.append(QuotationLineInput(
                product_id=product.id,
                product_name=product.name,
                product_sku=product.sku,
                quantity=Decimal(fake.random_int(min=1, max=4)),
                unit_price=product.unit_price,
                discount_type="percent",
                discount_value=Decimal(fake.random_element(elements=(0, 0, 5, 10))),
                tax_rate=Decimal("20"),
                is_customized=customized,
                custom_components=[
                    CustomComponentInput(
                        component_name="Body",
                        material_id=fake.random_element(elements=materials).id,
                        finish_id=fake.random_element(elements=finishes).id,
                        quantity=Decimal(str(round(fake.random.uniform(0.5, 3.0), 3))),
                    )
                ] if customized else [],
            ))

        quotation = quotation_service.create(db, QuotationCreate(
            contact_id=fake.random_element(elements=contacts).id,
            line_items=lines,
            discount_type="percent",
            discount_value=Decimal(fake.random_element(elements=(0, 5))),
            shipping_cost=Decimal(fake.random_element(elements=(0, 49, 89))),
            tax_rate=Decimal("20"),
            notes=fake.sentence(),
        ))
        quotations.append(quotation)
    return quotations


def main():
    """Main seeding function"""
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        print("Creating contacts...")
        contacts = create_contacts(db)
        print(f"Created {len(contacts)} contacts")

        print("Creating catalog...")
        products, materials, finishes = create_catalog(db)
        print(f"Created {len(products)} products, {len(materials)} materials, {len(finishes)} finishes")

        print("Creating quotations...")
        quotations = create_quotations(db, contacts, products, materials, finishes)
        print(f"Created {len(quotations)} quotations")

        # Walk one quotation through the whole pipeline
        first = quotations[0]
        quotation_service.update_status(db, first.id, "accepted")
        result = order_service.convert(db, first.id, ConvertToOrderRequest(
            down_payment_amount=Decimal("100.00"),
            down_payment_method="card",
        ))
        invoice = invoice_service.create_from_order(db, InvoiceCreate(sales_order_id=result.order.id))
        quotation_service.update_status(db, quotations[1].id, "sent")

        print("\nSeeding complete!")
        print(f"Summary:")
        print(f"  - Contacts: {len(contacts)}")
        print(f"  - Products: {len(products)}")
        print(f"  - Quotations: {len(quotations)}")
        print(f"  - Order: {result.order.order_number} ({len(result.warnings)} stock warning(s))")
        print(f"  - Invoice: {invoice.invoice_number}, due {invoice.amount_due}")

    except Exception as e:
        print(f"Error during seeding: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
