"""
Shared fixtures: a fresh in-memory SQLite schema per test, a session bound
to it, a TestClient wired to that same session, and small catalog factories.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from erp.database import Base, get_db
from erp.main import app
from erp.models import Contact, Finish, Material, Product
from erp.services.quotation_service import quotation_service
from factories import quotation_input


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # SQLAlchemy emits BEGIN itself; pysqlite would otherwise break SAVEPOINT
    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_contact(db):
    def factory(first_name="Claire", last_name="Martin", company_name=None) -> Contact:
        contact = Contact(first_name=first_name, last_name=last_name, company_name=company_name)
        db.add(contact)
        db.commit()
        return contact
    return factory


@pytest.fixture
def make_product(db):
    def factory(name="Oak table", unit_price="100.00", stock="10", sku=None) -> Product:
        product = Product(
            sku=sku,
            name=name,
            unit_price=Decimal(unit_price),
            stock_quantity=Decimal(stock),
        )
        db.add(product)
        db.commit()
        return product
    return factory


@pytest.fixture
def make_material(db):
    def factory(name="Walnut veneer", stock="50", upcharge="15") -> Material:
        material = Material(
            name=name,
            cost_per_unit=Decimal("12.00"),
            upcharge_percentage=Decimal(upcharge),
            stock_quantity=Decimal(stock),
        )
        db.add(material)
        db.commit()
        return material
    return factory


@pytest.fixture
def make_finish(db):
    def factory(name="Gloss lacquer", upcharge="10") -> Finish:
        finish = Finish(name=name, extra_cost=Decimal("0"), upcharge_percentage=Decimal(upcharge))
        db.add(finish)
        db.commit()
        return finish
    return factory


@pytest.fixture
def accepted_quotation(db, make_contact):
    """Create a quotation from lines and move it to accepted."""
    def factory(lines, **header):
        contact = make_contact()
        quotation = quotation_service.create(db, quotation_input(contact, lines, **header))
        return quotation_service.update_status(db, quotation.id, "accepted")
    return factory
