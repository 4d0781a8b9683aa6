from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from apps.api.deps import MemoryRepos, get_catalog_repo, get_customer_repo, get_invoice_repo
from apps.api.models.catalog import CategoryIn, ItemIn
from apps.api.models.customer import CustomerIn
from apps.api.repos.memory import InMemoryCatalogRepo, InMemoryCustomerRepo, InMemoryInvoiceRepo

FIXED_NOW = datetime(2024, 3, 1, 18, 30, tzinfo=timezone.utc)


@pytest.fixture
def fixed_now():
    return lambda: FIXED_NOW


@pytest.fixture
def repos():
    invoices = InMemoryInvoiceRepo(prefix="INV")
    return MemoryRepos(
        catalog=InMemoryCatalogRepo(invoices),
        customers=InMemoryCustomerRepo(invoices),
        invoices=invoices,
    )


@pytest.fixture
def seeded(repos):
    """Two menu items (850.00 and 450.50) and two customers."""
    repos.catalog.create_category(CategoryIn(category_id="CAT-PIZZA", category_name="Pizza"))
    repos.catalog.create_item(ItemIn(
        item_id="ITEM-A", item_name="Margherita (L)", category_id="CAT-PIZZA",
        unit_price=Decimal("850.00"), description="Tomato, mozzarella, basil",
    ))
    repos.catalog.create_item(ItemIn(
        item_id="ITEM-B", item_name="Garlic Bread", category_id="CAT-PIZZA",
        unit_price=Decimal("450.50"),
    ))
    repos.customers.create_customer(CustomerIn(
        customer_id="CUST-1", customer_name="Nimal Perera", phone="0771234567",
        email="nimal@example.com", address="12 Galle Road, Colombo",
    ))
    repos.customers.create_customer(CustomerIn(customer_id="CUST-2", customer_name="Walk-in"))
    return repos


@pytest.fixture
def client(seeded):
    from apps.api.main import app

    app.dependency_overrides[get_catalog_repo] = lambda: seeded.catalog
    app.dependency_overrides[get_customer_repo] = lambda: seeded.customers
    app.dependency_overrides[get_invoice_repo] = lambda: seeded.invoices
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
