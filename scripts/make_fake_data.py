#!/usr/bin/env python3
"""
make_fake_data.py

Fill a freshly seeded database with a demo menu, fake customers and a few
invoices so the UI has something to show.

Usage:
  python scripts/seed.py
  python scripts/make_fake_data.py --customers 15 --invoices 25

Invoices go through the same pricing/issuing code the API uses, so numbering
and totals look exactly like real ones. Deterministic per --seed.
"""
from __future__ import annotations
import argparse
from decimal import Decimal
from random import Random

from faker import Faker

from apps.api.db import close_pool, get_pool
from apps.api.logging_config import configure_logging
from apps.api.models.catalog import CategoryIn, ItemIn
from apps.api.models.customer import CustomerIn
from apps.api.models.invoice import InvoiceLineRequest, InvoiceRequest
from apps.api.repos.catalog import PgCatalogRepo
from apps.api.repos.customers import PgCustomerRepo
from apps.api.repos.invoices import PgInvoiceRepo
from apps.api.services.invoicing import issue_invoice
from apps.api.settings import settings

# (category, [(item_id, name, price, description), ...])
MENU = [
    ("Pizza", [
        ("PZ-MARG-L", "Margherita (L)", "850.00", "Tomato, mozzarella, basil"),
        ("PZ-PEPP-L", "Pepperoni (L)", "1150.00", "Beef pepperoni, mozzarella"),
        ("PZ-VEG-M", "Veggie Supreme (M)", "720.00", "Capsicum, onion, olives, mushroom"),
        ("PZ-BBQ-L", "BBQ Chicken (L)", "1290.00", "Smoky BBQ chicken, red onion"),
    ]),
    ("Sides", [
        ("SD-GARLIC", "Garlic Bread", "450.50", "Four pieces, herb butter"),
        ("SD-WINGS", "Chicken Wings", "690.00", "Six pieces, hot sauce"),
    ]),
    ("Drinks", [
        ("DR-COLA", "Cola 1L", "320.00", None),
        ("DR-LIME", "Fresh Lime Juice", "250.00", None),
    ]),
]


def seed_menu(catalog: PgCatalogRepo) -> list[str]:
    item_ids = []
    for category_name, items in MENU:
        category = catalog.create_category(CategoryIn(category_name=category_name))
        for item_id, name, price, desc in items:
            catalog.create_item(ItemIn(
                item_id=item_id,
                item_name=name,
                category_id=category.category_id,
                unit_price=Decimal(price),
                description=desc,
            ))
            item_ids.append(item_id)
    return item_ids


def fake_phone(rng: Random) -> str:
    return "07" + "".join(str(rng.randrange(10)) for _ in range(8))


def seed_customers(customers: PgCustomerRepo, fake: Faker, rng: Random, n: int) -> list[str]:
    ids = []
    for _ in range(n):
        created = customers.create_customer(CustomerIn(
            customer_name=fake.name()[:100],
            phone=fake_phone(rng) if rng.random() < 0.8 else None,
            email=fake.email() if rng.random() < 0.6 else None,
            address=fake.address().replace("\n", ", ") if rng.random() < 0.5 else None,
        ))
        ids.append(created.customer_id)
    return ids


def main() -> None:
    ap = argparse.ArgumentParser(description="Seed demo menu, customers and invoices")
    ap.add_argument("--customers", type=int, default=10, help="Number of fake customers")
    ap.add_argument("--invoices", type=int, default=20, help="Number of invoices to issue")
    ap.add_argument("--seed", type=int, default=42, help="RNG seed for reproducibility")
    args = ap.parse_args()

    configure_logging()
    rng = Random(args.seed)
    fake = Faker()
    Faker.seed(args.seed)

    pool = get_pool()
    catalog = PgCatalogRepo(pool)
    customers = PgCustomerRepo(pool)
    invoices = PgInvoiceRepo(pool, prefix=settings.INVOICE_NUMBER_PREFIX)

    try:
        item_ids = seed_menu(catalog)
        print(f"[ok] Created {len(item_ids)} menu items")
        customer_ids = seed_customers(customers, fake, rng, args.customers)
        print(f"[ok] Created {len(customer_ids)} customers")

        for _ in range(args.invoices):
            picked = rng.sample(item_ids, k=rng.randint(1, 4))
            req = InvoiceRequest(
                customer_id=rng.choice(customer_ids),
                tax_rate=settings.DEFAULT_TAX_RATE,
                items=[InvoiceLineRequest(item_id=i, quantity=rng.randint(1, 3)) for i in picked],
            )
            inv = issue_invoice(req, customers=customers, catalog=catalog, invoices=invoices)
            print(f"  {inv.invoice_number}  {inv.customer.customer_name:<30} {inv.total_amount:>12}")
        print(f"[ok] Issued {args.invoices} invoices")
    finally:
        close_pool()


if __name__ == "__main__":
    main()
