"""
Process-local repositories.

Same surface as the Postgres repos, kept in dicts. Used when
STORAGE_BACKEND=memory (demos, local UI work) and by the test suite.
Every repo guards its state with its own lock, so they are safe to share
between request threads. Reference-guarded deletes take the invoice repo's
lock before their own, so no invoice can be stored between the check and the
delete.
"""
import threading
import uuid
from contextlib import nullcontext
from typing import Dict, List, Optional

from ..errors import Conflict, NotFound
from ..models.catalog import CatalogItem, Category, CategoryIn, ItemIn
from ..models.customer import Customer, CustomerIn
from ..models.invoice import Invoice, InvoiceSummary, PricedInvoice
from .invoices import format_invoice_number


class InMemoryInvoiceRepo:
    def __init__(self, prefix: str = "INV"):
        self.prefix = prefix
        # reentrant: deletes elsewhere hold it while calling count_for_*
        self._lock = threading.RLock()
        self._seq = 0
        # dicts keep insertion order, which is creation order here
        self._invoices: Dict[str, Invoice] = {}

    def _next_seq(self) -> int:
        # caller holds self._lock
        self._seq += 1
        return self._seq

    def next_invoice_number(self) -> str:
        with self._lock:
            return format_invoice_number(self.prefix, self._next_seq())

    def store(self, priced: PricedInvoice) -> Invoice:
        # build the full record first, then publish it in one dict assignment
        with self._lock:
            invoice = Invoice(
                **priced.model_dump(),
                invoice_id=str(uuid.uuid4()),
                invoice_number=format_invoice_number(self.prefix, self._next_seq()),
            )
            self._invoices[invoice.invoice_id] = invoice
        return invoice

    save = store

    def find_by_id(self, invoice_id: str) -> Optional[Invoice]:
        with self._lock:
            return self._invoices.get(invoice_id)

    def get_by_id(self, invoice_id: str) -> Invoice:
        inv = self.find_by_id(invoice_id)
        if inv is None:
            raise NotFound("invoice", invoice_id)
        return inv

    def find_all(self, limit: int = 50, offset: int = 0) -> List[InvoiceSummary]:
        with self._lock:
            page = list(self._invoices.values())[offset:offset + limit]
        return [
            InvoiceSummary(
                invoice_id=inv.invoice_id,
                invoice_number=inv.invoice_number,
                customer_id=inv.customer_id,
                customer_name=inv.customer.customer_name,
                invoice_date=inv.invoice_date,
                tax_rate=inv.tax_rate,
                sub_total=inv.sub_total,
                tax_amount=inv.tax_amount,
                total_amount=inv.total_amount,
            )
            for inv in page
        ]

    list_all = find_all

    def locked(self):
        return self._lock

    def count_for_item(self, item_id: str) -> int:
        with self._lock:
            return sum(
                1 for inv in self._invoices.values() for ln in inv.lines if ln.item_id == item_id
            )

    def count_for_customer(self, customer_id: str) -> int:
        with self._lock:
            return sum(1 for inv in self._invoices.values() if inv.customer_id == customer_id)


def _invoices_locked(invoices: Optional[InMemoryInvoiceRepo]):
    return invoices.locked() if invoices else nullcontext()


class InMemoryCatalogRepo:
    def __init__(self, invoices: Optional[InMemoryInvoiceRepo] = None):
        self.invoices = invoices
        self._lock = threading.Lock()
        self._categories: Dict[str, Category] = {}
        self._items: Dict[str, CatalogItem] = {}

    # categories

    def list_categories(self) -> List[Category]:
        with self._lock:
            return sorted(self._categories.values(), key=lambda c: c.category_name)

    def get_category(self, category_id: str) -> Optional[Category]:
        with self._lock:
            return self._categories.get(category_id)

    def create_category(self, data: CategoryIn) -> Category:
        category = Category(**{**data.model_dump(), "category_id": data.category_id or str(uuid.uuid4())})
        with self._lock:
            if category.category_id in self._categories:
                raise Conflict(f"Category {category.category_id!r} already exists.")
            self._categories[category.category_id] = category
        return category

    def update_category(self, category_id: str, data: CategoryIn) -> Category:
        category = Category(**{**data.model_dump(), "category_id": category_id})
        with self._lock:
            if category_id not in self._categories:
                raise NotFound("category", category_id)
            self._categories[category_id] = category
        return category

    def delete_category(self, category_id: str) -> None:
        with self._lock:
            if category_id not in self._categories:
                raise NotFound("category", category_id)
            n = sum(1 for it in self._items.values() if it.category_id == category_id)
            if n > 0:
                raise Conflict(f"Cannot delete category: it still has {n} item(s).")
            del self._categories[category_id]

    # items

    def _with_category_name(self, item: CatalogItem) -> CatalogItem:
        category = self._categories.get(item.category_id)
        return item.model_copy(update={"category_name": category.category_name if category else None})

    def list_items(self) -> List[CatalogItem]:
        with self._lock:
            items = [self._with_category_name(it) for it in self._items.values()]
        return sorted(items, key=lambda it: it.item_name)

    def get_item(self, item_id: str) -> Optional[CatalogItem]:
        with self._lock:
            item = self._items.get(item_id)
            return self._with_category_name(item) if item else None

    def create_item(self, data: ItemIn) -> CatalogItem:
        item = CatalogItem(**{**data.model_dump(), "item_id": data.item_id or str(uuid.uuid4())})
        with self._lock:
            if item.category_id not in self._categories:
                raise NotFound("category", item.category_id)
            if item.item_id in self._items:
                raise Conflict(f"Item {item.item_id!r} already exists.")
            self._items[item.item_id] = item
            return self._with_category_name(item)

    def update_item(self, item_id: str, data: ItemIn) -> CatalogItem:
        item = CatalogItem(**{**data.model_dump(), "item_id": item_id})
        with self._lock:
            if item_id not in self._items:
                raise NotFound("item", item_id)
            if item.category_id not in self._categories:
                raise NotFound("category", item.category_id)
            self._items[item_id] = item
            return self._with_category_name(item)

    def delete_item(self, item_id: str) -> None:
        with _invoices_locked(self.invoices), self._lock:
            if item_id not in self._items:
                raise NotFound("item", item_id)
            n = self.invoices.count_for_item(item_id) if self.invoices else 0
            if n > 0:
                raise Conflict(f"Cannot delete item: it appears on {n} invoice line(s).")
            del self._items[item_id]


class InMemoryCustomerRepo:
    def __init__(self, invoices: Optional[InMemoryInvoiceRepo] = None):
        self.invoices = invoices
        self._lock = threading.Lock()
        self._customers: Dict[str, Customer] = {}

    def list_customers(self) -> List[Customer]:
        with self._lock:
            return sorted(self._customers.values(), key=lambda c: c.customer_name)

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        with self._lock:
            return self._customers.get(customer_id)

    def create_customer(self, data: CustomerIn) -> Customer:
        customer = Customer(**{**data.model_dump(), "customer_id": data.customer_id or str(uuid.uuid4())})
        with self._lock:
            if customer.customer_id in self._customers:
                raise Conflict(f"Customer {customer.customer_id!r} already exists.")
            self._customers[customer.customer_id] = customer
        return customer

    def update_customer(self, customer_id: str, data: CustomerIn) -> Customer:
        customer = Customer(**{**data.model_dump(), "customer_id": customer_id})
        with self._lock:
            if customer_id not in self._customers:
                raise NotFound("customer", customer_id)
            self._customers[customer_id] = customer
        return customer

    def delete_customer(self, customer_id: str) -> None:
        with _invoices_locked(self.invoices), self._lock:
            if customer_id not in self._customers:
                raise NotFound("customer", customer_id)
            n = self.invoices.count_for_customer(customer_id) if self.invoices else 0
            if n > 0:
                raise Conflict(f"Cannot delete customer: they have {n} invoice(s).")
            del self._customers[customer_id]
