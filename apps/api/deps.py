"""
Repository wiring for the routes.

Routes ask FastAPI for `get_catalog_repo` & co. instead of opening connections
themselves; tests swap them out through `app.dependency_overrides`.
"""
from dataclasses import dataclass
from functools import lru_cache

from .db import get_pool
from .repos.catalog import PgCatalogRepo
from .repos.customers import PgCustomerRepo
from .repos.invoices import PgInvoiceRepo
from .repos.memory import InMemoryCatalogRepo, InMemoryCustomerRepo, InMemoryInvoiceRepo
from .settings import settings


@dataclass
class MemoryRepos:
    catalog: InMemoryCatalogRepo
    customers: InMemoryCustomerRepo
    invoices: InMemoryInvoiceRepo


@lru_cache(maxsize=1)
def memory_repos() -> MemoryRepos:
    invoices = InMemoryInvoiceRepo(prefix=settings.INVOICE_NUMBER_PREFIX)
    return MemoryRepos(
        catalog=InMemoryCatalogRepo(invoices),
        customers=InMemoryCustomerRepo(invoices),
        invoices=invoices,
    )


def get_catalog_repo():
    if settings.STORAGE_BACKEND == "memory":
        return memory_repos().catalog
    return PgCatalogRepo(get_pool())


def get_customer_repo():
    if settings.STORAGE_BACKEND == "memory":
        return memory_repos().customers
    return PgCustomerRepo(get_pool())


def get_invoice_repo():
    if settings.STORAGE_BACKEND == "memory":
        return memory_repos().invoices
    return PgInvoiceRepo(get_pool(), prefix=settings.INVOICE_NUMBER_PREFIX)
