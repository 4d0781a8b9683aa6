import logging
from decimal import Decimal
from typing import Optional, Protocol

from ..errors import InvoiceValidationError
from ..models.invoice import Invoice, InvoiceRequest, PricedInvoice
from .pricing import CatalogLookup, CustomerLookup, create_invoice

logger = logging.getLogger(__name__)


class InvoiceStore(Protocol):
    def store(self, priced: PricedInvoice) -> Invoice: ...


def issue_invoice(
    request: InvoiceRequest,
    *,
    customers: CustomerLookup,
    catalog: CatalogLookup,
    invoices: InvoiceStore,
    default_tax_rate: Optional[Decimal] = None,
) -> Invoice:
    """
    Price a draft invoice and persist it.

    Pricing finishes (and every line is validated) before the repo is touched,
    so a rejected request never consumes an invoice number. Errors from either
    step propagate unchanged.
    """
    tax_rate = request.tax_rate if request.tax_rate is not None else default_tax_rate
    try:
        priced = create_invoice(
            customers,
            catalog,
            request.customer_id,
            tax_rate,
            request.items,
        )
    except InvoiceValidationError as e:
        logger.info("Rejected invoice request for customer %s: %s", request.customer_id, e.message)
        raise

    stored = invoices.store(priced)
    logger.info(
        "Issued invoice %s for customer %s (%d line(s), total %s)",
        stored.invoice_number, stored.customer_id, len(stored.lines), stored.total_amount,
    )
    return stored
