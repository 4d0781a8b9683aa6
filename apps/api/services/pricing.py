"""
Invoice pricing engine.

Turns a draft request (customer, tax rate, ordered (item, quantity) pairs) into
a fully priced, immutable PricedInvoice using whatever the catalog says *now*.
Nothing here writes anywhere: the caller hands the result to an invoice repo.

Every money value is rounded half-up to cents where it is produced (line
total, subtotal, tax, grand total), never once at the end.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Callable, Iterable, List, Optional, Protocol, Sequence, Tuple, Union

from ..errors import (
    AmountTooLarge, EmptyInvoice, InvalidCustomer, InvalidQuantity, InvalidTaxRate, UnknownItem,
)
from ..models.catalog import CatalogItem, Category
from ..models.customer import Customer
from ..models.invoice import CustomerSnapshot, InvoiceLine, InvoiceLineRequest, PricedInvoice

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
# invoice_lines.quantity is a Postgres INT
MAX_QUANTITY = 2_147_483_647
# money columns are NUMERIC(18,2)
MAX_AMOUNT = Decimal("9999999999999999.99")

LineLike = Union[InvoiceLineRequest, Tuple[str, Any]]


class CatalogLookup(Protocol):
    def get_item(self, item_id: str) -> Optional[CatalogItem]: ...

    def get_category(self, category_id: str) -> Optional[Category]: ...


class CustomerLookup(Protocol):
    def get_customer(self, customer_id: str) -> Optional[Customer]: ...


def round2(value: Decimal) -> Decimal:
    """Round half-up to 2 decimal places."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Any) -> Decimal:
    # go through str() so 0.1 stays 0.1 instead of its binary expansion
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a number")
    return Decimal(str(value))


def _normalize_tax_rate(tax_rate: Any) -> Decimal:
    try:
        rate = to_decimal(tax_rate)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidTaxRate(tax_rate)
    if not rate.is_finite() or rate < 0:
        raise InvalidTaxRate(tax_rate)
    return rate


def _normalize_quantity(index: int, quantity: Any) -> int:
    """Accept ints and integral floats/Decimals; everything else is rejected."""
    if isinstance(quantity, bool):
        raise InvalidQuantity(index, quantity)
    if isinstance(quantity, int):
        qty = quantity
    elif isinstance(quantity, (float, Decimal)):
        try:
            dec = to_decimal(quantity)
        except (InvalidOperation, ValueError):
            raise InvalidQuantity(index, quantity)
        if not dec.is_finite() or dec != dec.to_integral_value():
            raise InvalidQuantity(index, quantity)
        qty = int(dec)
    else:
        raise InvalidQuantity(index, quantity)
    if qty <= 0 or qty > MAX_QUANTITY:
        raise InvalidQuantity(index, quantity)
    return qty


def _unpack(line: LineLike) -> Tuple[str, Any]:
    if isinstance(line, InvoiceLineRequest):
        return line.item_id, line.quantity
    item_id, quantity = line
    return item_id, quantity


def price_line(index: int, item: CatalogItem, quantity: int) -> InvoiceLine:
    unit_price = round2(item.unit_price)
    line_total = unit_price * quantity
    if line_total > MAX_AMOUNT:
        raise InvalidQuantity(index, quantity)
    return InvoiceLine(
        line_no=index,
        item_id=item.item_id,
        item_name=item.item_name,
        item_description=item.description,
        quantity=quantity,
        unit_price=unit_price,
        line_total=round2(line_total),
    )


def _fits(field: str, amount: Decimal) -> Decimal:
    # compare before rounding: quantize() itself fails on very large values
    if amount > MAX_AMOUNT:
        raise AmountTooLarge(field, amount)
    return round2(amount)


def compute_totals(line_totals: Iterable[Decimal], tax_rate: Decimal) -> Tuple[Decimal, Decimal, Decimal]:
    """
    Return (sub_total, tax_amount, total_amount) for already-rounded line totals.

    Raises AmountTooLarge when any of them would not fit a money column.
    """
    sub_total = _fits("sub_total", sum(line_totals, Decimal("0")))
    tax_amount = _fits("tax_amount", sub_total * tax_rate / Decimal(100))
    total_amount = _fits("total_amount", sub_total + tax_amount)
    return sub_total, tax_amount, total_amount


def create_invoice(
    customers: CustomerLookup,
    catalog: CatalogLookup,
    customer_id: str,
    tax_rate: Any,
    line_requests: Sequence[LineLike],
    *,
    now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
) -> PricedInvoice:
    """
    Validate and price a draft invoice.

    Raises one of EmptyInvoice, InvalidCustomer, InvalidTaxRate,
    InvalidQuantity (with the line index), UnknownItem (with the item id
    and line index) or AmountTooLarge. Lines are checked in order and the
    first bad one wins.
    """
    if not line_requests:
        raise EmptyInvoice()

    customer = customers.get_customer(customer_id)
    if customer is None:
        raise InvalidCustomer(customer_id)

    rate = _normalize_tax_rate(tax_rate)

    lines: List[InvoiceLine] = []
    for idx, raw in enumerate(line_requests):
        item_id, quantity = _unpack(raw)
        qty = _normalize_quantity(idx, quantity)
        item = catalog.get_item(item_id)
        if item is None:
            raise UnknownItem(item_id, idx)
        lines.append(price_line(idx, item, qty))

    sub_total, tax_amount, total_amount = compute_totals((ln.line_total for ln in lines), rate)

    priced = PricedInvoice(
        customer_id=customer.customer_id,
        customer=CustomerSnapshot(
            customer_name=customer.customer_name,
            phone=customer.phone,
            email=str(customer.email) if customer.email else None,
            address=customer.address,
        ),
        invoice_date=now(),
        tax_rate=rate,
        lines=lines,
        sub_total=sub_total,
        tax_amount=tax_amount,
        total_amount=total_amount,
    )
    logger.debug(
        "Priced invoice for customer %s: %d line(s), total %s",
        customer.customer_id, len(lines), total_amount,
    )
    return priced
