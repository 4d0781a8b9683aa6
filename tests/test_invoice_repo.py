from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from unittest.mock import MagicMock

import psycopg
import pytest

from apps.api.errors import InvalidQuantity, NotFound, PersistenceFailure, UnknownItem
from apps.api.models.catalog import ItemIn
from apps.api.models.invoice import InvoiceLineRequest, InvoiceRequest
from apps.api.repos.invoices import PgInvoiceRepo, format_invoice_number
from apps.api.services.invoicing import issue_invoice
from apps.api.services.pricing import create_invoice


def issue(repos, items, customer_id="CUST-1", tax_rate=Decimal("10")):
    req = InvoiceRequest(
        customer_id=customer_id,
        tax_rate=tax_rate,
        items=[InvoiceLineRequest(item_id=i, quantity=q) for i, q in items],
    )
    return issue_invoice(req, customers=repos.customers, catalog=repos.catalog, invoices=repos.invoices)


def test_format_invoice_number():
    assert format_invoice_number("INV", 1) == "INV-000001"
    assert format_invoice_number("PZ", 1234567) == "PZ-1234567"


def test_store_assigns_id_and_increasing_numbers(seeded):
    first = issue(seeded, [("ITEM-A", 1)])
    second = issue(seeded, [("ITEM-B", 2)])

    assert first.invoice_number == "INV-000001"
    assert second.invoice_number == "INV-000002"
    assert first.invoice_id != second.invoice_id


def test_get_by_id_returns_lines(seeded):
    stored = issue(seeded, [("ITEM-A", 2), ("ITEM-B", 3)])
    loaded = seeded.invoices.get_by_id(stored.invoice_id)

    assert loaded == stored
    assert [ln.item_id for ln in loaded.lines] == ["ITEM-A", "ITEM-B"]
    assert loaded.total_amount == Decimal("3356.65")


def test_get_by_id_unknown_raises_not_found(seeded):
    with pytest.raises(NotFound):
        seeded.invoices.get_by_id("nope")
    assert seeded.invoices.find_by_id("nope") is None


def test_find_all_is_creation_order_summaries(seeded):
    a = issue(seeded, [("ITEM-A", 1)], customer_id="CUST-2")
    b = issue(seeded, [("ITEM-B", 1)])
    c = issue(seeded, [("ITEM-A", 3)])

    summaries = seeded.invoices.find_all()
    assert [s.invoice_id for s in summaries] == [a.invoice_id, b.invoice_id, c.invoice_id]
    assert summaries[0].customer_name == "Walk-in"
    assert summaries[2].total_amount == c.total_amount
    assert not hasattr(summaries[0], "lines")

    page = seeded.invoices.find_all(limit=1, offset=1)
    assert [s.invoice_number for s in page] == [b.invoice_number]


def test_failed_request_consumes_no_number(seeded):
    with pytest.raises(InvalidQuantity):
        issue(seeded, [("ITEM-A", 2), ("ITEM-B", 0)])
    with pytest.raises(UnknownItem):
        issue(seeded, [("ITEM-A", 1), ("ITEM-999", 1)])

    assert seeded.invoices.find_all() == []
    assert issue(seeded, [("ITEM-A", 1)]).invoice_number == "INV-000001"


def test_stored_lines_ignore_later_price_changes(seeded):
    stored = issue(seeded, [("ITEM-A", 2)])

    seeded.catalog.update_item("ITEM-A", ItemIn(
        item_name="Margherita XL", category_id="CAT-PIZZA", unit_price=Decimal("999.99"),
    ))

    reread = seeded.invoices.get_by_id(stored.invoice_id)
    assert reread.lines[0].unit_price == Decimal("850.00")
    assert reread.lines[0].item_name == "Margherita (L)"
    assert reread.sub_total == Decimal("1700.00")


def test_concurrent_stores_never_share_a_number(seeded):
    priced = create_invoice(seeded.customers, seeded.catalog, "CUST-1", 10, [("ITEM-A", 1)])

    with ThreadPoolExecutor(max_workers=16) as pool:
        stored = list(pool.map(lambda _: seeded.invoices.store(priced), range(200)))

    numbers = [s.invoice_number for s in stored]
    assert len(set(numbers)) == 200

    # listing is creation order, and numbers rise strictly in that order
    listed = [s.invoice_number for s in seeded.invoices.find_all(limit=500)]
    assert listed == sorted(listed)
    assert len(listed) == 200


def test_concurrent_issue_through_engine(seeded):
    carts = [[("ITEM-A", n % 3 + 1), ("ITEM-B", 1)] for n in range(50)]

    with ThreadPoolExecutor(max_workers=8) as pool:
        stored = list(pool.map(lambda cart: issue(seeded, cart), carts))

    assert len({s.invoice_number for s in stored}) == 50
    for s in stored:
        assert s.total_amount == s.sub_total + s.tax_amount


def test_next_invoice_number_is_shared_with_store(seeded):
    assert seeded.invoices.next_invoice_number() == "INV-000001"
    assert issue(seeded, [("ITEM-A", 1)]).invoice_number == "INV-000002"


# --- Postgres repo against a mocked pool ---------------------------------

def _mock_pool():
    pool = MagicMock(name="pool")
    conn = pool.connection.return_value.__enter__.return_value
    cur = conn.cursor.return_value.__enter__.return_value
    return pool, conn, cur


def test_pg_store_writes_header_and_lines_in_one_transaction(seeded):
    priced = create_invoice(seeded.customers, seeded.catalog, "CUST-1", 10, [("ITEM-A", 2), ("ITEM-B", 3)])
    pool, conn, cur = _mock_pool()
    cur.fetchone.side_effect = [(7,), ("0b7d6c4e-8d4f-4c36-9a57-0f4a3c1e2b11",)]

    stored = PgInvoiceRepo(pool, prefix="INV").store(priced)

    assert stored.invoice_number == "INV-000007"
    assert stored.invoice_id == "0b7d6c4e-8d4f-4c36-9a57-0f4a3c1e2b11"
    assert stored.total_amount == Decimal("3356.65")
    conn.transaction.assert_called_once()

    (sql, rows), _ = cur.executemany.call_args
    assert "INSERT INTO invoice_lines" in sql
    assert [r["line_no"] for r in rows] == [0, 1]
    assert all(r["invoice_id"] == stored.invoice_id for r in rows)
    assert rows[1]["unit_price"] == Decimal("450.50")


def test_pg_store_wraps_database_errors(seeded):
    priced = create_invoice(seeded.customers, seeded.catalog, "CUST-1", 10, [("ITEM-A", 1)])
    pool, conn, cur = _mock_pool()
    cur.execute.side_effect = psycopg.OperationalError("server closed the connection")

    with pytest.raises(PersistenceFailure) as exc:
        PgInvoiceRepo(pool).store(priced)
    assert isinstance(exc.value.cause, psycopg.OperationalError)


def test_pg_get_by_id_missing_raises_not_found():
    pool, conn, cur = _mock_pool()
    cur.fetchone.return_value = None

    with pytest.raises(NotFound):
        PgInvoiceRepo(pool).get_by_id("6f1c1d9e-0000-0000-0000-000000000000")
