"""Catalog/customer deletes refuse records that invoices still point at."""
import threading
from unittest.mock import MagicMock

import psycopg
import pytest

from apps.api.errors import Conflict, NotFound
from apps.api.repos.catalog import PgCatalogRepo
from apps.api.repos.customers import PgCustomerRepo
from apps.api.services.pricing import create_invoice


def _delete_in_thread(fn, *args):
    raised = []

    def run():
        try:
            fn(*args)
        except Conflict as e:
            raised.append(e)

    t = threading.Thread(target=run)
    t.start()
    return t, raised


# --- in-memory ---------------------------------------------------------------

def test_item_delete_waits_for_an_invoice_being_stored(seeded):
    priced = create_invoice(seeded.customers, seeded.catalog, "CUST-2", 10, [("ITEM-B", 1)])

    with seeded.invoices.locked():
        t, raised = _delete_in_thread(seeded.catalog.delete_item, "ITEM-B")
        t.join(0.2)
        assert t.is_alive()
        seeded.invoices.store(priced)
    t.join(5)

    assert not t.is_alive()
    assert len(raised) == 1
    assert seeded.catalog.get_item("ITEM-B") is not None


def test_customer_delete_waits_for_an_invoice_being_stored(seeded):
    priced = create_invoice(seeded.customers, seeded.catalog, "CUST-2", 10, [("ITEM-A", 1)])

    with seeded.invoices.locked():
        t, raised = _delete_in_thread(seeded.customers.delete_customer, "CUST-2")
        t.join(0.2)
        assert t.is_alive()
        seeded.invoices.store(priced)
    t.join(5)

    assert not t.is_alive()
    assert len(raised) == 1
    assert seeded.customers.get_customer("CUST-2") is not None


def test_unreferenced_records_are_deleted(seeded):
    seeded.catalog.delete_item("ITEM-B")
    seeded.customers.delete_customer("CUST-2")

    assert seeded.catalog.get_item("ITEM-B") is None
    assert seeded.customers.get_customer("CUST-2") is None
    with pytest.raises(NotFound):
        seeded.catalog.delete_item("ITEM-B")


# --- Postgres, against a mocked pool -------------------------------------------

def _mock_pool():
    pool = MagicMock(name="pool")
    conn = pool.connection.return_value.__enter__.return_value
    cur = conn.cursor.return_value.__enter__.return_value
    return pool, conn, cur


def test_pg_item_delete_is_a_single_guarded_statement():
    pool, conn, cur = _mock_pool()
    cur.rowcount = 1

    PgCatalogRepo(pool).delete_item("ITEM-A")

    cur.execute.assert_called_once()
    (sql, params), _ = cur.execute.call_args
    assert "DELETE FROM items" in sql
    assert "NOT EXISTS" in sql and "invoice_lines" in sql
    assert params == {"id": "ITEM-A"}


def test_pg_referenced_item_is_a_conflict():
    pool, conn, cur = _mock_pool()
    cur.rowcount = 0
    cur.fetchone.side_effect = [("ITEM-A",), (3,)]

    with pytest.raises(Conflict) as exc:
        PgCatalogRepo(pool).delete_item("ITEM-A")
    assert "3 invoice line(s)" in exc.value.message


def test_pg_missing_item_is_not_found():
    pool, conn, cur = _mock_pool()
    cur.rowcount = 0
    cur.fetchone.return_value = None

    with pytest.raises(NotFound):
        PgCatalogRepo(pool).delete_item("ITEM-404")


def test_pg_item_referenced_mid_delete_is_a_conflict():
    pool, conn, cur = _mock_pool()
    cur.execute.side_effect = psycopg.errors.ForeignKeyViolation("invoice_lines_item_id_fkey")

    with pytest.raises(Conflict):
        PgCatalogRepo(pool).delete_item("ITEM-A")


def test_pg_category_with_items_is_a_conflict():
    pool, conn, cur = _mock_pool()
    cur.rowcount = 0
    cur.fetchone.side_effect = [("CAT-PIZZA",), (2,)]

    with pytest.raises(Conflict) as exc:
        PgCatalogRepo(pool).delete_category("CAT-PIZZA")
    assert "2 item(s)" in exc.value.message
    (sql, _), _ = cur.execute.call_args_list[0]
    assert "NOT EXISTS" in sql


def test_pg_customer_delete_is_guarded():
    pool, conn, cur = _mock_pool()
    cur.rowcount = 0
    cur.fetchone.side_effect = [("CUST-1",), (1,)]

    with pytest.raises(Conflict):
        PgCustomerRepo(pool).delete_customer("CUST-1")
    (sql, params), _ = cur.execute.call_args_list[0]
    assert "DELETE FROM customers" in sql and "NOT EXISTS" in sql
    assert params == {"id": "CUST-1"}


def test_pg_customer_invoiced_mid_delete_is_a_conflict():
    pool, conn, cur = _mock_pool()
    cur.execute.side_effect = psycopg.errors.ForeignKeyViolation("invoices_customer_id_fkey")

    with pytest.raises(Conflict):
        PgCustomerRepo(pool).delete_customer("CUST-1")
