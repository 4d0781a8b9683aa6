from typing import Optional, List, Dict, Any

import psycopg
from psycopg import Connection
from psycopg_pool import ConnectionPool

from ..errors import Conflict, NotFound
from ..models.customer import Customer, CustomerIn

_COLUMNS = "customer_id, customer_name, phone, email, address"

def list_customers(conn: Connection) -> List[Dict[str, Any]]:
    with conn.cursor() as cur:
        cur.execute(f"SELECT {_COLUMNS} FROM customers ORDER BY customer_name ASC")
        columns = [c[0] for c in cur.description]
        return [dict(zip(columns, row)) for row in cur.fetchall()]


# Fetches a single customer by ID. Returns None if not found.
def get_customer(conn: Connection, customer_id: str) -> Optional[Dict[str, Any]]:
    with conn.cursor() as cur:
        cur.execute(f"SELECT {_COLUMNS} FROM customers WHERE customer_id = %s", (customer_id,))
        row = cur.fetchone()
        if not row:
            return None
        columns = [c[0] for c in cur.description]
        return dict(zip(columns, row))


def insert_customer(conn: Connection, payload: dict) -> str:
    with conn.cursor() as cur:
        cur.execute(
            """
            INSERT INTO customers (customer_id, customer_name, phone, email, address)
            VALUES (COALESCE(%(customer_id)s, gen_random_uuid()::text), %(customer_name)s,
                    %(phone)s, %(email)s, %(address)s)
            RETURNING customer_id
            """,
            payload,
        )
        return cur.fetchone()[0]


def update_customer(conn: Connection, customer_id: str, payload: dict) -> bool:
    with conn.cursor() as cur:
        cur.execute(
            """
            UPDATE customers
            SET customer_name = %(customer_name)s, phone = %(phone)s,
                email = %(email)s, address = %(address)s
            WHERE customer_id = %(id)s
            """,
            {**payload, "id": customer_id},
        )
        return cur.rowcount > 0


# Deletes a customer only if they have no invoices; check and delete are one statement.
# False means the customer is missing or still referenced.
def delete_customer(conn: Connection, customer_id: str) -> bool:
    with conn.cursor() as cur:
        cur.execute(
            """
            DELETE FROM customers
            WHERE customer_id = %(id)s
              AND NOT EXISTS (SELECT 1 FROM invoices WHERE customer_id = %(id)s)
            """,
            {"id": customer_id},
        )
        return cur.rowcount > 0


def count_invoices_for_customer(conn: Connection, customer_id: str) -> int:
    with conn.cursor() as cur:
        cur.execute("SELECT COUNT(*) FROM invoices WHERE customer_id = %s", (customer_id,))
        return cur.fetchone()[0]


class PgCustomerRepo:
    def __init__(self, pool: ConnectionPool):
        self.pool = pool

    def list_customers(self) -> List[Customer]:
        with self.pool.connection() as conn:
            return [Customer(**row) for row in list_customers(conn)]

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        with self.pool.connection() as conn:
            row = get_customer(conn, customer_id)
        return Customer(**row) if row else None

    def create_customer(self, data: CustomerIn) -> Customer:
        try:
            with self.pool.connection() as conn:
                customer_id = insert_customer(conn, data.model_dump())
        except psycopg.errors.UniqueViolation:
            raise Conflict(f"Customer {data.customer_id!r} already exists.")
        return Customer(**{**data.model_dump(), "customer_id": customer_id})

    def update_customer(self, customer_id: str, data: CustomerIn) -> Customer:
        with self.pool.connection() as conn:
            if not update_customer(conn, customer_id, data.model_dump()):
                raise NotFound("customer", customer_id)
        return Customer(**{**data.model_dump(), "customer_id": customer_id})

    def delete_customer(self, customer_id: str) -> None:
        try:
            with self.pool.connection() as conn:
                if delete_customer(conn, customer_id):
                    return
                if get_customer(conn, customer_id) is None:
                    raise NotFound("customer", customer_id)
                n = count_invoices_for_customer(conn, customer_id)
        except psycopg.errors.ForeignKeyViolation:
            # an invoice was written after the guard was evaluated
            raise Conflict("Cannot delete customer: they have invoices.")
        raise Conflict(f"Cannot delete customer: they have {n} invoice(s).")
