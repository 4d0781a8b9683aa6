import logging
from typing import Optional, List, Dict, Any

import psycopg
from psycopg import Connection
from psycopg_pool import ConnectionPool

from ..errors import NotFound, PersistenceFailure
from ..models.invoice import Invoice, InvoiceLine, InvoiceSummary, PricedInvoice

logger = logging.getLogger(__name__)


def format_invoice_number(prefix: str, seq: int) -> str:
    return f"{prefix}-{seq:06d}"


# Pulls the next value from the invoice number sequence.
# nextval() is atomic across sessions and never hands out the same value twice,
# even when the surrounding transaction rolls back (that only leaves a gap).
def next_invoice_seq(conn: Connection) -> int:
    with conn.cursor() as cur:
        cur.execute("SELECT nextval('invoice_number_seq')")
        return cur.fetchone()[0]


def insert_invoice(conn: Connection, priced: PricedInvoice, seq: int, invoice_number: str) -> str:
    sql = """
    INSERT INTO invoices
      (invoice_id, invoice_seq, invoice_number, customer_id,
       customer_name, customer_phone, customer_email, customer_address,
       invoice_date, tax_rate, sub_total, tax_amount, total_amount)
    VALUES
      (gen_random_uuid(), %(seq)s, %(invoice_number)s, %(customer_id)s,
       %(customer_name)s, %(phone)s, %(email)s, %(address)s,
       %(invoice_date)s, %(tax_rate)s, %(sub_total)s, %(tax_amount)s, %(total_amount)s)
    RETURNING invoice_id;
    """
    with conn.cursor() as cur:
        cur.execute(sql, {
            "seq": seq,
            "invoice_number": invoice_number,
            "customer_id": priced.customer_id,
            "customer_name": priced.customer.customer_name,
            "phone": priced.customer.phone,
            "email": priced.customer.email,
            "address": priced.customer.address,
            "invoice_date": priced.invoice_date,
            "tax_rate": priced.tax_rate,
            "sub_total": priced.sub_total,
            "tax_amount": priced.tax_amount,
            "total_amount": priced.total_amount,
        })
        return str(cur.fetchone()[0])


def insert_lines(conn: Connection, invoice_id: str, lines: List[InvoiceLine]) -> None:
    with conn.cursor() as cur:
        cur.executemany("""
            INSERT INTO invoice_lines
              (invoice_id, line_no, item_id, item_name, item_description,
               quantity, unit_price, line_total)
            VALUES
              (%(invoice_id)s, %(line_no)s, %(item_id)s, %(item_name)s, %(item_description)s,
               %(quantity)s, %(unit_price)s, %(line_total)s)
        """, [{"invoice_id": invoice_id, **ln.model_dump()} for ln in lines])


_HEADER_COLUMNS = """
    invoice_id::text AS invoice_id, invoice_number, customer_id, customer_name,
    customer_phone, customer_email, customer_address,
    invoice_date, tax_rate, sub_total, tax_amount, total_amount
"""

# Lists invoice headers in creation order (oldest first). No line detail.
def list_invoices(conn: Connection, limit: int = 50, offset: int = 0) -> List[Dict[str, Any]]:
    with conn.cursor() as cur:
        cur.execute(
            f"""
            SELECT {_HEADER_COLUMNS}
            FROM invoices
            ORDER BY invoice_seq ASC
            LIMIT %s OFFSET %s
            """,
            (limit, offset),
        )
        columns = [col[0] for col in cur.description]
        return [dict(zip(columns, row)) for row in cur.fetchall()]


# Fetches a single invoice and its line items. Returns None if not found.
def get_invoice_with_lines(conn: Connection, invoice_id: str) -> Optional[Dict[str, Any]]:
    with conn.cursor() as cur:
        cur.execute(
            f"SELECT {_HEADER_COLUMNS} FROM invoices WHERE invoice_id::text = %s",
            (invoice_id,),
        )
        row = cur.fetchone()
        if not row:
            return None
        columns = [c[0] for c in cur.description]
        inv = dict(zip(columns, row))

        cur.execute(
            """
            SELECT line_no, item_id, item_name, item_description, quantity, unit_price, line_total
            FROM invoice_lines WHERE invoice_id::text = %s ORDER BY line_no
            """,
            (invoice_id,),
        )
        line_cols = [c[0] for c in cur.description]
        inv["lines"] = [dict(zip(line_cols, r)) for r in cur.fetchall()]
        return inv


def _invoice_from_row(row: Dict[str, Any]) -> Invoice:
    return Invoice(
        invoice_id=row["invoice_id"],
        invoice_number=row["invoice_number"],
        customer_id=row["customer_id"],
        customer={
            "customer_name": row["customer_name"],
            "phone": row["customer_phone"],
            "email": row["customer_email"],
            "address": row["customer_address"],
        },
        invoice_date=row["invoice_date"],
        tax_rate=row["tax_rate"],
        lines=row["lines"],
        sub_total=row["sub_total"],
        tax_amount=row["tax_amount"],
        total_amount=row["total_amount"],
    )


class PgInvoiceRepo:
    """
    Invoice storage on Postgres.

    Numbering comes from the `invoice_number_seq` sequence; header and lines of
    one invoice are written in a single transaction.
    """

    def __init__(self, pool: ConnectionPool, prefix: str = "INV"):
        self.pool = pool
        self.prefix = prefix

    def next_invoice_number(self) -> str:
        with self.pool.connection() as conn:
            return format_invoice_number(self.prefix, next_invoice_seq(conn))

    def store(self, priced: PricedInvoice) -> Invoice:
        try:
            with self.pool.connection() as conn, conn.transaction():
                seq = next_invoice_seq(conn)
                invoice_number = format_invoice_number(self.prefix, seq)
                invoice_id = insert_invoice(conn, priced, seq, invoice_number)
                insert_lines(conn, invoice_id, priced.lines)
        except psycopg.Error as e:
            logger.exception("Failed to store invoice for customer %s", priced.customer_id)
            raise PersistenceFailure("Could not store the invoice.", cause=e) from e
        return Invoice(**priced.model_dump(), invoice_id=invoice_id, invoice_number=invoice_number)

    save = store

    def find_by_id(self, invoice_id: str) -> Optional[Invoice]:
        with self.pool.connection() as conn:
            row = get_invoice_with_lines(conn, invoice_id)
        return _invoice_from_row(row) if row else None

    def get_by_id(self, invoice_id: str) -> Invoice:
        inv = self.find_by_id(invoice_id)
        if inv is None:
            raise NotFound("invoice", invoice_id)
        return inv

    def find_all(self, limit: int = 50, offset: int = 0) -> List[InvoiceSummary]:
        with self.pool.connection() as conn:
            rows = list_invoices(conn, limit=limit, offset=offset)
        return [InvoiceSummary(**row) for row in rows]

    list_all = find_all
