from typing import Optional, List, Dict, Any

import psycopg
from psycopg import Connection
from psycopg_pool import ConnectionPool

from ..errors import Conflict, NotFound
from ..models.catalog import CatalogItem, Category, CategoryIn, ItemIn

# --- categories -----------------------------------------------------------

def list_categories(conn: Connection) -> List[Dict[str, Any]]:
    with conn.cursor() as cur:
        cur.execute(
            """
            SELECT category_id, category_name, description
            FROM categories
            ORDER BY category_name ASC
            """
        )
        columns = [c[0] for c in cur.description]
        return [dict(zip(columns, row)) for row in cur.fetchall()]


def get_category(conn: Connection, category_id: str) -> Optional[Dict[str, Any]]:
    with conn.cursor() as cur:
        cur.execute(
            "SELECT category_id, category_name, description FROM categories WHERE category_id = %s",
            (category_id,),
        )
        row = cur.fetchone()
        if not row:
            return None
        columns = [c[0] for c in cur.description]
        return dict(zip(columns, row))


# Inserts a category; the id defaults to a random uuid when not supplied.
def insert_category(conn: Connection, payload: dict) -> str:
    with conn.cursor() as cur:
        cur.execute(
            """
            INSERT INTO categories (category_id, category_name, description)
            VALUES (COALESCE(%(category_id)s, gen_random_uuid()::text), %(category_name)s, %(description)s)
            RETURNING category_id
            """,
            payload,
        )
        return cur.fetchone()[0]


def update_category(conn: Connection, category_id: str, payload: dict) -> bool:
    with conn.cursor() as cur:
        cur.execute(
            """
            UPDATE categories SET category_name = %(category_name)s, description = %(description)s
            WHERE category_id = %(id)s
            """,
            {**payload, "id": category_id},
        )
        return cur.rowcount > 0


# Deletes a category only if no item points at it; the check and the delete are one statement.
# False means it is missing or still referenced.
def delete_category(conn: Connection, category_id: str) -> bool:
    with conn.cursor() as cur:
        cur.execute(
            """
            DELETE FROM categories
            WHERE category_id = %(id)s
              AND NOT EXISTS (SELECT 1 FROM items WHERE category_id = %(id)s)
            """,
            {"id": category_id},
        )
        return cur.rowcount > 0


def count_items_in_category(conn: Connection, category_id: str) -> int:
    with conn.cursor() as cur:
        cur.execute("SELECT COUNT(*) FROM items WHERE category_id = %s", (category_id,))
        return cur.fetchone()[0]

# --- items ----------------------------------------------------------------

_ITEM_COLUMNS = """
    i.item_id, i.item_name, i.category_id, i.unit_price, i.description,
    c.category_name
"""

# Lists items with their category name joined in, alphabetical like the menu board.
def list_items(conn: Connection) -> List[Dict[str, Any]]:
    with conn.cursor() as cur:
        cur.execute(
            f"""
            SELECT {_ITEM_COLUMNS}
            FROM items i
            LEFT JOIN categories c ON c.category_id = i.category_id
            ORDER BY i.item_name ASC
            """
        )
        columns = [c[0] for c in cur.description]
        return [dict(zip(columns, row)) for row in cur.fetchall()]


def get_item(conn: Connection, item_id: str) -> Optional[Dict[str, Any]]:
    with conn.cursor() as cur:
        cur.execute(
            f"""
            SELECT {_ITEM_COLUMNS}
            FROM items i
            LEFT JOIN categories c ON c.category_id = i.category_id
            WHERE i.item_id = %s
            """,
            (item_id,),
        )
        row = cur.fetchone()
        if not row:
            return None
        columns = [c[0] for c in cur.description]
        return dict(zip(columns, row))


def insert_item(conn: Connection, payload: dict) -> str:
    with conn.cursor() as cur:
        cur.execute(
            """
            INSERT INTO items (item_id, item_name, category_id, unit_price, description)
            VALUES (COALESCE(%(item_id)s, gen_random_uuid()::text), %(item_name)s,
                    %(category_id)s, %(unit_price)s, %(description)s)
            RETURNING item_id
            """,
            payload,
        )
        return cur.fetchone()[0]


def update_item(conn: Connection, item_id: str, payload: dict) -> bool:
    with conn.cursor() as cur:
        cur.execute(
            """
            UPDATE items
            SET item_name = %(item_name)s, category_id = %(category_id)s,
                unit_price = %(unit_price)s, description = %(description)s
            WHERE item_id = %(id)s
            """,
            {**payload, "id": item_id},
        )
        return cur.rowcount > 0


# Same shape as delete_category, guarded by invoice_lines.
def delete_item(conn: Connection, item_id: str) -> bool:
    with conn.cursor() as cur:
        cur.execute(
            """
            DELETE FROM items
            WHERE item_id = %(id)s
              AND NOT EXISTS (SELECT 1 FROM invoice_lines WHERE item_id = %(id)s)
            """,
            {"id": item_id},
        )
        return cur.rowcount > 0


def count_invoice_lines_for_item(conn: Connection, item_id: str) -> int:
    with conn.cursor() as cur:
        cur.execute("SELECT COUNT(*) FROM invoice_lines WHERE item_id = %s", (item_id,))
        return cur.fetchone()[0]


class PgCatalogRepo:
    """Catalog backed by the `categories` / `items` tables."""

    def __init__(self, pool: ConnectionPool):
        self.pool = pool

    def list_categories(self) -> List[Category]:
        with self.pool.connection() as conn:
            return [Category(**row) for row in list_categories(conn)]

    def get_category(self, category_id: str) -> Optional[Category]:
        with self.pool.connection() as conn:
            row = get_category(conn, category_id)
        return Category(**row) if row else None

    def create_category(self, data: CategoryIn) -> Category:
        try:
            with self.pool.connection() as conn:
                category_id = insert_category(conn, data.model_dump())
        except psycopg.errors.UniqueViolation:
            raise Conflict(f"Category {data.category_id!r} already exists.")
        return Category(**{**data.model_dump(), "category_id": category_id})

    def update_category(self, category_id: str, data: CategoryIn) -> Category:
        with self.pool.connection() as conn:
            if not update_category(conn, category_id, data.model_dump()):
                raise NotFound("category", category_id)
        return Category(**{**data.model_dump(), "category_id": category_id})

    def delete_category(self, category_id: str) -> None:
        try:
            with self.pool.connection() as conn:
                if delete_category(conn, category_id):
                    return
                if get_category(conn, category_id) is None:
                    raise NotFound("category", category_id)
                n = count_items_in_category(conn, category_id)
        except psycopg.errors.ForeignKeyViolation:
            # an item was added after the guard was evaluated
            raise Conflict("Cannot delete category: it still has items.")
        raise Conflict(f"Cannot delete category: it still has {n} item(s).")

    def list_items(self) -> List[CatalogItem]:
        with self.pool.connection() as conn:
            return [CatalogItem(**row) for row in list_items(conn)]

    def get_item(self, item_id: str) -> Optional[CatalogItem]:
        with self.pool.connection() as conn:
            row = get_item(conn, item_id)
        return CatalogItem(**row) if row else None

    def create_item(self, data: ItemIn) -> CatalogItem:
        try:
            with self.pool.connection() as conn:
                if get_category(conn, data.category_id) is None:
                    raise NotFound("category", data.category_id)
                item_id = insert_item(conn, data.model_dump())
                row = get_item(conn, item_id)
        except psycopg.errors.UniqueViolation:
            raise Conflict(f"Item {data.item_id!r} already exists.")
        return CatalogItem(**row)

    def update_item(self, item_id: str, data: ItemIn) -> CatalogItem:
        with self.pool.connection() as conn:
            if get_category(conn, data.category_id) is None:
                raise NotFound("category", data.category_id)
            if not update_item(conn, item_id, data.model_dump()):
                raise NotFound("item", item_id)
            row = get_item(conn, item_id)
        return CatalogItem(**row)

    def delete_item(self, item_id: str) -> None:
        try:
            with self.pool.connection() as conn:
                if delete_item(conn, item_id):
                    return
                if get_item(conn, item_id) is None:
                    raise NotFound("item", item_id)
                n = count_invoice_lines_for_item(conn, item_id)
        except psycopg.errors.ForeignKeyViolation:
            # an invoice line was written after the guard was evaluated
            raise Conflict("Cannot delete item: it appears on invoice lines.")
        raise Conflict(f"Cannot delete item: it appears on {n} invoice line(s).")
