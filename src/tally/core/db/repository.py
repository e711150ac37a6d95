from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from dateutil import parser as dt_parser

from tally.core.models import Address, Item, Order, OrderContent, OrderStatus, PaymentStatus

from .migrations import apply_migrations, connect_db


def _to_iso(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def _from_db_time(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = dt_parser.parse(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class OrderRepository:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.connection = connect_db(db_path)

    def close(self) -> None:
        self.connection.close()

    def __enter__(self) -> OrderRepository:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def migrate(self) -> list[str]:
        return apply_migrations(self.connection)

    @staticmethod
    def _row_to_order(row: sqlite3.Row) -> Order:
        return Order(
            id=row["id"],
            status=OrderStatus(row["status"]),
            payment_status=PaymentStatus(row["payment_status"]),
            user_id=row["user_id"],
            firstname=row["firstname"],
            lastname=row["lastname"],
            email=row["email"],
            phone=row["phone"],
            company=row["company"],
            comment=row["comment"],
            paid_total=row["paid_total"],
            refunded_total=row["refunded_total"],
            total=row["total"],
            created_at=_from_db_time(row["created_at"]),
            updated_at=_from_db_time(row["updated_at"]),
            deleted_at=_from_db_time(row["deleted_at"]),
        )

    @staticmethod
    def _row_to_item(row: sqlite3.Row) -> Item:
        return Item(
            id=row["id"],
            order_id=row["order_id"],
            product_id=row["product_id"],
            quantity=row["quantity"],
            tax_code=row["tax_code"],
        )

    @staticmethod
    def _row_to_address(row: sqlite3.Row) -> Address:
        return Address(
            id=row["id"],
            order_id=row["order_id"],
            shipping=bool(row["shipping"]),
            street=row["street"],
            street2=row["street2"],
            city=row["city"],
            state=row["state"],
            postal_code=row["postal_code"],
            country=row["country"],
        )

    def _insert_address(self, order_id: int, address: Address) -> None:
        self.connection.execute(
            """
            INSERT INTO addresses (order_id, shipping, street, street2, city, state, postal_code, country)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                order_id,
                int(address.shipping),
                address.street,
                address.street2,
                address.city,
                address.state,
                address.postal_code,
                address.country,
            ),
        )

    def create_order(self, content: OrderContent) -> int:
        """Persist a submitted checkout (order, items, addresses) in one transaction."""
        order = content.order
        now = _to_iso(datetime.now(timezone.utc))
        with self.connection:
            cursor = self.connection.execute(
                """
                INSERT INTO orders (
                    status, payment_status, user_id, firstname, lastname, email, phone,
                    company, comment, paid_total, refunded_total, total, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    order.status.value,
                    order.payment_status.value,
                    order.user_id,
                    order.firstname,
                    order.lastname,
                    order.email,
                    order.phone,
                    order.company,
                    order.comment,
                    order.paid_total,
                    order.refunded_total,
                    order.total,
                    _to_iso(order.created_at) or now,
                    now,
                ),
            )
            order_id = int(cursor.lastrowid)

            self.connection.executemany(
                "INSERT INTO items (order_id, product_id, quantity, tax_code) VALUES (?, ?, ?, ?)",
                [(order_id, item.product_id, item.quantity, item.tax_code) for item in content.items],
            )
            for address in (content.shipping_address, content.billing_address):
                if address is not None:
                    self._insert_address(order_id, address)

        return order_id

    def fetch_order(self, order_id: int, include_deleted: bool = False) -> Order | None:
        query = "SELECT * FROM orders WHERE id = ?"
        if not include_deleted:
            query += " AND deleted_at IS NULL"
        row = self.connection.execute(query, (order_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_order(row)

    def fetch_items(self, order_id: int) -> list[Item]:
        rows = self.connection.execute(
            "SELECT * FROM items WHERE order_id = ? ORDER BY id",
            (order_id,),
        ).fetchall()
        return [self._row_to_item(row) for row in rows]

    def fetch_address(self, order_id: int, shipping: bool) -> Address | None:
        row = self.connection.execute(
            "SELECT * FROM addresses WHERE order_id = ? AND shipping = ?",
            (order_id, int(shipping)),
        ).fetchone()
        if row is None:
            return None
        return self._row_to_address(row)

    def fetch_order_ids(self) -> list[int]:
        rows = self.connection.execute("SELECT id FROM orders WHERE deleted_at IS NULL ORDER BY id").fetchall()
        return [int(row["id"]) for row in rows]

    def set_cached_total(self, order_id: int, total: int | None) -> None:
        with self.connection:
            self.connection.execute(
                "UPDATE orders SET total = ?, updated_at = ? WHERE id = ?",
                (total, _to_iso(datetime.now(timezone.utc)), order_id),
            )

    def soft_delete_order(self, order_id: int) -> bool:
        now = _to_iso(datetime.now(timezone.utc))
        with self.connection:
            cursor = self.connection.execute(
                "UPDATE orders SET deleted_at = ?, updated_at = ? WHERE id = ? AND deleted_at IS NULL",
                (now, now, order_id),
            )
        return cursor.rowcount > 0

    def fetch_counts(self) -> dict[str, Any]:
        counts: dict[str, Any] = {}
        for table in ["orders", "items", "addresses"]:
            row = self.connection.execute(f"SELECT COUNT(*) AS cnt FROM {table}").fetchone()
            counts[table] = int(row["cnt"])
        return counts
