from .migrations import apply_migrations, applied_migrations, connect_db
from .repository import OrderRepository
from .store import OrderStore, SqliteOrderStore

__all__ = [
    "connect_db",
    "apply_migrations",
    "applied_migrations",
    "OrderRepository",
    "OrderStore",
    "SqliteOrderStore",
]
