"""
auth/store.py -- SQLAlchemy Core persistence layer for stored identities.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Route, flow and CLI code never touch SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

DB path: auth/tokengate_auth.db unless Settings.auth_db_url says otherwise.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine

from auth.models import User

DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'tokengate_auth.db'}"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("hashed_password", Text),
    Column("created_at", String(32), nullable=False),
    Column("is_active", Integer, nullable=False, server_default="1"),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore()
        store.create_user(User(username="alice", hashed_password=hash_password("secret")))
        user = store.find_by_username("alice")
        store.close()
    """

    def __init__(self, db_url: str = DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def has_users(self) -> bool:
        """Return True if at least one user record exists."""
        with self.engine.connect() as conn:
            result = conn.execute(text("SELECT COUNT(*) FROM users")).scalar()
        return (result or 0) > 0

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    username=user.username,
                    hashed_password=user.hashed_password,
                    created_at=_now_iso(),
                    is_active=1 if user.is_active else 0,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def find_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def set_active(self, user_id: int, is_active: bool) -> bool:
        """Enable or disable a user. Returns False if user_id was not found."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update().where(_users.c.id == user_id).values(is_active=1 if is_active else 0)
            )
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        """Dispose of the engine's connection pool."""
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
        is_active=bool(row.is_active),
    )
