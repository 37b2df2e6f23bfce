"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts.

Pattern: Repository + Data Mapper. AccountStore is the repository;
_row_to_account is the mapper. Route and service code never touches SQL
directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(email) is declared on the table. exists() is only a fast path for a
  friendly error -- two concurrent registrations can both pass it, and the
  constraint is what actually rejects the second insert. IntegrityError is
  translated to EmailInUseError here so callers never import sqlalchemy.

  Emails reach this layer already normalized (auth.validation.normalize_email).

DB path: auth/accounts.db by default (DATABASE_URL overrides).

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.models import Account
from core.errors import EmailInUseError

logger = logging.getLogger("accountsvc.store")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'accounts.db'}"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_accounts = Table(
    "accounts",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100), nullable=False),
    Column("email", String(254), nullable=False, unique=True),  # normalized
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32)),  # NULL until first update
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block on writers.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountStore:
    """Repository for Account entities.

    Usage:
        store = AccountStore()
        account = store.create(Account(first_name="Ann", last_name="Lee",
                                       email="ann.lee@example.com",
                                       hashed_password=hash_password("Passw0rd")))
        found = store.get_by_email("ann.lee@example.com")
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def exists(self, email: str) -> bool:
        """Return True if an account already uses this (normalized) email."""
        with self.engine.connect() as conn:
            row = conn.execute(select(_accounts.c.id).where(_accounts.c.email == email).limit(1)).fetchone()
        return row is not None

    def get_by_email(self, email: str) -> Account | None:
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.email == email)).fetchone()
        return _row_to_account(row) if row is not None else None

    def get_by_id(self, account_id: int) -> Account | None:
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.id == account_id)).fetchone()
        return _row_to_account(row) if row is not None else None

    def list_accounts(self) -> list[Account]:
        """Return all accounts ordered by id."""
        with self.engine.connect() as conn:
            rows = conn.execute(_accounts.select().order_by(_accounts.c.id)).fetchall()
        return [_row_to_account(r) for r in rows]

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("Database ping failed")
            return False
        return True

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, account: Account) -> Account:
        """Insert a new account and return it with id and created_at filled in.

        Raises EmailInUseError if the UNIQUE(email) constraint fires.
        """
        created_at = _now_iso()
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _accounts.insert().values(
                        first_name=account.first_name,
                        last_name=account.last_name,
                        email=account.email,
                        hashed_password=account.hashed_password,
                        created_at=created_at,
                        updated_at=None,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            raise EmailInUseError() from exc
        return Account(
            id=result.inserted_primary_key[0],
            first_name=account.first_name,
            last_name=account.last_name,
            email=account.email,
            hashed_password=account.hashed_password,
            created_at=created_at,
            updated_at=None,
        )

    def update(self, account_id: int, first_name: str, last_name: str, email: str) -> Account | None:
        """Replace the mutable profile fields and stamp updated_at.

        Returns None (and writes nothing) when account_id does not exist.
        Raises EmailInUseError if email belongs to a different account.
        """
        with self.engine.connect() as conn:
            owner = conn.execute(select(_accounts.c.id).where(_accounts.c.email == email)).fetchone()
        if owner is not None and owner.id != account_id:
            raise EmailInUseError()

        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _accounts.update()
                    .where(_accounts.c.id == account_id)
                    .values(first_name=first_name, last_name=last_name, email=email, updated_at=_now_iso())
                )
                conn.commit()
        except IntegrityError as exc:
            raise EmailInUseError() from exc
        if result.rowcount == 0:
            return None
        return self.get_by_id(account_id)

    def delete(self, account_id: int) -> bool:
        """Permanently delete an account. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_accounts.delete().where(_accounts.c.id == account_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(row) -> Account:
    return Account(
        id=row.id,
        first_name=row.first_name,
        last_name=row.last_name,
        email=row.email,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
