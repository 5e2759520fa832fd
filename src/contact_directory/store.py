# store.py
# SQLite-backed record stores for contacts and users.
#
# Every statement is parameterized. The only dynamic SQL is the WHERE
# predicate handed over by the QueryCompiler, which is built from catalog
# column names alone. sqlite3 errors surface as StoreError.

import sqlite3
from collections import Counter
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Generic, Iterable, TypeVar

from contact_directory.errors import InvariantViolation, StoreError
from contact_directory.models import Contact, ContactStatistics, NameCount, User
from contact_directory.query import MATCH_ALL, CompiledQuery, MatchAll
from contact_directory.roles import Role

SCHEMA = """\
CREATE TABLE IF NOT EXISTS contacts (
    contact_id      INTEGER PRIMARY KEY AUTOINCREMENT,
    first_name      TEXT NOT NULL,
    middle_name     TEXT,
    last_name       TEXT NOT NULL,
    nickname        TEXT,
    phone_primary   TEXT NOT NULL,
    phone_secondary TEXT,
    email           TEXT NOT NULL UNIQUE,
    linkedin_url    TEXT,
    birth_date      TEXT,
    created_at      TEXT,
    updated_at      TEXT
);

CREATE TABLE IF NOT EXISTS users (
    user_id         INTEGER PRIMARY KEY AUTOINCREMENT,
    username        TEXT NOT NULL UNIQUE,
    password_hash   TEXT NOT NULL,
    name            TEXT NOT NULL,
    surname         TEXT NOT NULL,
    role            TEXT NOT NULL,
    created_at      TEXT
);
"""

R = TypeVar("R", Contact, User)


def _now() -> str:
    return datetime.now().isoformat(sep=" ", timespec="seconds")


def _to_column(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat(sep=" ", timespec="seconds")
    if isinstance(value, date):
        return value.isoformat()
    return value


# ---------------------------------------------------------------------------
# Connection
# ---------------------------------------------------------------------------


class Database:
    """
    Owns the sqlite3 connection and the schema.

    Pass ":memory:" for a throwaway database.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = str(path)
        if self.path != ":memory:":
            Path(self.path).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(self.path)
            self._conn.row_factory = sqlite3.Row
            self._conn.executescript(SCHEMA)
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to open database at {self.path}: {exc}") from exc

    def execute(self, sql: str, params: Iterable[Any] = ()) -> sqlite3.Cursor:
        """Run one write statement in its own transaction."""
        try:
            with self._conn:
                return self._conn.execute(sql, tuple(params))
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc

    def query(self, sql: str, params: Iterable[Any] = ()) -> list[sqlite3.Row]:
        try:
            return self._conn.execute(sql, tuple(params)).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc

    def close(self) -> None:
        self._conn.close()


# ---------------------------------------------------------------------------
# Generic store
# ---------------------------------------------------------------------------


class RecordStore(Generic[R]):
    """
    get_all / get_by_id / insert / replace / delete_by_id over one table.

    Subclasses declare the table, the id and unique-key columns, the record
    model, and which columns insert() and replace() write.
    """

    table: str
    id_column: str
    unique_column: str
    model: type
    insert_columns: tuple[str, ...]
    replace_columns: tuple[str, ...]

    def __init__(self, db: Database) -> None:
        self._db = db

    def _row_to_record(self, row: sqlite3.Row) -> R:
        return self.model.model_validate(dict(row))

    def _values(self, record: R, columns: tuple[str, ...]) -> list[Any]:
        return [_to_column(getattr(record, column)) for column in columns]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_all(self) -> list[R]:
        rows = self._db.query(f"SELECT * FROM {self.table} ORDER BY {self.id_column}")
        return [self._row_to_record(row) for row in rows]

    def get_by_id(self, record_id: int) -> R | None:
        rows = self._db.query(
            f"SELECT * FROM {self.table} WHERE {self.id_column} = ?", (record_id,)
        )
        return self._row_to_record(rows[0]) if rows else None

    def search(self, compiled: CompiledQuery | MatchAll) -> list[R]:
        """Run a compiled predicate. MATCH_ALL returns every row."""
        if compiled is MATCH_ALL:
            return self.get_all()
        if not isinstance(compiled, CompiledQuery):
            raise InvariantViolation(f"Expected a CompiledQuery, got {type(compiled).__name__}.")
        if compiled.placeholder_count() != len(compiled.parameters):
            raise InvariantViolation("Placeholder and parameter counts differ.")
        rows = self._db.query(
            f"SELECT * FROM {self.table} WHERE {compiled.predicate} ORDER BY {self.id_column}",
            compiled.parameters,
        )
        return [self._row_to_record(row) for row in rows]

    def count(self) -> int:
        return self._db.query(f"SELECT COUNT(*) FROM {self.table}")[0][0]

    def exists_by_unique_key(self, key: str, exclude_id: int | None = None) -> bool:
        sql = f"SELECT COUNT(*) FROM {self.table} WHERE {self.unique_column} = ?"
        params: list[Any] = [key]
        if exclude_id is not None:
            sql += f" AND {self.id_column} != ?"
            params.append(exclude_id)
        return self._db.query(sql, params)[0][0] > 0

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, record: R) -> int:
        """Insert `record` ignoring its id; returns the id the database assigned."""
        columns = ", ".join(self.insert_columns)
        marks = ", ".join("?" for _ in self.insert_columns)
        cursor = self._db.execute(
            f"INSERT INTO {self.table} ({columns}) VALUES ({marks})",
            self._values(record, self.insert_columns),
        )
        if cursor.lastrowid is None:
            raise StoreError(f"Insert into {self.table} returned no id.")
        return cursor.lastrowid

    def replace(self, record: R) -> bool:
        """Overwrite the row whose id matches `record`. False when no such row."""
        assignments = ", ".join(f"{column} = ?" for column in self.replace_columns)
        params = self._values(record, self.replace_columns)
        params.append(getattr(record, self.id_column))
        cursor = self._db.execute(
            f"UPDATE {self.table} SET {assignments} WHERE {self.id_column} = ?", params
        )
        return cursor.rowcount > 0

    def delete_by_id(self, record_id: int) -> bool:
        cursor = self._db.execute(
            f"DELETE FROM {self.table} WHERE {self.id_column} = ?", (record_id,)
        )
        return cursor.rowcount > 0

    def delete_many(self, record_ids: Iterable[int]) -> int:
        return sum(1 for record_id in record_ids if self.delete_by_id(record_id))


# ---------------------------------------------------------------------------
# Contacts
# ---------------------------------------------------------------------------


_OPTIONAL_CONTACT_TEXT = ("middle_name", "nickname", "phone_secondary", "linkedin_url")


class ContactStore(RecordStore[Contact]):
    table = "contacts"
    id_column = "contact_id"
    unique_column = "email"
    model = Contact
    insert_columns = (
        "first_name",
        "middle_name",
        "last_name",
        "nickname",
        "phone_primary",
        "phone_secondary",
        "email",
        "linkedin_url",
        "birth_date",
        "created_at",
        "updated_at",
    )
    replace_columns = (
        "first_name",
        "middle_name",
        "last_name",
        "nickname",
        "phone_primary",
        "phone_secondary",
        "email",
        "linkedin_url",
        "birth_date",
        "updated_at",
    )

    def _values(self, record: Contact, columns: tuple[str, ...]) -> list[Any]:
        values = []
        stamp = _now()
        for column in columns:
            if column == "updated_at" or (column == "created_at" and record.created_at is None):
                values.append(stamp)
                continue
            value = getattr(record, column)
            if column in _OPTIONAL_CONTACT_TEXT and value is not None and not value.strip():
                value = None
            values.append(_to_column(value))
        return values

    def email_exists(self, email: str, exclude_id: int | None = None) -> bool:
        return self.exists_by_unique_key(email, exclude_id)

    def statistics(self, today: date | None = None) -> ContactStatistics:
        """Directory-wide figures, computed over every row."""
        contacts = self.get_all()
        today = today or date.today()
        stats = ContactStatistics(total_contacts=len(contacts))
        if not contacts:
            return stats

        stats.with_linkedin = sum(1 for c in contacts if c.linkedin_url)
        stats.without_linkedin = stats.total_contacts - stats.with_linkedin
        stats.with_secondary_phone = sum(1 for c in contacts if c.phone_secondary)
        stats.common_first_names = [
            NameCount(name=name, count=count)
            for name, count in Counter(c.first_name for c in contacts).most_common(5)
        ]
        stats.common_last_names = [
            NameCount(name=name, count=count)
            for name, count in Counter(c.last_name for c in contacts).most_common(5)
        ]

        dated = [c for c in contacts if c.birth_date is not None]
        if dated:
            youngest = max(dated, key=lambda c: c.birth_date)
            oldest = min(dated, key=lambda c: c.birth_date)
            stats.youngest_contact = f"{youngest.first_name} {youngest.last_name}"
            stats.youngest_birth_date = youngest.birth_date
            stats.oldest_contact = f"{oldest.first_name} {oldest.last_name}"
            stats.oldest_birth_date = oldest.birth_date
            ages = [_age(c.birth_date, today) for c in dated]
            stats.average_age = round(sum(ages) / len(ages), 1)
            months = Counter(c.birth_date.month for c in dated)
            stats.birth_months = dict(months.most_common())
        return stats


def _age(born: date, today: date) -> int:
    """Whole years between `born` and `today`."""
    years = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        years -= 1
    return years


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserStore(RecordStore[User]):
    table = "users"
    id_column = "user_id"
    unique_column = "username"
    model = User
    insert_columns = ("username", "password_hash", "name", "surname", "role", "created_at")
    # Credentials change only through change_password().
    replace_columns = ("username", "name", "surname", "role")

    def _values(self, record: User, columns: tuple[str, ...]) -> list[Any]:
        values = super()._values(record, columns)
        if "created_at" in columns and record.created_at is None:
            values[columns.index("created_at")] = _now()
        return values

    def get_by_username(self, username: str) -> User | None:
        rows = self._db.query("SELECT * FROM users WHERE username = ?", (username,))
        return self._row_to_record(rows[0]) if rows else None

    def get_by_role(self, role: Role) -> list[User]:
        rows = self._db.query(
            "SELECT * FROM users WHERE role = ? ORDER BY user_id", (role.value,)
        )
        return [self._row_to_record(row) for row in rows]

    def change_password(self, user_id: int, password_hash: str) -> bool:
        cursor = self._db.execute(
            "UPDATE users SET password_hash = ? WHERE user_id = ?", (password_hash, user_id)
        )
        return cursor.rowcount > 0

    def username_exists(self, username: str, exclude_id: int | None = None) -> bool:
        return self.exists_by_unique_key(username, exclude_id)
