# models.py
# Data contracts for the contact directory.
# Records, point-in-time snapshots and undo operations. Schema and
# construction-time validation only; stores and sessions own the behaviour.

from datetime import date, datetime
from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from contact_directory.roles import Role


class EntityKind(str, Enum):
    CONTACT = "contact"
    USER = "user"


class OperationKind(str, Enum):
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"


# ---------------------------------------------------------------------------
# Live records (owned by the stores)
# ---------------------------------------------------------------------------


class Contact(BaseModel):
    """A row of the contacts table."""

    contact_id: int = Field(default=0, description="0 until the store assigns an id.")
    first_name: str
    middle_name: str | None = None
    last_name: str
    nickname: str | None = None
    phone_primary: str
    phone_secondary: str | None = None
    email: str
    linkedin_url: str | None = None
    birth_date: date | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def full_name(self) -> str:
        parts = [self.first_name]
        if self.middle_name:
            parts.append(self.middle_name)
        parts.append(self.last_name)
        return " ".join(parts)


class User(BaseModel):
    """A row of the users table."""

    user_id: int = 0
    username: str
    password_hash: str = Field(default="", repr=False)
    name: str
    surname: str
    role: Role
    created_at: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}"


# ---------------------------------------------------------------------------
# Snapshots (immutable, owned copies taken at mutation time)
# ---------------------------------------------------------------------------


class ContactSnapshot(BaseModel):
    """Frozen copy of a contact's field values."""

    model_config = ConfigDict(frozen=True)

    entity_kind: Literal[EntityKind.CONTACT] = EntityKind.CONTACT
    contact_id: int
    first_name: str
    middle_name: str | None = None
    last_name: str
    nickname: str | None = None
    phone_primary: str
    phone_secondary: str | None = None
    email: str
    linkedin_url: str | None = None
    birth_date: date | None = None

    @classmethod
    def of(cls, contact: Contact) -> "ContactSnapshot":
        # model_dump builds a fresh dict; nothing here aliases the live record.
        return cls.model_validate(contact.model_dump(exclude={"created_at", "updated_at"}))

    @property
    def record_id(self) -> int:
        return self.contact_id

    def to_record(self) -> Contact:
        return Contact.model_validate(self.model_dump(exclude={"entity_kind"}))


class UserSnapshot(BaseModel):
    """Frozen copy of a user's profile. The credential hash is never captured."""

    model_config = ConfigDict(frozen=True)

    entity_kind: Literal[EntityKind.USER] = EntityKind.USER
    user_id: int
    username: str
    name: str
    surname: str
    role: Role

    @classmethod
    def of(cls, user: User) -> "UserSnapshot":
        return cls.model_validate(
            user.model_dump(exclude={"password_hash", "created_at"})
        )

    @property
    def record_id(self) -> int:
        return self.user_id

    def to_record(self) -> User:
        return User.model_validate(self.model_dump(exclude={"entity_kind"}))


Snapshot = Union[ContactSnapshot, UserSnapshot]


def snapshot_of(record: Contact | User) -> Snapshot:
    if isinstance(record, Contact):
        return ContactSnapshot.of(record)
    return UserSnapshot.of(record)


# ---------------------------------------------------------------------------
# Undo operations
# ---------------------------------------------------------------------------


class Operation(BaseModel):
    """Immutable ledger entry describing one mutation and how to reverse it."""

    model_config = ConfigDict(frozen=True)

    kind: OperationKind
    entity_kind: EntityKind
    affected_id: int
    snapshot: Snapshot | None = None
    description: str
    recorded_at: datetime = Field(default_factory=datetime.now)

    @model_validator(mode="after")
    def _check_snapshot(self) -> "Operation":
        if self.kind is OperationKind.ADD:
            if self.snapshot is not None:
                raise ValueError("ADD operations carry no snapshot.")
            return self
        if self.snapshot is None:
            raise ValueError(f"{self.kind.value.upper()} operations require a snapshot.")
        if self.snapshot.entity_kind != self.entity_kind:
            raise ValueError(
                f"Snapshot is a {self.snapshot.entity_kind.value}, "
                f"operation targets a {self.entity_kind.value}."
            )
        return self

    @classmethod
    def added(cls, entity_kind: EntityKind, new_id: int, description: str) -> "Operation":
        return cls(
            kind=OperationKind.ADD,
            entity_kind=entity_kind,
            affected_id=new_id,
            description=description,
        )

    @classmethod
    def updated(cls, previous: Contact | User, description: str) -> "Operation":
        """Record an update; `previous` is the pre-image and is copied immediately."""
        snapshot = snapshot_of(previous)
        return cls(
            kind=OperationKind.UPDATE,
            entity_kind=snapshot.entity_kind,
            affected_id=snapshot.record_id,
            snapshot=snapshot,
            description=description,
        )

    @classmethod
    def deleted(cls, removed: Contact | User, description: str) -> "Operation":
        snapshot = snapshot_of(removed)
        return cls(
            kind=OperationKind.DELETE,
            entity_kind=snapshot.entity_kind,
            affected_id=snapshot.record_id,
            snapshot=snapshot,
            description=description,
        )


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


class NameCount(BaseModel):
    name: str
    count: int


class ContactStatistics(BaseModel):
    total_contacts: int = 0
    with_linkedin: int = 0
    without_linkedin: int = 0
    with_secondary_phone: int = 0
    common_first_names: list[NameCount] = Field(default_factory=list)
    common_last_names: list[NameCount] = Field(default_factory=list)
    youngest_contact: str | None = None
    youngest_birth_date: date | None = None
    oldest_contact: str | None = None
    oldest_birth_date: date | None = None
    average_age: float | None = None
    birth_months: dict[int, int] = Field(default_factory=dict)
