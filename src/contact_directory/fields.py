# fields.py
# Field catalog: the closed allow-list of searchable and sortable columns.
#
# Guarantees: no operator-supplied string ever reaches a query template.
# Names are resolved here into Field objects; everything downstream
# (criteria, compiler, comparator) accepts Field only.

from enum import Enum
from typing import Any, Iterator

from pydantic import BaseModel, ConfigDict

from contact_directory.errors import UnknownFieldError
from contact_directory.models import EntityKind


class ValueKind(str, Enum):
    """How values of a field compare to one another."""

    TEXT = "text"
    INTEGER = "integer"
    DATE = "date"


class Field(BaseModel):
    """A resolved catalog entry. Obtain these from FieldCatalog.resolve()."""

    model_config = ConfigDict(frozen=True)

    entity_kind: EntityKind
    name: str
    column: str
    kind: ValueKind
    label: str


class FieldCatalog:
    """
    Fixed mapping of logical field names to storage columns for one entity kind.

    Lookup is case-insensitive and tolerates surrounding whitespace; anything
    not in the table raises UnknownFieldError.
    """

    def __init__(self, entity_kind: EntityKind, fields: list[Field]) -> None:
        self._entity_kind = entity_kind
        self._fields: dict[str, Field] = {}
        for field in fields:
            if field.entity_kind != entity_kind:
                raise ValueError(f"Field {field.name!r} belongs to {field.entity_kind.value}.")
            self._fields[field.name] = field

    @property
    def entity_kind(self) -> EntityKind:
        return self._entity_kind

    def resolve(self, name: str | Field) -> Field:
        if isinstance(name, Field):
            if self._fields.get(name.name) != name:
                raise UnknownFieldError(
                    f"Field {name.name!r} is not part of the {self._entity_kind.value} catalog."
                )
            return name

        key = name.strip().lower()
        try:
            return self._fields[key]
        except KeyError:
            raise UnknownFieldError(
                f"Unknown {self._entity_kind.value} field: {name!r}. "
                f"Allowed: {', '.join(self._fields)}."
            ) from None

    def value_of(self, record: Any, field: Field) -> Any:
        """Read a field value off a record. Missing values come back as None."""
        self.resolve(field)
        return getattr(record, field.name, None)

    def names(self) -> list[str]:
        return list(self._fields)

    def __iter__(self) -> Iterator[Field]:
        return iter(self._fields.values())

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, name: object) -> bool:
        if isinstance(name, Field):
            return self._fields.get(name.name) == name
        return isinstance(name, str) and name.strip().lower() in self._fields


def _contact(name: str, kind: ValueKind, label: str) -> Field:
    return Field(entity_kind=EntityKind.CONTACT, name=name, column=name, kind=kind, label=label)


def _user(name: str, kind: ValueKind, label: str) -> Field:
    return Field(entity_kind=EntityKind.USER, name=name, column=name, kind=kind, label=label)


CONTACT_FIELDS = FieldCatalog(
    EntityKind.CONTACT,
    [
        _contact("contact_id", ValueKind.INTEGER, "Contact ID"),
        _contact("first_name", ValueKind.TEXT, "First Name"),
        _contact("middle_name", ValueKind.TEXT, "Middle Name"),
        _contact("last_name", ValueKind.TEXT, "Last Name"),
        _contact("nickname", ValueKind.TEXT, "Nickname"),
        _contact("phone_primary", ValueKind.TEXT, "Phone (Primary)"),
        _contact("phone_secondary", ValueKind.TEXT, "Phone (Secondary)"),
        _contact("email", ValueKind.TEXT, "Email"),
        _contact("linkedin_url", ValueKind.TEXT, "LinkedIn URL"),
        _contact("birth_date", ValueKind.DATE, "Birth Date"),
    ],
)

USER_FIELDS = FieldCatalog(
    EntityKind.USER,
    [
        _user("user_id", ValueKind.INTEGER, "User ID"),
        _user("username", ValueKind.TEXT, "Username"),
        _user("name", ValueKind.TEXT, "Name"),
        _user("surname", ValueKind.TEXT, "Surname"),
        _user("role", ValueKind.TEXT, "Role"),
    ],
)
