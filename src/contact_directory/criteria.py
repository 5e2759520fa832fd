# criteria.py
# Composable search criteria.
#
# A CriteriaBuilder accumulates (field, value, match type) entries under one
# logical connective. build() freezes the current state into a CriteriaSet,
# so a set already handed to the compiler never changes behind its back.

from enum import Enum

from pydantic import BaseModel, ConfigDict

from contact_directory.fields import Field, FieldCatalog


class MatchType(str, Enum):
    EXACT = "exact"
    PARTIAL = "partial"


class Connective(str, Enum):
    AND = "AND"
    OR = "OR"

    @classmethod
    def parse(cls, raw: str) -> "Connective":
        try:
            return cls(raw.strip().upper())
        except ValueError:
            raise ValueError(f"Connective must be AND or OR, got {raw!r}.") from None


class Criterion(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: Field
    value: str
    match_type: MatchType

    def describe(self) -> str:
        return f"{self.field.name} {self.match_type.value.upper()} '{self.value}'"


class CriteriaSet(BaseModel):
    """Immutable, ordered criteria joined by a single connective."""

    model_config = ConfigDict(frozen=True)

    criteria: tuple[Criterion, ...] = ()
    connective: Connective = Connective.AND

    @property
    def matches_all(self) -> bool:
        return not self.criteria

    def __len__(self) -> int:
        return len(self.criteria)

    def describe(self) -> str:
        if not self.criteria:
            return "No search criteria"
        joiner = f" {self.connective.value} "
        return "Search: " + joiner.join(c.describe() for c in self.criteria)


class CriteriaBuilder:
    """
    Mutable accumulator for a CriteriaSet.

    Values are stored as given, empty strings included. Rejecting blank input
    is the prompt layer's job, as is capping how many criteria an operator may
    add.

    Example:
        criteria = (
            CriteriaBuilder(CONTACT_FIELDS)
            .add_partial("first_name", "Jo")
            .add_exact("last_name", "Smith")
            .build()
        )
    """

    def __init__(self, catalog: FieldCatalog, connective: Connective = Connective.AND) -> None:
        self._catalog = catalog
        self._criteria: list[Criterion] = []
        self._connective = connective

    @property
    def catalog(self) -> FieldCatalog:
        return self._catalog

    @property
    def connective(self) -> Connective:
        return self._connective

    def add_criterion(self, field: Field | str, value: str, match_type: MatchType) -> "CriteriaBuilder":
        resolved = self._catalog.resolve(field)
        self._criteria.append(Criterion(field=resolved, value=value, match_type=match_type))
        return self

    def add_exact(self, field: Field | str, value: str) -> "CriteriaBuilder":
        return self.add_criterion(field, value, MatchType.EXACT)

    def add_partial(self, field: Field | str, value: str) -> "CriteriaBuilder":
        return self.add_criterion(field, value, MatchType.PARTIAL)

    def set_connective(self, connective: Connective | str) -> "CriteriaBuilder":
        if isinstance(connective, str) and not isinstance(connective, Connective):
            connective = Connective.parse(connective)
        self._connective = connective
        return self

    def has_criteria(self) -> bool:
        return bool(self._criteria)

    def count(self) -> int:
        return len(self._criteria)

    def clear(self) -> None:
        self._criteria.clear()

    def build(self) -> CriteriaSet:
        return CriteriaSet(criteria=tuple(self._criteria), connective=self._connective)
