# query.py
# Compiles a CriteriaSet into a parameterized WHERE predicate.
#
# Guarantees: criterion values only ever travel in the parameter vector.
# The template is assembled exclusively from catalog column names, the
# operators '=' / 'LIKE', positional '?' placeholders and the connective.

from pydantic import BaseModel, ConfigDict

from contact_directory.criteria import CriteriaSet, Criterion, MatchType
from contact_directory.errors import InvariantViolation

PLACEHOLDER = "?"


class CompiledQuery(BaseModel):
    """A predicate template plus its positional parameters, in order."""

    model_config = ConfigDict(frozen=True)

    predicate: str
    parameters: tuple[str, ...]

    def placeholder_count(self) -> int:
        return self.predicate.count(PLACEHOLDER)


class MatchAll:
    """Sentinel returned for an empty CriteriaSet. Callers select every row."""

    _instance = None

    def __new__(cls) -> "MatchAll":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MATCH_ALL"

    def __bool__(self) -> bool:
        return False


MATCH_ALL = MatchAll()


def _fragment(criterion: Criterion) -> tuple[str, str]:
    column = criterion.field.column
    if criterion.match_type is MatchType.PARTIAL:
        return f"{column} LIKE {PLACEHOLDER}", f"%{criterion.value}%"
    return f"{column} = {PLACEHOLDER}", criterion.value


class QueryCompiler:
    """
    Stateless compiler from CriteriaSet to CompiledQuery.

    EXACT   -> "<column> = ?"     parameter: value
    PARTIAL -> "<column> LIKE ?"  parameter: "%" + value + "%"

    Fragments are joined with " AND " or " OR " in insertion order.
    """

    def compile(self, criteria: CriteriaSet) -> CompiledQuery | MatchAll:
        if criteria.matches_all:
            return MATCH_ALL

        fragments: list[str] = []
        parameters: list[str] = []
        for criterion in criteria.criteria:
            fragment, parameter = _fragment(criterion)
            fragments.append(fragment)
            parameters.append(parameter)

        joiner = f" {criteria.connective.value} "
        compiled = CompiledQuery(predicate=joiner.join(fragments), parameters=tuple(parameters))

        if compiled.placeholder_count() != len(compiled.parameters):
            raise InvariantViolation(
                f"Compiled predicate has {compiled.placeholder_count()} placeholder(s) "
                f"but {len(compiled.parameters)} parameter(s)."
            )
        return compiled


def compile_criteria(criteria: CriteriaSet) -> CompiledQuery | MatchAll:
    return QueryCompiler().compile(criteria)
