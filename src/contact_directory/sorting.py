# sorting.py
# Total order over records for one catalog field.
#
# Missing values (None) sort last under ascending order. Descending order
# negates the whole comparison, so missing values come first there. Ties
# keep no secondary key; add one (e.g. the id) if the caller needs a
# deterministic order.

from functools import cmp_to_key
from typing import Any, Sequence, TypeVar

from contact_directory.fields import Field, FieldCatalog

R = TypeVar("R")


def _cmp(left: Any, right: Any) -> int:
    if left is None and right is None:
        return 0
    if left is None:
        return 1
    if right is None:
        return -1
    if left < right:
        return -1
    if left > right:
        return 1
    return 0


class RecordComparator:
    def __init__(self, catalog: FieldCatalog) -> None:
        self._catalog = catalog

    def compare(self, a: Any, b: Any, field: Field) -> int:
        """Ascending comparison of a and b on `field`: -1, 0 or 1."""
        return _cmp(self._catalog.value_of(a, field), self._catalog.value_of(b, field))

    def order(self, records: Sequence[R], field: Field | str, ascending: bool = True) -> list[R]:
        """Return a new sorted list; `records` is left untouched."""
        resolved = self._catalog.resolve(field)
        sign = 1 if ascending else -1

        def directed(a: R, b: R) -> int:
            return sign * self.compare(a, b, resolved)

        return sorted(records, key=cmp_to_key(directed))
