# replay.py
# Applies the inverse of a recorded Operation against a record store.
#
#   ADD    -> delete_by_id(affected_id)
#   UPDATE -> replace(snapshot)          pre-image restored under its own id
#   DELETE -> insert(snapshot)           the store may hand out a new id
#
# A re-inserted record is a new entity carrying the old field values. Its id
# is reported, never forced back to the deleted one: later inserts may have
# claimed that id already.

from typing import Callable, Protocol

from pydantic import BaseModel

from contact_directory.errors import (
    InvariantViolation,
    NotFoundError,
    StoreError,
    StoreFailureError,
)
from contact_directory.models import EntityKind, Operation, OperationKind, User
from contact_directory.security import hash_password

DEFAULT_RESET_PASSWORD = "resetpassword"


class ReplayStore(Protocol):
    def insert(self, record) -> int: ...
    def replace(self, record) -> bool: ...
    def delete_by_id(self, record_id: int) -> bool: ...


class ReplayResult(BaseModel):
    """Outcome of a successful inverse."""

    operation: Operation
    restored_id: int | None = None
    notice: str | None = None


# ---------------------------------------------------------------------------
# OperationReplayer
# ---------------------------------------------------------------------------


class OperationReplayer:
    """
    Dispatches on (operation kind, entity kind) to the matching inverse.

    Raises NotFoundError when the target row is gone, StoreFailureError when
    the store rejects the write, and InvariantViolation when an UPDATE/DELETE
    arrives without a snapshot.
    """

    def __init__(
        self,
        reset_password: str = DEFAULT_RESET_PASSWORD,
        hasher: Callable[[str], str] = hash_password,
    ) -> None:
        self._reset_password = reset_password
        self._hasher = hasher
        self._handlers: dict[
            tuple[OperationKind, EntityKind],
            Callable[[Operation, ReplayStore], ReplayResult],
        ] = {
            (OperationKind.ADD, EntityKind.CONTACT): self._undo_add,
            (OperationKind.ADD, EntityKind.USER): self._undo_add,
            (OperationKind.UPDATE, EntityKind.CONTACT): self._undo_update,
            (OperationKind.UPDATE, EntityKind.USER): self._undo_update,
            (OperationKind.DELETE, EntityKind.CONTACT): self._undo_delete,
            (OperationKind.DELETE, EntityKind.USER): self._undo_user_delete,
        }

    @property
    def reset_password(self) -> str:
        return self._reset_password

    def apply_inverse(self, op: Operation, store: ReplayStore) -> ReplayResult:
        handler = self._handlers.get((op.kind, op.entity_kind))
        if handler is None:
            raise InvariantViolation(f"No inverse for {op.kind.value} {op.entity_kind.value}.")
        try:
            return handler(op, store)
        except StoreError as exc:
            raise StoreFailureError(f"Store rejected undo of '{op.description}': {exc}") from exc

    # ------------------------------------------------------------------
    # Inverses
    # ------------------------------------------------------------------

    def _undo_add(self, op: Operation, store: ReplayStore) -> ReplayResult:
        if not store.delete_by_id(op.affected_id):
            raise NotFoundError(
                f"{op.entity_kind.value.capitalize()} #{op.affected_id} no longer exists."
            )
        return ReplayResult(operation=op)

    def _undo_update(self, op: Operation, store: ReplayStore) -> ReplayResult:
        snapshot = _require_snapshot(op)
        if not store.replace(snapshot.to_record()):
            raise NotFoundError(
                f"{op.entity_kind.value.capitalize()} #{snapshot.record_id} no longer exists."
            )
        return ReplayResult(operation=op, restored_id=snapshot.record_id)

    def _undo_delete(self, op: Operation, store: ReplayStore) -> ReplayResult:
        snapshot = _require_snapshot(op)
        new_id = store.insert(snapshot.to_record())
        return ReplayResult(operation=op, restored_id=new_id)

    def _undo_user_delete(self, op: Operation, store: ReplayStore) -> ReplayResult:
        # The deleted user's hash is one-way; the restored account gets a
        # known placeholder and the operator is told which.
        snapshot = _require_snapshot(op)
        user: User = snapshot.to_record()
        user.password_hash = self._hasher(self._reset_password)
        new_id = store.insert(user)
        return ReplayResult(
            operation=op,
            restored_id=new_id,
            notice=(
                f"User '{user.username}' was restored with the temporary password "
                f"'{self._reset_password}'. Ask them to change it at next login."
            ),
        )


def _require_snapshot(op: Operation):
    if op.snapshot is None:
        raise InvariantViolation(
            f"{op.kind.value.upper()} operation '{op.description}' has no snapshot."
        )
    return op.snapshot
