import pytest
from unittest.mock import MagicMock
from contact_directory.errors import (
    InvariantViolation,
    NotFoundError,
    StoreError,
    StoreFailureError,
)
from contact_directory.models import Contact, EntityKind, Operation, OperationKind, User
from contact_directory.replay import OperationReplayer
from contact_directory.roles import Role


def _contact(contact_id: int = 5) -> Contact:
    return Contact(
        contact_id=contact_id,
        first_name="Ann",
        last_name="Doe",
        phone_primary="05551234567",
        email="ann.doe@mail.com",
    )

def _store() -> MagicMock:
    store = MagicMock()
    store.delete_by_id.return_value = True
    store.replace.return_value = True
    store.insert.return_value = 42
    return store

# ---------------------------------------------------------------------------
# Inverse Dispatch Tests
# ---------------------------------------------------------------------------

def test_undo_add_deletes_by_id():
    store = _store()
    op = Operation.added(EntityKind.CONTACT, 7, "Added contact: Ann Doe")
    result = OperationReplayer().apply_inverse(op, store)
    store.delete_by_id.assert_called_once_with(7)
    store.insert.assert_not_called()
    store.replace.assert_not_called()
    assert result.operation is op

def test_undo_update_restores_pre_image():
    store = _store()
    op = Operation.updated(_contact(), "Updated contact: Ann Doe")
    result = OperationReplayer().apply_inverse(op, store)
    restored = store.replace.call_args.args[0]
    assert isinstance(restored, Contact)
    assert restored.contact_id == 5
    assert restored.email == "ann.doe@mail.com"
    assert result.restored_id == 5

def test_undo_delete_reinserts_and_reports_new_id():
    store = _store()
    op = Operation.deleted(_contact(), "Deleted contact: Ann Doe")
    result = OperationReplayer().apply_inverse(op, store)
    inserted = store.insert.call_args.args[0]
    assert inserted.first_name == "Ann"
    assert result.restored_id == 42
    store.delete_by_id.assert_not_called()

def test_undo_user_delete_sets_placeholder_credential():
    store = _store()
    hasher = MagicMock(return_value="hashed-placeholder")
    user = User(user_id=3, username="jd", password_hash="real", name="J", surname="D", role=Role.TESTER)
    op = Operation.deleted(user, "Deleted user: jd")
    result = OperationReplayer(reset_password="tmp123", hasher=hasher).apply_inverse(op, store)
    hasher.assert_called_once_with("tmp123")
    assert store.insert.call_args.args[0].password_hash == "hashed-placeholder"
    assert "tmp123" in result.notice
    assert "jd" in result.notice

def test_undo_user_update_keeps_credential_untouched():
    store = _store()
    user = User(user_id=3, username="jd", password_hash="real", name="J", surname="D", role=Role.TESTER)
    op = Operation.updated(user, "Updated user: jd")
    OperationReplayer().apply_inverse(op, store)
    assert store.replace.call_args.args[0].password_hash == ""

# ---------------------------------------------------------------------------
# Failure Mode Tests
# ---------------------------------------------------------------------------

def test_undo_add_of_missing_row_raises_not_found():
    store = _store()
    store.delete_by_id.return_value = False
    op = Operation.added(EntityKind.CONTACT, 7, "Added contact: Ann Doe")
    with pytest.raises(NotFoundError, match="#7"):
        OperationReplayer().apply_inverse(op, store)

def test_undo_update_of_missing_row_raises_not_found():
    store = _store()
    store.replace.return_value = False
    op = Operation.updated(_contact(), "Updated contact: Ann Doe")
    with pytest.raises(NotFoundError):
        OperationReplayer().apply_inverse(op, store)

def test_store_rejection_becomes_store_failure():
    store = _store()
    store.insert.side_effect = StoreError("UNIQUE constraint failed: contacts.email")
    op = Operation.deleted(_contact(), "Deleted contact: Ann Doe")
    with pytest.raises(StoreFailureError, match="UNIQUE"):
        OperationReplayer().apply_inverse(op, store)

def test_missing_snapshot_raises_invariant_violation():
    # model_construct skips the validator that would normally refuse this.
    op = Operation.model_construct(
        kind=OperationKind.DELETE,
        entity_kind=EntityKind.CONTACT,
        affected_id=5,
        snapshot=None,
        description="Deleted contact: Ann Doe",
    )
    store = _store()
    with pytest.raises(InvariantViolation, match="no snapshot"):
        OperationReplayer().apply_inverse(op, store)
    store.insert.assert_not_called()
