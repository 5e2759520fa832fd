import pytest
from datetime import date
from contact_directory.fields import CONTACT_FIELDS
from contact_directory.ledger import DEFAULT_CAPACITY, UndoLedger
from contact_directory.models import (
    Contact,
    ContactSnapshot,
    EntityKind,
    Operation,
    OperationKind,
    User,
)
from contact_directory.roles import Role
from contact_directory.sorting import RecordComparator


def _add(n: int) -> Operation:
    return Operation.added(EntityKind.CONTACT, n, f"Added contact: #{n}")

def _contact(contact_id: int, first: str, born: date | None = None, nickname: str | None = None) -> Contact:
    return Contact(
        contact_id=contact_id,
        first_name=first,
        last_name="Doe",
        nickname=nickname,
        phone_primary="05551234567",
        email=f"{first.lower()}{contact_id}@mail.com",
        birth_date=born,
    )

# ---------------------------------------------------------------------------
# Undo Ledger Tests
# ---------------------------------------------------------------------------

def test_ledger_is_lifo():
    ledger = UndoLedger()
    for n in (1, 2, 3):
        ledger.push(_add(n))
    assert ledger.pop().affected_id == 3
    assert ledger.pop().affected_id == 2
    assert ledger.pop().affected_id == 1
    assert ledger.pop() is None
    assert not ledger.can_undo()

def test_ledger_evicts_oldest_when_full():
    ledger = UndoLedger()
    evicted = [ledger.push(_add(n)) for n in range(1, 12)]
    assert len(ledger) == DEFAULT_CAPACITY == 10
    assert evicted[:10] == [None] * 10
    assert evicted[10].affected_id == 1
    assert ledger.entries()[0].affected_id == 2
    assert ledger.is_full

def test_ledger_history_is_oldest_first():
    ledger = UndoLedger(capacity=3)
    for n in range(1, 5):
        ledger.push(_add(n))
    assert ledger.history() == ["Added contact: #2", "Added contact: #3", "Added contact: #4"]

def test_peek_does_not_remove():
    ledger = UndoLedger()
    ledger.push(_add(1))
    assert ledger.peek().affected_id == 1
    assert len(ledger) == 1
    ledger.clear()
    assert ledger.peek() is None

def test_ledger_rejects_zero_capacity():
    with pytest.raises(ValueError, match="at least 1"):
        UndoLedger(capacity=0)

# ---------------------------------------------------------------------------
# Operation Tests
# ---------------------------------------------------------------------------

def test_update_snapshot_does_not_alias_live_record():
    live = _contact(4, "Ann", nickname="annie")
    op = Operation.updated(live, "Updated contact: Ann Doe")
    live.nickname = "changed"
    live.first_name = "Zed"
    assert op.snapshot.nickname == "annie"
    assert op.snapshot.first_name == "Ann"
    assert op.affected_id == 4
    assert op.kind is OperationKind.UPDATE

def test_operation_requires_snapshot_for_delete():
    with pytest.raises(ValueError, match="require a snapshot"):
        Operation(
            kind=OperationKind.DELETE,
            entity_kind=EntityKind.CONTACT,
            affected_id=1,
            description="Deleted contact",
        )

def test_operation_rejects_snapshot_on_add():
    snapshot = ContactSnapshot.of(_contact(1, "Ann"))
    with pytest.raises(ValueError, match="no snapshot"):
        Operation(
            kind=OperationKind.ADD,
            entity_kind=EntityKind.CONTACT,
            affected_id=1,
            snapshot=snapshot,
            description="Added contact",
        )

def test_operation_rejects_mismatched_entity():
    snapshot = ContactSnapshot.of(_contact(1, "Ann"))
    with pytest.raises(ValueError, match="targets a user"):
        Operation(
            kind=OperationKind.UPDATE,
            entity_kind=EntityKind.USER,
            affected_id=1,
            snapshot=snapshot,
            description="Updated user",
        )

def test_user_snapshot_excludes_password_hash():
    user = User(user_id=2, username="jd", password_hash="secret", name="J", surname="D", role=Role.TESTER)
    op = Operation.deleted(user, "Deleted user: jd")
    assert "password_hash" not in op.snapshot.model_dump()
    assert op.snapshot.to_record().password_hash == ""

# ---------------------------------------------------------------------------
# Record Comparator Tests
# ---------------------------------------------------------------------------

def test_sort_by_text_ascending_and_descending():
    records = [_contact(1, "Cid"), _contact(2, "Ann"), _contact(3, "Bea")]
    comparator = RecordComparator(CONTACT_FIELDS)
    ascending = comparator.order(records, "first_name")
    descending = comparator.order(records, "first_name", ascending=False)
    assert [c.first_name for c in ascending] == ["Ann", "Bea", "Cid"]
    assert [c.first_name for c in descending] == ["Cid", "Bea", "Ann"]
    assert [c.contact_id for c in records] == [1, 2, 3]

def test_sort_missing_values_last_then_first():
    records = [
        _contact(1, "Ann", born=date(1990, 5, 1)),
        _contact(2, "Bea"),
        _contact(3, "Cid", born=date(1980, 1, 1)),
    ]
    comparator = RecordComparator(CONTACT_FIELDS)
    ascending = comparator.order(records, "birth_date")
    descending = comparator.order(records, "birth_date", ascending=False)
    assert [c.contact_id for c in ascending] == [3, 1, 2]
    assert [c.contact_id for c in descending] == [2, 1, 3]

def test_sort_ids_numerically():
    records = [_contact(10, "Ann"), _contact(9, "Bea"), _contact(100, "Cid")]
    ordered = RecordComparator(CONTACT_FIELDS).order(records, "contact_id")
    assert [c.contact_id for c in ordered] == [9, 10, 100]

def test_compare_is_antisymmetric():
    a, b = _contact(1, "Ann"), _contact(2, "Bea")
    comparator = RecordComparator(CONTACT_FIELDS)
    field = CONTACT_FIELDS.resolve("first_name")
    assert comparator.compare(a, b, field) == -comparator.compare(b, a, field) == -1
    assert comparator.compare(a, a, field) == 0
