# session.py
# One logged-in operator's view of the directory.
#
# The session owns its own UndoLedger, never shared between sessions, and
# runs the mutation workflow:
#
#   validate → unique-key check → snapshot pre-image → store write → push Operation
#
# Undo runs peek → apply inverse → pop. An entry stays on the ledger only
# when the store itself failed (the operator may retry); entries whose
# target is gone are discarded because no retry can succeed.
#
# Role checks happen here, before anything reaches the catalog, compiler,
# ledger or replayer.

from typing import Callable

from contact_directory import display
from contact_directory.config import Settings
from contact_directory.criteria import CriteriaBuilder, CriteriaSet, MatchType
from contact_directory.errors import (
    AuthenticationError,
    DuplicateKeyError,
    InvariantViolation,
    NotFoundError,
    PermissionDeniedError,
    StoreError,
    StoreFailureError,
    ValidationError,
)
from contact_directory.fields import CONTACT_FIELDS, Field
from contact_directory.ledger import UndoLedger
from contact_directory.models import (
    Contact,
    ContactStatistics,
    EntityKind,
    Operation,
    User,
)
from contact_directory.query import QueryCompiler
from contact_directory.replay import OperationReplayer, ReplayResult
from contact_directory.roles import Permission, Role, allows
from contact_directory.security import check_password, hash_password
from contact_directory.sorting import RecordComparator
from contact_directory.store import ContactStore, RecordStore, UserStore
from contact_directory.validation import validate_contact, validate_password, validate_user


def authenticate(users: UserStore, username: str, password: str) -> User:
    user = users.get_by_username(username.strip())
    if user is None or not check_password(password, user.password_hash):
        raise AuthenticationError("Invalid username or password.")
    return user


class DirectorySession:
    """
    Entry point for every menu action of one logged-in user.

    Example:
        session = DirectorySession(user, ContactStore(db), UserStore(db))
        session.add_contact(contact)
        session.undo(confirm=lambda op: True, keep_going=lambda: False)
    """

    def __init__(
        self,
        user: User,
        contacts: ContactStore,
        users: UserStore,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or Settings()
        self._user = user
        self._contacts = contacts
        self._users = users
        self._ledger = UndoLedger(settings.undo_capacity)
        self._replayer = OperationReplayer(reset_password=settings.reset_password)
        self._compiler = QueryCompiler()
        self._comparator = RecordComparator(CONTACT_FIELDS)

    # ------------------------------------------------------------------
    # Identity and permissions
    # ------------------------------------------------------------------

    @property
    def user(self) -> User:
        return self._user

    @property
    def role(self) -> Role:
        return self._user.role

    @property
    def ledger(self) -> UndoLedger:
        return self._ledger

    def can(self, permission: Permission) -> bool:
        return allows(self.role, permission)

    def require(self, permission: Permission) -> None:
        if not self.can(permission):
            raise PermissionDeniedError(
                f"{self.role.value} accounts may not {permission.value.replace('_', ' ')}."
            )

    # ------------------------------------------------------------------
    # Contact reads
    # ------------------------------------------------------------------

    def list_contacts(self) -> list[Contact]:
        self.require(Permission.LIST_CONTACTS)
        return self._contacts.get_all()

    def get_contact(self, contact_id: int) -> Contact:
        contact = self._contacts.get_by_id(contact_id)
        if contact is None:
            raise NotFoundError(f"Contact with ID {contact_id} not found.")
        return contact

    def search_by_field(self, field: Field | str, value: str, match_type: MatchType) -> list[Contact]:
        builder = CriteriaBuilder(CONTACT_FIELDS).add_criterion(field, value, match_type)
        return self.search(builder)

    def search(self, criteria: CriteriaBuilder | CriteriaSet) -> list[Contact]:
        self.require(Permission.SEARCH_CONTACTS)
        if isinstance(criteria, CriteriaBuilder):
            criteria = criteria.build()
        return self._contacts.search(self._compiler.compile(criteria))

    def sort_contacts(
        self,
        field: Field | str,
        ascending: bool = True,
        contacts: list[Contact] | None = None,
    ) -> list[Contact]:
        self.require(Permission.SORT_CONTACTS)
        if contacts is None:
            contacts = self._contacts.get_all()
        return self._comparator.order(contacts, field, ascending)

    def statistics(self) -> ContactStatistics:
        self.require(Permission.VIEW_STATISTICS)
        return self._contacts.statistics()

    # ------------------------------------------------------------------
    # Contact writes
    # ------------------------------------------------------------------

    def _record(self, op: Operation) -> None:
        evicted = self._ledger.push(op)
        if evicted is not None:
            display.ledger_evicted(evicted.description, self._ledger.capacity)

    def _checked_contact(self, contact: Contact, exclude_id: int | None = None) -> Contact:
        contact = validate_contact(contact)
        if self._contacts.email_exists(contact.email, exclude_id):
            raise DuplicateKeyError(f"Email {contact.email} is already used by another contact.")
        return contact

    def add_contact(self, contact: Contact, batch: bool = False) -> int:
        self.require(Permission.ADD_CONTACT)
        contact = self._checked_contact(contact)
        new_id = self._contacts.insert(contact)
        prefix = "Batch added" if batch else "Added"
        self._record(
            Operation.added(EntityKind.CONTACT, new_id, f"{prefix} contact: {contact.full_name}")
        )
        return new_id

    def add_contacts(self, contacts: list[Contact]) -> list[int]:
        """Validate every contact first; nothing is written if any one fails."""
        self.require(Permission.ADD_CONTACT)
        checked = [self._checked_contact(c) for c in contacts]
        emails = [c.email for c in checked]
        if len(set(emails)) != len(emails):
            raise DuplicateKeyError("The batch contains the same email more than once.")
        return [self.add_contact(c, batch=True) for c in checked]

    def update_contact(self, contact: Contact) -> Contact:
        """Overwrite the stored contact with `contact`; returns the pre-image."""
        self.require(Permission.UPDATE_CONTACT)
        previous = self.get_contact(contact.contact_id)
        contact = self._checked_contact(contact, exclude_id=contact.contact_id)
        # Operation.updated copies `previous` now, before anything can touch it.
        op = Operation.updated(previous, f"Updated contact: {previous.full_name}")
        if not self._contacts.replace(contact):
            raise NotFoundError(f"Contact with ID {contact.contact_id} not found.")
        self._record(op)
        return previous

    def delete_contact(self, contact_id: int, batch: bool = False) -> Contact:
        self.require(Permission.DELETE_CONTACT)
        contact = self.get_contact(contact_id)
        prefix = "Batch deleted" if batch else "Deleted"
        op = Operation.deleted(contact, f"{prefix} contact: {contact.full_name}")
        if not self._contacts.delete_by_id(contact_id):
            raise NotFoundError(f"Contact with ID {contact_id} not found.")
        self._record(op)
        return contact

    def delete_contacts(self, contact_ids: list[int]) -> list[Contact]:
        """Delete each id that exists. Missing ids are skipped."""
        self.require(Permission.DELETE_CONTACT)
        deleted = []
        for contact_id in contact_ids:
            if self._contacts.get_by_id(contact_id) is None:
                continue
            deleted.append(self.delete_contact(contact_id, batch=True))
        return deleted

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def list_users(self) -> list[User]:
        self.require(Permission.MANAGE_USERS)
        return self._users.get_all()

    def get_user(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User with ID {user_id} not found.")
        return user

    def add_user(self, user: User, password: str) -> int:
        self.require(Permission.MANAGE_USERS)
        user = validate_user(user)
        validate_password(password)
        if self._users.username_exists(user.username):
            raise DuplicateKeyError(f"Username {user.username} is already taken.")
        user = user.model_copy(update={"password_hash": hash_password(password)})
        new_id = self._users.insert(user)
        self._record(Operation.added(EntityKind.USER, new_id, f"Added user: {user.username}"))
        return new_id

    def update_user(self, user: User) -> User:
        self.require(Permission.MANAGE_USERS)
        previous = self.get_user(user.user_id)
        user = validate_user(user)
        if self._users.username_exists(user.username, exclude_id=user.user_id):
            raise DuplicateKeyError(f"Username {user.username} is already taken.")
        op = Operation.updated(previous, f"Updated user: {previous.username}")
        if not self._users.replace(user):
            raise NotFoundError(f"User with ID {user.user_id} not found.")
        if user.user_id == self._user.user_id:
            self._user = user.model_copy(update={"password_hash": self._user.password_hash})
        self._record(op)
        return previous

    def delete_user(self, user_id: int) -> User:
        self.require(Permission.MANAGE_USERS)
        if user_id == self._user.user_id:
            raise ValidationError("You cannot delete your own account.")
        user = self.get_user(user_id)
        op = Operation.deleted(user, f"Deleted user: {user.username}")
        if not self._users.delete_by_id(user_id):
            raise NotFoundError(f"User with ID {user_id} not found.")
        self._record(op)
        return user

    def change_password(self, current: str, new: str) -> None:
        """Not recorded on the undo ledger."""
        self.require(Permission.CHANGE_PASSWORD)
        if not check_password(current, self._user.password_hash):
            raise AuthenticationError("Current password is incorrect.")
        validate_password(new)
        password_hash = hash_password(new)
        if not self._users.change_password(self._user.user_id, password_hash):
            raise StoreError("Password could not be updated.")
        self._user = self._user.model_copy(update={"password_hash": password_hash})

    # ------------------------------------------------------------------
    # Undo
    # ------------------------------------------------------------------

    def _store_for(self, entity_kind: EntityKind) -> RecordStore:
        return self._contacts if entity_kind is EntityKind.CONTACT else self._users

    def undo_history(self) -> list[str]:
        """Descriptions most-recent-first, the order undo will take them in."""
        return list(reversed(self._ledger.history()))

    def undo_next(self) -> ReplayResult:
        """
        Undo the most recent operation.

        The entry is popped on success and on NotFoundError / InvariantViolation;
        it stays on the ledger on StoreFailureError so the operator can retry.
        """
        self.require(Permission.UNDO)
        op = self._ledger.peek()
        if op is None:
            raise NotFoundError("No operations to undo.")
        try:
            result = self._replayer.apply_inverse(op, self._store_for(op.entity_kind))
        except (NotFoundError, InvariantViolation):
            self._ledger.pop()
            raise
        self._ledger.pop()
        if op.entity_kind is EntityKind.USER and op.affected_id == self._user.user_id:
            self._user = self._users.get_by_id(self._user.user_id) or self._user
        return result

    def undo(
        self,
        confirm: Callable[[Operation], bool],
        keep_going: Callable[[], bool],
    ) -> int:
        """
        Walk the ledger newest-first, asking `confirm` before each inverse.

        Stops when the ledger is empty, the operator declines an entry, or
        `keep_going` returns False. Returns how many operations were undone.
        """
        self.require(Permission.UNDO)
        if not self._ledger.can_undo():
            display.nothing_to_undo()
            return 0

        undone = 0
        while self._ledger.can_undo():
            display.undo_history(self.undo_history())
            op = self._ledger.peek()
            display.undo_candidate(op.description)
            if not confirm(op):
                display.undo_declined()
                break

            try:
                result = self.undo_next()
            except StoreFailureError as exc:
                display.undo_failed(op.description, str(exc), kept=True)
                break
            except (NotFoundError, InvariantViolation) as exc:
                display.undo_failed(op.description, str(exc), kept=False)
            else:
                undone += 1
                display.undo_succeeded(result)

            if not self._ledger.can_undo() or not keep_going():
                break

        display.undo_summary(undone, len(self._ledger))
        return undone
