# run.py
# Entry point. Config, wiring and the interactive menu loop.
#
# Every menu action reads operator input here and delegates to the
# DirectorySession. Errors are reported and the loop carries on; only
# logout or Ctrl-C leave a session.

from datetime import date
from typing import Callable

from rich.prompt import Confirm, IntPrompt, Prompt

from contact_directory import display
from contact_directory.config import Settings, load_settings
from contact_directory.criteria import Connective, CriteriaBuilder, MatchType
from contact_directory.errors import AuthenticationError, DirectoryError
from contact_directory.fields import CONTACT_FIELDS, Field
from contact_directory.models import Contact, Operation, User
from contact_directory.roles import Permission, Role
from contact_directory.security import hash_password
from contact_directory.session import DirectorySession, authenticate
from contact_directory.store import ContactStore, Database, UserStore
from contact_directory import validation

SEARCH_FIELDS = ("first_name", "last_name", "email", "phone_primary", "nickname", "birth_date")
SORT_FIELDS = ("contact_id", "first_name", "last_name", "email", "phone_primary", "birth_date")
MIN_MULTI_CRITERIA = 2
CLEAR = "-"

# username, password, name, surname, role
DEFAULT_ACCOUNTS = [
    ("tt", "tt", "Test", "User", Role.TESTER),
    ("jd", "jd", "Junior", "Developer", Role.JUNIOR_DEVELOPER),
    ("sd", "sd", "Senior", "Developer", Role.SENIOR_DEVELOPER),
    ("man", "man", "Team", "Manager", Role.MANAGER),
]


def seed_defaults(users: UserStore) -> int:
    """Create the default accounts when the user table is empty."""
    if users.count():
        return 0
    for username, password, name, surname, role in DEFAULT_ACCOUNTS:
        users.insert(
            User(
                username=username,
                password_hash=hash_password(password),
                name=name,
                surname=surname,
                role=role,
            )
        )
    return len(DEFAULT_ACCOUNTS)


# ---------------------------------------------------------------------------
# Prompt helpers
# ---------------------------------------------------------------------------


def _ask_valid(
    label: str,
    check: Callable[[str], bool],
    hint: str = "",
    default: str | None = None,
    optional: bool = False,
) -> str | None:
    """
    Re-prompt until `check` passes.

    When optional, blank input returns None, or the default if there is one;
    CLEAR returns None even when a default is shown.
    """
    if optional and default:
        hint = f"{hint} ({CLEAR} to clear)".strip()
    prompt = f"{label} {hint}".strip()
    while True:
        raw = Prompt.ask(prompt, default=default or "", show_default=bool(default)).strip()
        if optional and (not raw or raw == CLEAR):
            return None
        if raw and check(raw):
            return raw
        display.error(f"Invalid {label.lower()}. {hint}".strip())


def _ask_yes_no(question: str) -> bool:
    return Confirm.ask(question)


def _ask_choice(title: str, options: list[str]) -> int | None:
    """1-based choice among `options`; 0 cancels."""
    display.choices(title, options + ["Cancel"])
    while True:
        picked = IntPrompt.ask("Select")
        if picked == len(options) + 1 or picked == 0:
            return None
        if 1 <= picked <= len(options):
            return picked
        display.error(f"Please choose 1-{len(options) + 1}.")


def _ask_field(names: tuple[str, ...]) -> Field | None:
    fields = [CONTACT_FIELDS.resolve(name) for name in names]
    picked = _ask_choice("Fields", [f.label for f in fields])
    return None if picked is None else fields[picked - 1]


def _ask_match_type() -> MatchType | None:
    picked = _ask_choice("Match type", ["Exact", "Partial"])
    if picked is None:
        return None
    return MatchType.PARTIAL if picked == 2 else MatchType.EXACT


def _ask_ids(label: str) -> list[int]:
    raw = Prompt.ask(f"{label} (comma separated)")
    ids = []
    for part in raw.split(","):
        part = part.strip()
        if part.isdigit() and int(part) > 0:
            ids.append(int(part))
        elif part:
            display.warning(f"Skipping invalid ID {part!r}.")
    return ids


def _ask_contact(existing: Contact | None = None) -> Contact:
    """Prompt for every contact field; with `existing`, Enter keeps the value."""
    e = existing

    def keep(value):
        return None if value is None else str(value)

    first = _ask_valid("First name", validation.is_valid_name, default=keep(e and e.first_name))
    middle = _ask_valid(
        "Middle name", validation.is_valid_name, "(optional)",
        default=keep(e and e.middle_name), optional=True,
    )
    last = _ask_valid("Last name", validation.is_valid_name, default=keep(e and e.last_name))
    nickname = _ask_valid(
        "Nickname", lambda raw: True, "(optional)",
        default=keep(e and e.nickname), optional=True,
    )
    phone = _ask_valid(
        "Primary phone", validation.is_valid_phone, validation.PHONE_HINT,
        default=keep(e and e.phone_primary),
    )
    phone2 = _ask_valid(
        "Secondary phone", validation.is_valid_phone, "(optional)",
        default=keep(e and e.phone_secondary), optional=True,
    )
    email = _ask_valid(
        "Email", validation.is_valid_email, validation.EMAIL_HINT, default=keep(e and e.email)
    )
    linkedin = _ask_valid(
        "LinkedIn URL", validation.is_valid_linkedin_url, "(optional)",
        default=keep(e and e.linkedin_url), optional=True,
    )
    born = _ask_valid(
        "Birth date", validation.is_valid_birth_date, validation.DATE_HINT,
        default=keep(e and e.birth_date), optional=True,
    )

    return Contact(
        contact_id=e.contact_id if e else 0,
        first_name=first,
        middle_name=middle,
        last_name=last,
        nickname=nickname or None,
        phone_primary=phone,
        phone_secondary=phone2,
        email=email,
        linkedin_url=linkedin,
        birth_date=date.fromisoformat(born) if born else None,
    )


def _ask_user(existing: User | None = None) -> User:
    e = existing
    username = _ask_valid(
        "Username", validation.is_valid_username, "(2-20 letters, digits, _ or -)",
        default=e.username if e else None,
    )
    name = _ask_valid("Name", validation.is_valid_name, default=e.name if e else None)
    surname = _ask_valid("Surname", validation.is_valid_name, default=e.surname if e else None)
    roles = list(Role)
    picked = _ask_choice("Role", [r.value for r in roles])
    role = roles[picked - 1] if picked else (e.role if e else Role.TESTER)
    return User(user_id=e.user_id if e else 0, username=username, name=name, surname=surname, role=role)


# ---------------------------------------------------------------------------
# Menu actions
# ---------------------------------------------------------------------------


def list_contacts(session: DirectorySession) -> None:
    display.contact_table(session.list_contacts())


def search_single(session: DirectorySession) -> None:
    field = _ask_field(SEARCH_FIELDS)
    if field is None:
        return
    value = _ask_valid("Search value", lambda raw: bool(raw.strip()))
    match_type = _ask_match_type()
    if match_type is None:
        return
    builder = CriteriaBuilder(CONTACT_FIELDS).add_criterion(field, value, match_type)
    display.search_results(builder.build(), session.search(builder))


def search_multiple(session: DirectorySession) -> None:
    raw = _ask_valid("Connective", lambda r: r.strip().upper() in ("AND", "OR"), "(AND/OR)")
    builder = CriteriaBuilder(CONTACT_FIELDS, Connective.parse(raw))
    while True:
        field = _ask_field(SEARCH_FIELDS)
        if field is None:
            break
        value = _ask_valid("Search value", lambda r: bool(r.strip()))
        match_type = _ask_match_type()
        if match_type is None:
            break
        builder.add_criterion(field, value, match_type)
        display.success(f"Criterion added ({builder.count()}).")
        if builder.count() >= MIN_MULTI_CRITERIA and not _ask_yes_no("Add another criterion?"):
            break

    if builder.count() < MIN_MULTI_CRITERIA:
        display.error(f"Need at least {MIN_MULTI_CRITERIA} search criteria.")
        return
    display.search_results(builder.build(), session.search(builder))


def sort_contacts(session: DirectorySession) -> None:
    field = _ask_field(SORT_FIELDS)
    if field is None:
        return
    ascending = _ask_choice("Order", ["Ascending", "Descending"]) != 2
    display.sorted_results(field.label, ascending, session.sort_contacts(field, ascending))


def update_contact(session: DirectorySession) -> None:
    display.contact_table(session.list_contacts())
    existing = session.get_contact(IntPrompt.ask("Contact ID to update"))
    display.contact_details(existing)
    session.update_contact(_ask_contact(existing))
    display.success("Contact updated.")


def add_contact(session: DirectorySession) -> None:
    new_id = session.add_contact(_ask_contact())
    display.success(f"Contact added (ID: {new_id}).")


def add_contacts(session: DirectorySession) -> None:
    count = IntPrompt.ask("How many contacts")
    batch = []
    for index in range(count):
        display.info(f"Contact {index + 1} of {count}")
        batch.append(_ask_contact())
    ids = session.add_contacts(batch)
    display.success(f"{len(ids)} contact(s) added (IDs: {', '.join(map(str, ids))}).")


def delete_contact(session: DirectorySession) -> None:
    display.contact_table(session.list_contacts())
    contact = session.get_contact(IntPrompt.ask("Contact ID to delete"))
    display.contact_details(contact)
    if _ask_yes_no("Delete this contact?"):
        session.delete_contact(contact.contact_id)
        display.success("Contact deleted.")


def delete_contacts(session: DirectorySession) -> None:
    display.contact_table(session.list_contacts())
    ids = _ask_ids("Contact IDs to delete")
    if ids and _ask_yes_no(f"Delete {len(ids)} contact(s)?"):
        deleted = session.delete_contacts(ids)
        display.success(f"{len(deleted)} of {len(ids)} contact(s) deleted.")


def undo(session: DirectorySession) -> None:
    def confirm(op: Operation) -> bool:
        return _ask_yes_no("Undo this operation?")

    session.undo(confirm, lambda: _ask_yes_no("Continue undoing more operations?"))


def statistics(session: DirectorySession) -> None:
    display.statistics(session.statistics())


def list_users(session: DirectorySession) -> None:
    display.user_table(session.list_users())


def add_user(session: DirectorySession) -> None:
    user = _ask_user()
    password = _ask_valid("Password", validation.is_valid_password, "(min 2 characters)")
    new_id = session.add_user(user, password)
    display.success(f"User {user.username} added (ID: {new_id}).")


def update_user(session: DirectorySession) -> None:
    display.user_table(session.list_users())
    existing = session.get_user(IntPrompt.ask("User ID to update"))
    session.update_user(_ask_user(existing))
    display.success("User updated.")


def delete_user(session: DirectorySession) -> None:
    display.user_table(session.list_users())
    user = session.get_user(IntPrompt.ask("User ID to delete"))
    if _ask_yes_no(f"Delete user {user.username}?"):
        session.delete_user(user.user_id)
        display.success("User deleted.")


def change_password(session: DirectorySession) -> None:
    current = Prompt.ask("Current password", password=True)
    new = Prompt.ask("New password", password=True)
    if new != Prompt.ask("Confirm new password", password=True):
        display.error("Passwords do not match.")
        return
    session.change_password(current, new)
    display.success("Password changed.")


# label, permission, action; in menu order
MENU: list[tuple[str, Permission, Callable[[DirectorySession], None]]] = [
    ("Contact statistics", Permission.VIEW_STATISTICS, statistics),
    ("List all users", Permission.MANAGE_USERS, list_users),
    ("Add user", Permission.MANAGE_USERS, add_user),
    ("Update user", Permission.MANAGE_USERS, update_user),
    ("Delete user", Permission.MANAGE_USERS, delete_user),
    ("List all contacts", Permission.LIST_CONTACTS, list_contacts),
    ("Search by single field", Permission.SEARCH_CONTACTS, search_single),
    ("Search by multiple fields", Permission.SEARCH_CONTACTS, search_multiple),
    ("Sort contacts", Permission.SORT_CONTACTS, sort_contacts),
    ("Update contact", Permission.UPDATE_CONTACT, update_contact),
    ("Add contact", Permission.ADD_CONTACT, add_contact),
    ("Add multiple contacts", Permission.ADD_CONTACT, add_contacts),
    ("Delete contact", Permission.DELETE_CONTACT, delete_contact),
    ("Delete multiple contacts", Permission.DELETE_CONTACT, delete_contacts),
    ("Undo last operations", Permission.UNDO, undo),
    ("Change password", Permission.CHANGE_PASSWORD, change_password),
]


def menu_for(session: DirectorySession) -> list[tuple[str, Callable[[DirectorySession], None]]]:
    return [(label, action) for label, permission, action in MENU if session.can(permission)]


# ---------------------------------------------------------------------------
# Loops
# ---------------------------------------------------------------------------


def run_session(session: DirectorySession) -> None:
    while True:
        # Rebuilt each pass: an undone user update may change the role.
        items = menu_for(session)
        logout = str(len(items) + 1)
        options = [(str(i), label) for i, (label, _) in enumerate(items, start=1)]
        options.append((logout, "Logout"))

        display.menu(session.user, options)
        choice = Prompt.ask("Enter your choice").strip()
        if choice == logout:
            display.logged_out(session.user)
            return
        if not choice.isdigit() or not 1 <= int(choice) <= len(items):
            display.error("Invalid choice.")
            continue
        try:
            items[int(choice) - 1][1](session)
        except DirectoryError as exc:
            display.error(str(exc))


def login(users: UserStore) -> User | None:
    username = Prompt.ask("Username (blank to quit)").strip()
    if not username:
        return None
    password = Prompt.ask("Password", password=True)
    return authenticate(users, username, password)


def main(settings: Settings | None = None) -> None:
    settings = settings or load_settings()
    db = Database(settings.db_path)
    contacts, users = ContactStore(db), UserStore(db)
    display.banner(settings.db_path)

    if settings.seed_defaults and seed_defaults(users):
        display.info("Seeded default accounts: " + ", ".join(a[0] for a in DEFAULT_ACCOUNTS))

    try:
        while True:
            try:
                user = login(users)
            except AuthenticationError as exc:
                display.error(str(exc))
                continue
            if user is None:
                break
            display.logged_in(user)
            # A fresh session, and so a fresh undo ledger, per login.
            run_session(DirectorySession(user, contacts, users, settings))
    except (KeyboardInterrupt, EOFError):
        display.info("Interrupted.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
