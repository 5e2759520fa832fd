# display.py
# All terminal output for the contact directory.
#
# This module owns presentation entirely. The session and the menu loop
# never format strings; they call named functions here.
#
# Colour language:
#   cyan    navigation, menus, listings
#   magenta search and sort
#   yellow  undo ledger events
#   green   success / confirmed
#   red     failures and errors

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from contact_directory.criteria import CriteriaSet
from contact_directory.models import Contact, ContactStatistics, User

console = Console()

MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _label(tag: str, color: str) -> Text:
    t = Text()
    t.append(f" {tag} ", style=f"bold white on {color}")
    return t


def _mono(value: str | None, max_len: int = 40) -> str:
    if not value:
        return "-"
    if len(value) > max_len:
        return escape(value[: max_len - 1]) + "…"
    return escape(value)


# ---------------------------------------------------------------------------
# Session entry
# ---------------------------------------------------------------------------


def banner(db_path: str) -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]Role-Based Contact Directory[/bold cyan]\n"
            "[dim]Composable search · bounded undo · role-gated menus[/dim]\n\n"
            f"[dim]Database :[/dim] [white]{escape(db_path)}[/white]",
            border_style="cyan",
            padding=(1, 4),
        )
    )


def logged_in(user: User) -> None:
    console.print()
    console.print(
        _label("LOGIN", "green"),
        f"[green] Welcome, [bold]{escape(user.full_name)}[/bold] ({user.role.value}).[/green]",
    )


def logged_out(user: User) -> None:
    console.print()
    console.print(_label("LOGOUT", "cyan"), f"[cyan] Goodbye, {escape(user.full_name)}.[/cyan]")


def menu(user: User, options: list[tuple[str, str]]) -> None:
    console.print()
    console.print(Rule(f"[cyan]{user.role.value.upper()} MENU[/cyan]", style="cyan"))
    console.print(f"  [dim]User:[/dim] [bold white]{escape(user.full_name)}[/bold white]")
    console.print()
    for key, label in options:
        console.print(f"  [bold cyan]{key:>2}.[/bold cyan] {escape(label)}")


def choices(title: str, options: list[str]) -> None:
    console.print()
    console.print(f"[bold cyan]{title}[/bold cyan]")
    for index, option in enumerate(options, start=1):
        console.print(f"  [cyan]{index}.[/cyan] {escape(option)}")


# ---------------------------------------------------------------------------
# Contacts
# ---------------------------------------------------------------------------


def contact_table(contacts: list[Contact], title: str = "CONTACTS") -> None:
    console.print()
    if not contacts:
        info("No contacts to show.")
        return

    table = Table(
        box=box.SIMPLE_HEAVY,
        border_style="cyan",
        show_header=True,
        header_style="bold cyan",
        padding=(0, 1),
    )
    table.add_column("ID", justify="right", width=5)
    table.add_column("Name", style="bold white")
    table.add_column("Nickname", style="dim white")
    table.add_column("Phone", width=12)
    table.add_column("Email")
    table.add_column("Birth Date", justify="center", width=10)

    for contact in contacts:
        table.add_row(
            str(contact.contact_id),
            _mono(contact.full_name, 30),
            _mono(contact.nickname, 15),
            _mono(contact.phone_primary, 12),
            _mono(contact.email, 32),
            contact.birth_date.isoformat() if contact.birth_date else "-",
        )

    console.print(
        Panel(
            table,
            title=_label(title, "cyan"),
            subtitle=f"[dim]{len(contacts)} contact(s)[/dim]",
            border_style="cyan",
            padding=(0, 1),
        )
    )


def contact_details(contact: Contact) -> None:
    rows = [
        ("ID", str(contact.contact_id)),
        ("Name", contact.full_name),
        ("Nickname", contact.nickname or "-"),
        ("Phone", contact.phone_primary),
        ("Phone (2nd)", contact.phone_secondary or "-"),
        ("Email", contact.email),
        ("LinkedIn", contact.linkedin_url or "-"),
        ("Birth Date", contact.birth_date.isoformat() if contact.birth_date else "-"),
    ]
    table = Table(box=None, show_header=False, padding=(0, 2))
    table.add_column(style="dim")
    table.add_column(style="white")
    for key, value in rows:
        table.add_row(key, _mono(value, 80))
    console.print(Panel(table, title=_label("CONTACT", "cyan"), border_style="cyan"))


def search_results(criteria: CriteriaSet, contacts: list[Contact]) -> None:
    console.print()
    console.print(_label("SEARCH", "magenta"), f"[magenta] {escape(criteria.describe())}[/magenta]")
    if not contacts:
        info("No contacts found matching your search.")
        return
    contact_table(contacts, title=f"FOUND {len(contacts)}")


def sorted_results(field_label: str, ascending: bool, contacts: list[Contact]) -> None:
    direction = "Ascending" if ascending else "Descending"
    console.print()
    console.print(_label("SORT", "magenta"), f"[magenta] {escape(field_label)} ({direction})[/magenta]")
    contact_table(contacts, title="SORTED")


def statistics(stats: ContactStatistics) -> None:
    console.print()
    summary = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
    summary.add_column(style="dim")
    summary.add_column(style="bold white", justify="right")
    summary.add_row("Total contacts", str(stats.total_contacts))
    summary.add_row("With LinkedIn", str(stats.with_linkedin))
    summary.add_row("Without LinkedIn", str(stats.without_linkedin))
    summary.add_row("With secondary phone", str(stats.with_secondary_phone))
    if stats.average_age is not None:
        summary.add_row("Average age", f"{stats.average_age:.1f}")
    if stats.youngest_contact:
        summary.add_row("Youngest", f"{_mono(stats.youngest_contact)} ({stats.youngest_birth_date})")
    if stats.oldest_contact:
        summary.add_row("Oldest", f"{_mono(stats.oldest_contact)} ({stats.oldest_birth_date})")

    console.print(
        Panel(summary, title=_label("CONTACT STATISTICS", "cyan"), border_style="cyan")
    )

    names = Table(box=box.SIMPLE_HEAVY, header_style="bold cyan", padding=(0, 1))
    names.add_column("First name")
    names.add_column("#", justify="right")
    names.add_column("Last name")
    names.add_column("#", justify="right")
    depth = max(len(stats.common_first_names), len(stats.common_last_names))
    for i in range(depth):
        first = stats.common_first_names[i] if i < len(stats.common_first_names) else None
        last = stats.common_last_names[i] if i < len(stats.common_last_names) else None
        names.add_row(
            _mono(first.name) if first else "",
            str(first.count) if first else "",
            _mono(last.name) if last else "",
            str(last.count) if last else "",
        )
    if depth:
        console.print(names)

    if stats.birth_months:
        months = Table(box=box.SIMPLE, header_style="bold cyan", padding=(0, 1))
        months.add_column("Birth month")
        months.add_column("Contacts", justify="right")
        for month, count in stats.birth_months.items():
            months.add_row(MONTHS[month - 1], str(count))
        console.print(months)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def user_table(users: list[User]) -> None:
    console.print()
    if not users:
        info("No users to show.")
        return
    table = Table(box=box.SIMPLE_HEAVY, header_style="bold cyan", padding=(0, 1))
    table.add_column("ID", justify="right", width=5)
    table.add_column("Username", style="bold white")
    table.add_column("Name")
    table.add_column("Role", style="cyan")
    for user in users:
        table.add_row(str(user.user_id), _mono(user.username), _mono(user.full_name), user.role.value)
    console.print(Panel(table, title=_label("USERS", "cyan"), border_style="cyan"))


# ---------------------------------------------------------------------------
# Undo ledger
# ---------------------------------------------------------------------------


def ledger_evicted(description: str, capacity: int) -> None:
    console.print(
        f"  [dim yellow]Undo history is capped at {capacity}; "
        f"oldest entry dropped: {escape(description)}[/dim yellow]"
    )


def nothing_to_undo() -> None:
    info("No operations to undo.")


def undo_history(descriptions: list[str]) -> None:
    """`descriptions` arrive most-recent-first."""
    console.print()
    console.print(Rule(f"[yellow]UNDO HISTORY: {len(descriptions)} operation(s)[/yellow]", style="yellow"))
    for index, description in enumerate(descriptions, start=1):
        console.print(f"  [yellow]{index}.[/yellow] {escape(description)}")


def undo_candidate(description: str) -> None:
    console.print()
    console.print(
        _label("NEXT", "yellow"), f"[yellow] Most recent operation:[/yellow] {escape(description)}"
    )


def undo_declined() -> None:
    info("Undo stopped.")


def undo_succeeded(result) -> None:
    line = f"Operation undone: {result.operation.description}"
    if result.restored_id is not None and result.restored_id != result.operation.affected_id:
        line += f" (restored as ID {result.restored_id})"
    success(line)
    if result.notice:
        warning(result.notice)


def undo_failed(description: str, reason: str, kept: bool) -> None:
    fate = "kept on the ledger, retry later" if kept else "removed from the ledger"
    console.print(
        Panel(
            f"[bold red]Failed to undo:[/bold red] [white]{escape(description)}[/white]\n"
            f"[white]{escape(reason)}[/white]\n[dim]Entry {fate}.[/dim]",
            title=_label("UNDO FAILED ✗", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )


def undo_summary(undone: int, remaining: int) -> None:
    console.print()
    console.print(
        f"  [yellow]{undone} operation(s) undone, {remaining} left in history.[/yellow]"
    )


# ---------------------------------------------------------------------------
# Status lines
# ---------------------------------------------------------------------------


def success(message: str) -> None:
    console.print(f"  [bold green]✓[/bold green] [green]{escape(message)}[/green]")


def info(message: str) -> None:
    console.print(f"  [cyan]ℹ {escape(message)}[/cyan]")


def warning(message: str) -> None:
    console.print(f"  [bold yellow]⚠ {escape(message)}[/bold yellow]")


def error(message: str) -> None:
    console.print(
        Panel(
            f"[bold white]{escape(message)}[/bold white]",
            title=_label("ERROR", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )
