import pytest
from datetime import date
from unittest.mock import patch
from rich.console import Console
from contact_directory import display
from contact_directory.criteria import CriteriaBuilder
from contact_directory.fields import CONTACT_FIELDS
from contact_directory.models import Contact, ContactStatistics, NameCount, User
from contact_directory.roles import Role

MARKUP = "[/x]"


@pytest.fixture
def console():
    recorder = Console(record=True, width=200)
    with patch.object(display, "console", recorder):
        yield recorder

def _contact() -> Contact:
    return Contact(
        contact_id=1,
        first_name="[bold]Ann",
        last_name="Doe",
        nickname=MARKUP,
        phone_primary="05551234567",
        email="ann@mail.com",
        linkedin_url="https://linkedin.com/in/[/red]",
        birth_date=date(1990, 5, 15),
    )

def _user() -> User:
    return User(user_id=2, username="op", name="[/b]Op", surname="Erator", role=Role.MANAGER)

# ---------------------------------------------------------------------------
# Contact Rendering Tests
# ---------------------------------------------------------------------------

def test_contact_table_renders_markup_literally(console):
    display.contact_table([_contact()])
    text = console.export_text()
    assert MARKUP in text
    assert "[bold]Ann" in text

def test_contact_details_renders_markup_literally(console):
    display.contact_details(_contact())
    text = console.export_text()
    assert MARKUP in text
    assert "linkedin.com/in/[/red]" in text

def test_search_and_sort_results_render_markup_literally(console):
    criteria = CriteriaBuilder(CONTACT_FIELDS).add_exact("nickname", MARKUP).build()
    display.search_results(criteria, [_contact()])
    display.sorted_results("Nickname", True, [_contact()])
    assert console.export_text().count(MARKUP) == 3

def test_long_values_are_truncated_without_breaking_markup(console):
    contact = _contact().model_copy(update={"nickname": "x" * 12 + "[/i]"})
    display.contact_table([contact])
    assert "xxxxxxxxxxxx[/" in console.export_text()

# ---------------------------------------------------------------------------
# User and Session Rendering Tests
# ---------------------------------------------------------------------------

def test_user_facing_headers_render_markup_literally(console):
    user = _user()
    display.logged_in(user)
    display.menu(user, [("1", "List all users")])
    display.user_table([user])
    display.logged_out(user)
    assert console.export_text().count("[/b]Op Erator") == 4

def test_statistics_names_render_markup_literally(console):
    stats = ContactStatistics(
        total_contacts=1,
        common_first_names=[NameCount(name="[bold]Ann", count=1)],
        common_last_names=[NameCount(name=MARKUP, count=1)],
        youngest_contact="[bold]Ann Doe",
        youngest_birth_date=date(1990, 5, 15),
        birth_months={5: 1},
    )
    display.statistics(stats)
    text = console.export_text()
    assert MARKUP in text
    assert "[bold]Ann Doe" in text
    assert "May" in text

def test_ledger_events_render_markup_literally(console):
    display.ledger_evicted(f"Deleted contact: {MARKUP}", 10)
    display.undo_history([f"Added contact: {MARKUP}"])
    display.undo_failed(f"Updated contact: {MARKUP}", "gone", kept=False)
    assert console.export_text().count(MARKUP) == 3
