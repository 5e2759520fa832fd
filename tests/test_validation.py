import pytest
from datetime import date
from unittest.mock import patch
from contact_directory import validation
from contact_directory.config import Settings, load_settings
from contact_directory.errors import ValidationError
from contact_directory.models import Contact, User
from contact_directory.roles import Permission, Role, allows
from contact_directory.security import (
    check_password,
    hash_password,
    legacy_hash,
    verify_password,
)

# ---------------------------------------------------------------------------
# Field Rule Tests
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("email,ok", [
    ("name.surname@email.com", True),
    ("a+b@mail.co", True),
    ("Name@email.com", False),
    ("no-at-sign.com", False),
    ("", False),
])
def test_is_valid_email(email, ok):
    assert validation.is_valid_email(email) is ok

def test_phone_separators_are_cleaned():
    assert validation.clean_phone("(0555) 123-4567") == "05551234567"
    assert validation.is_valid_phone("0555 123 4567")
    assert not validation.is_valid_phone("12345")
    assert not validation.is_valid_phone("0555abc4567")

def test_names_allow_unicode_letters():
    assert validation.is_valid_name("Çağrı")
    assert validation.is_valid_name("Anne-Marie O'Neil")
    assert not validation.is_valid_name("R2D2")
    assert not validation.is_valid_name("   ")

def test_linkedin_is_optional():
    assert validation.is_valid_linkedin_url(None)
    assert validation.is_valid_linkedin_url("https://www.linkedin.com/in/ann")
    assert not validation.is_valid_linkedin_url("https://example.com/ann")

def test_birth_date_bounds():
    today = date(2025, 6, 1)
    assert validation.is_valid_birth_date("1990-05-15", today)
    assert not validation.is_valid_birth_date("2025-06-02", today)
    assert not validation.is_valid_birth_date("1875-06-01", today)
    assert validation.is_valid_birth_date("1875-06-02", today)
    assert not validation.is_valid_birth_date("15/05/1990", today)

def test_leap_day_birth_date():
    assert validation.is_valid_birth_date(date(1876, 2, 29), date(2025, 6, 1))

def test_parse_yes_no():
    assert validation.parse_yes_no(" Y ") is True
    assert validation.parse_yes_no("no") is False
    assert validation.parse_yes_no("maybe") is None

def test_role_parsing():
    assert Role.parse("junior developer") is Role.JUNIOR_DEVELOPER
    assert Role.parse("MANAGER") is Role.MANAGER
    assert validation.is_valid_role("Senior_Developer")
    assert not validation.is_valid_role("admin")

# ---------------------------------------------------------------------------
# Record Validation Tests
# ---------------------------------------------------------------------------

def test_validate_contact_returns_normalized_copy():
    contact = Contact(
        first_name=" Ann ",
        last_name="Doe",
        phone_primary="0555-123-4567",
        phone_secondary="  ",
        email="ann@mail.com",
    )
    checked = validation.validate_contact(contact)
    assert checked.first_name == "Ann"
    assert checked.phone_primary == "05551234567"
    assert checked.phone_secondary is None
    assert contact.first_name == " Ann "

def test_validate_contact_rejects_future_birth_date():
    contact = Contact(
        first_name="Ann",
        last_name="Doe",
        phone_primary="05551234567",
        email="ann@mail.com",
        birth_date=date(2030, 1, 1),
    )
    with pytest.raises(ValidationError, match="Birth date"):
        validation.validate_contact(contact, today=date(2025, 1, 1))

def test_validate_user_and_password():
    with pytest.raises(ValidationError, match="Username"):
        validation.validate_user(User(username="x", name="A", surname="B", role=Role.TESTER))
    with pytest.raises(ValidationError, match="Password"):
        validation.validate_password("x")
    assert validation.validate_password("xy") == "xy"

# ---------------------------------------------------------------------------
# Role Table Tests
# ---------------------------------------------------------------------------

def test_role_capabilities_nest():
    assert allows(Role.TESTER, Permission.SEARCH_CONTACTS)
    assert not allows(Role.TESTER, Permission.UNDO)
    assert allows(Role.JUNIOR_DEVELOPER, Permission.UPDATE_CONTACT)
    assert not allows(Role.JUNIOR_DEVELOPER, Permission.ADD_CONTACT)
    assert allows(Role.SENIOR_DEVELOPER, Permission.DELETE_CONTACT)
    assert allows(Role.MANAGER, Permission.MANAGE_USERS)
    assert not allows(Role.MANAGER, Permission.LIST_CONTACTS)
    assert all(allows(role, Permission.CHANGE_PASSWORD) for role in Role)

# ---------------------------------------------------------------------------
# Credential Tests
# ---------------------------------------------------------------------------

def test_hash_password_is_salted():
    first, second = hash_password("secret"), hash_password("secret")
    assert first != second
    assert verify_password("secret", first)
    assert not verify_password("wrong", first)

def test_verify_password_rejects_malformed_hash():
    assert not verify_password("secret", "not-a-hash")
    assert not verify_password("secret", "!!!:???")

def test_legacy_hash_still_accepted():
    stored = legacy_hash("secret")
    assert check_password("secret", stored)
    assert not check_password("wrong", stored)

# ---------------------------------------------------------------------------
# Settings Tests
# ---------------------------------------------------------------------------

def test_settings_defaults():
    settings = Settings()
    assert settings.undo_capacity == 10
    assert settings.seed_defaults is True

@patch.dict("os.environ", {
    "CONTACT_DIRECTORY_DB": "/tmp/x.db",
    "CONTACT_DIRECTORY_UNDO_CAPACITY": "3",
    "CONTACT_DIRECTORY_SEED": "no",
})
def test_load_settings_from_environment():
    settings = load_settings()
    assert settings.db_path == "/tmp/x.db"
    assert settings.undo_capacity == 3
    assert settings.seed_defaults is False

def test_settings_reject_zero_capacity():
    with pytest.raises(ValueError):
        Settings(undo_capacity=0)
