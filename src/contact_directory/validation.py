# validation.py
# Field rules for operator input.
#
# The predicates return bool so prompts can loop until the input is good.
# validate_contact() / validate_user() raise ValidationError with the first
# failing rule, which is what the session calls before any store write.

import re
from datetime import date

from contact_directory.errors import ValidationError
from contact_directory.models import Contact, User
from contact_directory.roles import Role

EMAIL_PATTERN = re.compile(r"^[a-z0-9+_.-]+@[a-z0-9.-]+\.[a-z]{2,}$")
PHONE_PATTERN = re.compile(r"^[0-9]{10,11}$")
LINKEDIN_PATTERN = re.compile(r"^(https?://)?(www\.)?linkedin\.com/.*$")
NAME_PATTERN = re.compile(r"^(?:[^\W\d_]|[\s'-])+$")
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{2,20}$")
PHONE_SEPARATORS = re.compile(r"[\s()-]")

MAX_AGE_YEARS = 150
MIN_PASSWORD_LENGTH = 2

EMAIL_HINT = "(format: name.surname@email.com - must be lowercase)"
PHONE_HINT = "(format: 10-11 digits, e.g. 05551234567)"
DATE_HINT = "(format: YYYY-MM-DD, e.g. 1990-05-15)"


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def is_valid_email(email: str | None) -> bool:
    if not email or not email.strip():
        return False
    trimmed = email.strip()
    return trimmed == trimmed.lower() and bool(EMAIL_PATTERN.match(trimmed))


def clean_phone(phone: str | None) -> str | None:
    if phone is None:
        return None
    return PHONE_SEPARATORS.sub("", phone)


def is_valid_phone(phone: str | None) -> bool:
    if not phone or not phone.strip():
        return False
    return bool(PHONE_PATTERN.match(clean_phone(phone)))


def is_valid_linkedin_url(url: str | None) -> bool:
    """Optional field: blank is valid."""
    if not url or not url.strip():
        return True
    return bool(LINKEDIN_PATTERN.match(url.strip()))


def is_valid_name(name: str | None) -> bool:
    if not name or not name.strip():
        return False
    return bool(NAME_PATTERN.match(name.strip()))


def parse_date(raw: str) -> date | None:
    try:
        return date.fromisoformat(raw.strip())
    except ValueError:
        return None


def is_valid_birth_date(value: date | str | None, today: date | None = None) -> bool:
    """Not in the future and no more than MAX_AGE_YEARS ago."""
    if value is None:
        return False
    born = parse_date(value) if isinstance(value, str) else value
    if born is None:
        return False
    today = today or date.today()
    if born > today:
        return False
    try:
        limit = born.replace(year=born.year + MAX_AGE_YEARS)
    except ValueError:
        # 29 February + 150 years may not exist.
        limit = born.replace(year=born.year + MAX_AGE_YEARS, day=28)
    return today < limit


def is_valid_username(username: str | None) -> bool:
    return bool(username) and bool(USERNAME_PATTERN.match(username.strip()))


def is_valid_password(password: str | None) -> bool:
    return password is not None and len(password) >= MIN_PASSWORD_LENGTH


def is_valid_role(raw: str | None) -> bool:
    if not raw:
        return False
    try:
        Role.parse(raw)
    except ValueError:
        return False
    return True


def parse_yes_no(raw: str) -> bool | None:
    """True for yes/y, False for no/n, None for anything else."""
    lowered = raw.strip().lower()
    if lowered in ("yes", "y"):
        return True
    if lowered in ("no", "n"):
        return False
    return None


# ---------------------------------------------------------------------------
# Record validation
# ---------------------------------------------------------------------------


def validate_contact(contact: Contact, today: date | None = None) -> Contact:
    """Return a normalised copy of `contact` or raise ValidationError."""
    if not is_valid_name(contact.first_name):
        raise ValidationError("First name may contain only letters, spaces, ' and -.")
    if contact.middle_name and contact.middle_name.strip() and not is_valid_name(contact.middle_name):
        raise ValidationError("Middle name may contain only letters, spaces, ' and -.")
    if not is_valid_name(contact.last_name):
        raise ValidationError("Last name may contain only letters, spaces, ' and -.")
    if not is_valid_phone(contact.phone_primary):
        raise ValidationError(f"Invalid primary phone number {PHONE_HINT}.")
    if contact.phone_secondary and contact.phone_secondary.strip() and not is_valid_phone(
        contact.phone_secondary
    ):
        raise ValidationError(f"Invalid secondary phone number {PHONE_HINT}.")
    if not is_valid_email(contact.email):
        raise ValidationError(f"Invalid email address {EMAIL_HINT}.")
    if not is_valid_linkedin_url(contact.linkedin_url):
        raise ValidationError("LinkedIn URL must point at linkedin.com.")
    if contact.birth_date is not None and not is_valid_birth_date(contact.birth_date, today):
        raise ValidationError(
            f"Birth date must not be in the future or more than {MAX_AGE_YEARS} years ago."
        )

    return contact.model_copy(
        update={
            "first_name": contact.first_name.strip(),
            "last_name": contact.last_name.strip(),
            "email": contact.email.strip(),
            "phone_primary": clean_phone(contact.phone_primary),
            "phone_secondary": clean_phone(contact.phone_secondary) or None,
        }
    )


def validate_user(user: User) -> User:
    if not is_valid_username(user.username):
        raise ValidationError("Username must be 2-20 characters of letters, digits, _ or -.")
    if not is_valid_name(user.name):
        raise ValidationError("Name may contain only letters, spaces, ' and -.")
    if not is_valid_name(user.surname):
        raise ValidationError("Surname may contain only letters, spaces, ' and -.")
    return user.model_copy(
        update={
            "username": user.username.strip(),
            "name": user.name.strip(),
            "surname": user.surname.strip(),
        }
    )


def validate_password(password: str) -> str:
    if not is_valid_password(password):
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    return password
