# config.py
# Runtime settings, read from the environment (and a .env file if present).
#
#   CONTACT_DIRECTORY_DB              SQLite path          (data/contacts.db)
#   CONTACT_DIRECTORY_UNDO_CAPACITY   undo ledger size     (10)
#   CONTACT_DIRECTORY_RESET_PASSWORD  temp password for restored users
#   CONTACT_DIRECTORY_SEED            seed default accounts when the user table is empty

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from contact_directory.ledger import DEFAULT_CAPACITY
from contact_directory.replay import DEFAULT_RESET_PASSWORD

load_dotenv()


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    db_path: str = Field(default="data/contacts.db")
    undo_capacity: int = Field(default=DEFAULT_CAPACITY, ge=1)
    reset_password: str = Field(default=DEFAULT_RESET_PASSWORD, min_length=2)
    seed_defaults: bool = True


def _flag(raw: str | None, default: bool) -> bool:
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_settings() -> Settings:
    return Settings(
        db_path=os.getenv("CONTACT_DIRECTORY_DB", "data/contacts.db"),
        undo_capacity=os.getenv("CONTACT_DIRECTORY_UNDO_CAPACITY", DEFAULT_CAPACITY),
        reset_password=os.getenv("CONTACT_DIRECTORY_RESET_PASSWORD", DEFAULT_RESET_PASSWORD),
        seed_defaults=_flag(os.getenv("CONTACT_DIRECTORY_SEED"), True),
    )
