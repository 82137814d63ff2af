import logging
import os

from dotenv import load_dotenv

load_dotenv()  # picks up DATABASE_URL etc. from .env if present

BASE_DIR = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Defaults to a SQLite file next to the project so the engine runs without setup
    DATABASE_URL = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "booking.db"),
    )
    SQL_ECHO = _env_bool("SQL_ECHO")

    # How many upcoming occurrences per slot a listing returns by default
    DEFAULT_HORIZON = int(os.getenv("DEFAULT_HORIZON", "4"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=level or Config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
