from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from booking.config import Config

DATABASE_URL = Config.DATABASE_URL

engine = create_engine(DATABASE_URL, echo=Config.SQL_ECHO, future=True)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    future=True,
    expire_on_commit=False,
)

Base = declarative_base()


def get_session():
    """Helper to get a new DB session."""
    return SessionLocal()
