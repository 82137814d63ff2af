import logging

from sqlalchemy import text

from booking.config import configure_logging
from models import client, notification, scheduling  # noqa: F401
from models.base import Base, engine

log = logging.getLogger(__name__)


def init_db(bind=None) -> None:
    bind = bind or engine

    # Create all ORM tables (and the partial unique index on booking)
    Base.metadata.create_all(bind=bind)

    if bind.dialect.name != "postgresql":
        return

    # Overlap-safe guard for concurrent writers: no two live bookings of one
    # trainer may intersect on [start, end) for the same date.
    with bind.begin() as conn:
        conn.execute(text("CREATE EXTENSION IF NOT EXISTS btree_gist;"))
        conn.execute(
            text(
                """
                ALTER TABLE booking
                    DROP CONSTRAINT IF EXISTS ex_booking_no_overlap;
                """
            )
        )
        conn.execute(
            text(
                """
                ALTER TABLE booking
                    ADD CONSTRAINT ex_booking_no_overlap
                    EXCLUDE USING gist (
                        trainer_id WITH =,
                        tsrange(booking_date + start_time, booking_date + end_time, '[)') WITH &&
                    )
                    WHERE (status <> 'cancelled');
                """
            )
        )
    log.info("Installed booking overlap exclusion constraint")


if __name__ == "__main__":
    configure_logging()
    init_db()
    print("Database tables + booking constraints created.")
