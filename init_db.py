#!/usr/bin/env python3
"""
Initialize database tables and optionally seed sample waitlist entries
"""
import argparse
import logging
import sys
import os

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from app.core.config import settings
from app.core.database import Database, log_store_event
from app.core.exceptions import ConflictError
from app.schemas.waitlist import WaitlistEntryCreate
from app.services.waitlist_service import WaitlistService

logger = logging.getLogger("init_db")

SAMPLE_ENTRIES = [
    {"email": "ada@example.com", "name": "Ada Lovelace", "productId": "sneaker-001"},
    {"email": "grace@example.com", "name": "Grace Hopper", "productId": "sneaker-001"},
    {"email": "ada@example.com", "name": "Ada Lovelace", "productId": "hoodie_ltd"},
]


def init_database(seed: bool = False) -> None:
    """Create tables, then insert sample entries that are not there yet"""
    database = Database(settings.DATABASE_URL, echo=settings.DEBUG)
    database.subscribe(log_store_event)
    database.create_all()
    logger.info("Tables created successfully")

    if not seed:
        database.disconnect()
        return

    session = database.session()
    try:
        service = WaitlistService(session)
        created = 0
        for sample in SAMPLE_ENTRIES:
            try:
                service.create_entry(WaitlistEntryCreate.model_validate(sample))
                created += 1
            except ConflictError:
                logger.info("Sample entry already present: %s / %s", sample["email"], sample["productId"])
        logger.info("Seeded %d sample waitlist entries", created)
    finally:
        session.close()
        database.disconnect()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--seed", action="store_true", help="insert sample waitlist entries")
    args = parser.parse_args()

    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format="%(levelname)s %(message)s")
    init_database(seed=args.seed)
    print("Database initialization complete!")
