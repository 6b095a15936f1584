#!/usr/bin/env python
"""Seed script for the lifecycle transition rule table.

Applies the records migrations and inserts the default transition
rules for every edge that has no rule yet. Existing rules are left alone,
so the script is safe to run repeatedly.

Usage:
    python backend/scripts/seed_transition_rules.py

Environment Variables:
    DATABASE_URL: SQLAlchemy connection string
"""

import logging
import sys
from pathlib import Path

# Add backend/src to Python path
backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from database import build_engine, get_db_session, upgrade_database
from lifecycle.rules import seed_default_rules
from observability.logging_config import configure_logging_from_settings
from sqlalchemy.orm import sessionmaker

logger = logging.getLogger(__name__)


def main():
    """Seed default transition rules."""
    configure_logging_from_settings()

    upgrade_database()
    engine = build_engine()
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    with get_db_session(factory) as session:
        inserted = seed_default_rules(session)

    logger.info(f"Seeded {inserted} transition rule(s)")
    print(f"Seeded {inserted} transition rule(s)")


if __name__ == "__main__":
    main()
