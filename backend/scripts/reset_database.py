#!/usr/bin/env python3
"""
Drop and recreate every ERP table (quotations, orders, invoices, stock
movements, numbering counters...).

WARNING: This deletes ALL data, including the stock movement audit trail.
"""

import argparse
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Load environment variables from .env file if it exists
from dotenv import load_dotenv
load_dotenv(os.path.join(os.path.dirname(os.path.dirname(__file__)), '.env'))

from sqlalchemy import text
from erp.config import settings
from erp.database import engine, Base
import erp.models  # noqa: F401  registers every table on Base.metadata
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def reset_database(assume_yes: bool = False):
    """Drop all tables, recreate them from the models and forget the Alembic revision"""
    db_url = settings.database_url
    logger.warning("=" * 60)
    logger.warning("WARNING: This will DELETE ALL ERP DATA!")
    logger.warning(f"Database URL: {db_url[:50]}..." if len(db_url) > 50 else f"Database URL: {db_url}")
    logger.warning("=" * 60)

    if not assume_yes:
        response = input("Are you sure you want to continue? (yes/no): ")
        if response.lower() != "yes":
            logger.info("Aborted.")
            return

    try:
        Base.metadata.drop_all(bind=engine)
        logger.info(f"Dropped {len(Base.metadata.tables)} tables")

        Base.metadata.create_all(bind=engine)
        logger.info(f"Created {len(Base.metadata.tables)} tables")

        if engine.dialect.name == "postgresql":
            with engine.connect() as conn:
                conn.execute(text("DROP TABLE IF EXISTS alembic_version CASCADE"))
                conn.commit()
            logger.info("Alembic version table dropped; run `alembic stamp head` to mark the schema current")

        logger.info("Database reset complete")

    except Exception as e:
        logger.error(f"Error resetting database: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--yes", action="store_true", help="skip the confirmation prompt")
    args = parser.parse_args()
    reset_database(assume_yes=args.yes)
