#!/usr/bin/env python3
"""
Database initialisation script.

Creates all tables and the global counter row; ``--seed`` also loads the
lesson content and questions from data/seed_content.json.
"""

import argparse
import sys
from pathlib import Path

# Add the backend directory to the Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

# Load environment variables before importing settings
from dotenv import load_dotenv
env_path = project_root.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from grassroutes.core.config import settings
from grassroutes.db.database import engine
from grassroutes.db.init_db import init_db


def init_database(seed: bool = False, seed_path: Path = None) -> bool:
    """Initialise the database"""
    print(f"Using database URL: {settings.DATABASE_URL}")
    try:
        init_db(seed=seed, seed_path=seed_path)
    except (SQLAlchemyError, OSError, ValueError) as e:
        print(f"Database initialisation failed: {e}")
        return False

    tables = inspect(engine).get_table_names()
    print(f"Tables: {tables}")
    print("Database initialised.")
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the grassroutes database tables")
    parser.add_argument("--seed", action="store_true", help="load the seed lesson content and questions")
    parser.add_argument("--seed-file", type=Path, default=None, help="JSON file to seed from")
    args = parser.parse_args()
    sys.exit(0 if init_database(seed=args.seed, seed_path=args.seed_file) else 1)
