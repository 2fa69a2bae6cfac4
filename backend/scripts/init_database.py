#!/usr/bin/env python3
"""
Database bootstrap script for local development.

Creates every table the patient communication backend uses. With --reset,
drops the tables first to get a clean database state.
"""

import argparse
import os
import sys
from typing import List, Optional

# Add the parent directory to sys.path to allow imports from src
sys.path.append(os.path.join(os.path.dirname(__file__), '../src'))

from core.config import DATABASE_URL
from core.database import create_tables, drop_tables


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Create the patient communication tables.")
    parser.add_argument("--reset", action="store_true", help="Drop existing tables first (deletes all data)")
    args = parser.parse_args(argv)

    print(f"Database URL: {DATABASE_URL}")
    try:
        if args.reset:
            print("Dropping existing tables...")
            drop_tables()
        print("Creating tables...")
        create_tables()
    except Exception as e:
        print(f"Error initializing database: {e}")
        return 1

    print("Database initialized.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
