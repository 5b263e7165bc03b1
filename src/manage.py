"""Tracking database management CLI.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def setup_database():
    from tracking.domain import tracking
    from tracking.utils.db import apply_persistence_timeouts, setup_db

    print("Initializing tracking domain...")
    apply_persistence_timeouts(tracking)
    tracking.init()
    handled = setup_db(tracking)
    if handled:
        print(f"  Schema ready for provider(s): {', '.join(handled)}.")
    else:
        print("  No SQL providers configured, nothing to create.")


def drop_database():
    from tracking.domain import tracking
    from tracking.utils.db import apply_persistence_timeouts, drop_db

    print("Initializing tracking domain...")
    apply_persistence_timeouts(tracking)
    tracking.init()
    handled = drop_db(tracking)
    if handled:
        print(f"  Schema dropped for provider(s): {', '.join(handled)}.")
    else:
        print("  No SQL providers configured, nothing to drop.")


def main():
    parser = argparse.ArgumentParser(description="Tracking database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
