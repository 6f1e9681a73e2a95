#!/usr/bin/env python
"""
Database migration commands for the clinic CRM.

Usage:
    python run_migrations.py create "message"   # Autogenerate a revision from the models
    python run_migrations.py upgrade [rev]      # Apply migrations (default: head)
    python run_migrations.py downgrade [rev]    # Roll back (default: one step)
    python run_migrations.py stamp [rev]        # Mark a create_all database as migrated
    python run_migrations.py current            # Show the applied revision
    python run_migrations.py history            # List revisions
"""
from alembic.config import Config
from alembic import command
import os
import sys


alembic_cfg = Config(os.path.join(os.path.dirname(os.path.abspath(__file__)), "alembic.ini"))


def _run(label: str, func, *args, **kwargs):
    try:
        func(alembic_cfg, *args, **kwargs)
        if label:
            print(label)
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    action = sys.argv[1].lower()
    argument = sys.argv[2] if len(sys.argv) > 2 else None

    if action == "create":
        if not argument:
            print("Error: migration message required")
            sys.exit(1)
        _run(f"Revision '{argument}' created", command.revision,
             message=argument, autogenerate=True)

    elif action == "upgrade":
        revision = argument or "head"
        _run(f"Database upgraded to {revision}", command.upgrade, revision)

    elif action == "downgrade":
        revision = argument or "-1"
        _run(f"Database downgraded to {revision}", command.downgrade, revision)

    elif action == "stamp":
        revision = argument or "head"
        _run(f"Database stamped at {revision}", command.stamp, revision)

    elif action == "current":
        _run("", command.current)

    elif action == "history":
        _run("", command.history)

    else:
        print(f"Unknown action: {action}")
        print(__doc__)
        sys.exit(1)


if __name__ == "__main__":
    main()
