"""Script to run database migrations.

Usage:
    python scripts/migrate.py                 # upgrade to head
    python scripts/migrate.py downgrade <rev> # downgrade to a revision
    python scripts/migrate.py create <message>
"""

import sys
from pathlib import Path

from alembic import command
from alembic.config import Config

ALEMBIC_INI = Path(__file__).resolve().parent.parent / "alembic.ini"


def get_config() -> Config:
    """Alembic config rooted at the repository."""
    return Config(str(ALEMBIC_INI))


def main(argv: list[str]) -> int:
    """Dispatch a migration command."""
    config = get_config()

    try:
        if not argv:
            print("Upgrading database to head...")
            command.upgrade(config, "head")
        elif argv[0] == "downgrade" and len(argv) == 2:
            print(f"Downgrading database to {argv[1]}...")
            command.downgrade(config, argv[1])
        elif argv[0] == "create" and len(argv) > 1:
            command.revision(config, message=" ".join(argv[1:]), autogenerate=True)
        else:
            print(__doc__)
            return 2
    except Exception as e:
        print(f"✗ Migration failed: {e}", file=sys.stderr)
        return 1

    print("✓ Done")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
