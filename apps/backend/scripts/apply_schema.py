#!/usr/bin/env python3
"""
Apply the OrbitJobs schema (infra/migrations/*.sql) to DATABASE_URL.
Idempotent - safe to run multiple times.
"""
import sys
import argparse
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

load_dotenv()
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.db_config import db_config  # noqa: E402

PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
MIGRATIONS_DIR = PROJECT_ROOT / "infra" / "migrations"


def get_table_summary(cursor) -> dict:
    """Get summary of tables and their row counts."""
    cursor.execute("""
        SELECT table_name
        FROM information_schema.tables
        WHERE table_schema = 'public'
        ORDER BY table_name
    """)
    tables = [row[0] for row in cursor.fetchall()]

    summary = {}
    for table in tables:
        cursor.execute(f'SELECT COUNT(*) FROM "{table}"')
        summary[table] = cursor.fetchone()[0]
    return summary


def main():
    parser = argparse.ArgumentParser(description="Apply OrbitJobs SQL migrations")
    parser.add_argument(
        "--dir",
        type=Path,
        default=MIGRATIONS_DIR,
        help="Directory containing numbered .sql migrations",
    )
    args = parser.parse_args()

    conn_params = db_config.get_connection_params()
    if not conn_params:
        print("Error: DATABASE_URL environment variable is not set")
        sys.exit(1)

    migrations = sorted(args.dir.glob("*.sql"))
    if not migrations:
        print(f"Error: no .sql files found in {args.dir}")
        sys.exit(1)

    print("OrbitJobs Database Setup")
    print("=" * 60)
    print(f"Connecting to: {conn_params['host']}:{conn_params['port']}")

    try:
        conn = psycopg2.connect(**conn_params, connect_timeout=10)
    except Exception as e:
        print(f"✗ Connection failed: {e}")
        sys.exit(1)

    cursor = conn.cursor()
    try:
        initial_tables = get_table_summary(cursor)
        print(f"  Found {len(initial_tables)} existing table(s)\n")

        for migration in migrations:
            print(f"Applying {migration.name}...")
            cursor.execute(migration.read_text())
            conn.commit()

        final_tables = get_table_summary(cursor)
        new_tables = set(final_tables) - set(initial_tables)
        if new_tables:
            print(f"✓ Created {len(new_tables)} new table(s): {', '.join(sorted(new_tables))}")
        else:
            print("✓ All tables already exist (idempotent)")

        print("\nDatabase Summary:")
        print("-" * 60)
        for table, count in sorted(final_tables.items()):
            print(f"  {table:30} {count} row(s)")

        print("\n" + "=" * 60)
        print("✓ Database setup completed successfully")
    except Exception as e:
        conn.rollback()
        print(f"\n✗ Error: {e}")
        sys.exit(1)
    finally:
        cursor.close()
        conn.close()


if __name__ == "__main__":
    main()
