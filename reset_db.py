import psycopg2
from psycopg2.extensions import ISOLATION_LEVEL_AUTOCOMMIT
from sqlalchemy.engine import make_url
from specgraph.config import get_db_components
from specgraph.db.init_db import create_tables, create_database_if_not_exists

def reset_database():
    """Drop and recreate the database, then create all tables."""
    # Get database components
    db_components = get_db_components()
    db_name = db_components["db_name"]
    url = make_url(db_components["db_url_without_name"])
    if url.get_backend_name() != "postgresql":
        print("Only PostgreSQL databases can be reset with this script.")
        return

    # libpq understands plain postgresql:// URLs only
    dsn = url.set(drivername="postgresql").render_as_string(hide_password=False)

    # Connect to default postgres database
    print(f"Connecting to PostgreSQL to drop database '{db_name}'...")
    conn = psycopg2.connect(dsn)
    conn.set_isolation_level(ISOLATION_LEVEL_AUTOCOMMIT)
    cursor = conn.cursor()

    # Drop connections
    print("Closing all connections to the database...")
    cursor.execute("""
        SELECT pg_terminate_backend(pg_stat_activity.pid)
        FROM pg_stat_activity
        WHERE pg_stat_activity.datname = %s
        AND pid <> pg_backend_pid();
    """, (db_name,))

    print(f"Dropping database '{db_name}'...")
    # Note: Database names cannot be parameterized in PostgreSQL DDL
    cursor.execute(f'DROP DATABASE IF EXISTS "{db_name}"')

    cursor.close()
    conn.close()

    create_database_if_not_exists()
    create_tables()
    print(f"Database '{db_name}' has been reset successfully!")

if __name__ == "__main__":
    confirm = input("This will DELETE ALL DATA in the database. Are you sure? (y/n): ")
    if confirm.lower() == 'y':
        reset_database()
    else:
        print("Operation cancelled.")
