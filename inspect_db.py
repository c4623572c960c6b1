"""Print every table with its row count, columns and a few sample rows.

Usage: python inspect_db.py
"""
from sqlalchemy import inspect, select, func, MetaData, Table
from sqlalchemy.exc import SQLAlchemyError
from app import create_app
from app.extensions import db
import sys

SAMPLE_ROWS = 5

app = create_app()

with app.app_context():
    try:
        inspector = inspect(db.engine)
        tables = sorted(inspector.get_table_names())
    except SQLAlchemyError as e:
        print(f"Failed to open database: {e}", file=sys.stderr)
        sys.exit(3)

    if not tables:
        print(f"No user tables found in {db.engine.url}")
        sys.exit(0)

    print("Found tables:", ", ".join(tables))
    metadata = MetaData()
    try:
        for name in tables:
            table = Table(name, metadata, autoload_with=db.engine)
            print("\n---")
            print("Table:", name)
            with db.engine.connect() as conn:
                count = conn.execute(
                    select(func.count()).select_from(table)).scalar()
                print("Rows:", count)
                print("Columns:")
                for col in inspector.get_columns(name):
                    flags = "" if col["nullable"] else " NOT NULL"
                    print(f"  {col['name']} {col['type']}{flags}")
                print(f"Sample rows (up to {SAMPLE_ROWS}):")
                rows = conn.execute(
                    select(table).limit(SAMPLE_ROWS)).mappings().all()
                if not rows:
                    print("(no rows)")
                for row in rows:
                    print("  ", dict(row))
    except SQLAlchemyError as e:
        print(f"Error while inspecting DB: {e}", file=sys.stderr)
        sys.exit(4)

    print("\nDone.")
