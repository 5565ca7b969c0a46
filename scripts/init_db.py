# scripts/init_db.py
import sys
from pathlib import Path
from sqlalchemy import text

# Ensure project root is on the path when running this script directly
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from usage_audit.infrastructure.database.session import get_engine, init_schema


def main():
    engine = get_engine()
    with engine.connect() as conn:
        result = conn.execute(text("SELECT 1"))
        print("DB Connected:", result.scalar())
    init_schema(engine)
    print("Schema ready: session_usage_audit")


main()
