# scripts/migrate_data.py
import sys
import os
import asyncio
import logging
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from dotenv import load_dotenv

# Load env before importing db
load_dotenv(".env.local")

from database.db import init_db
from services.relation_sources import JsonFileSource
from services.relation_loader import load_dataset, DatasetLoadError
from services.citation_persistence_service import save_dataset

logging.basicConfig(level=logging.INFO)


def migrate(data_dir: str):
    print(f"Loading JSON export from {data_dir}...")
    try:
        dataset = asyncio.run(load_dataset(JsonFileSource(data_dir)))
    except DatasetLoadError as e:
        print(f"❌ Could not read export: {e}")
        sys.exit(1)

    print("Creating tables...")
    init_db()

    try:
        counts = save_dataset(dataset)
    except Exception as e:
        print(f"❌ Migration failed: {e}")
        sys.exit(1)

    print(f"✅ Migration complete: {counts}")


if __name__ == "__main__":
    migrate(sys.argv[1] if len(sys.argv) > 1 else os.getenv("CITATION_DATA_DIR", "data"))
