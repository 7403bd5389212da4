# scripts/update_publication_dates.py
import sys
import os
import logging
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from dotenv import load_dotenv

load_dotenv(".env.local")

from services.relation_sources import JsonFileSource
from services.citation_persistence_service import update_publication_dates

logging.basicConfig(level=logging.INFO)


def main(data_dir: str):
    papers = JsonFileSource(data_dir).get_papers_with_references()
    print(f"Found {len(papers)} LLM papers with metadata")
    updated = update_publication_dates(papers)
    print(f"✅ Updated {updated} papers with publication dates")


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else os.getenv("CITATION_DATA_DIR", "data"))
