import sys
import os

# Add the project root to the python path so we can import from database
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from dotenv import load_dotenv

# Load environment variables from .env.local (or .env)
env_path = os.path.join(os.path.dirname(__file__), '..', '.env.local')
if not os.path.exists(env_path):
    env_path = os.path.join(os.path.dirname(__file__), '..', '.env')
load_dotenv(env_path)

from database.db import Base, engine, init_db


def reset_database():
    """
    Drops and recreates the citation tables. All migrated data is lost.
    """
    init_db()  # registers the models on Base.metadata
    tables = sorted(Base.metadata.tables)

    print("WARNING: This will drop and recreate the following tables:")
    for t in tables:
        print(f" - {t}")

    confirm = input("Are you sure you want to proceed? (yes/no): ")
    if confirm.lower() != "yes":
        print("Operation cancelled.")
        return

    try:
        Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)
        print("Successfully reset all tables.")
    except Exception as e:
        print(f"Error resetting database: {e}")
        sys.exit(1)


if __name__ == "__main__":
    reset_database()
