import argparse
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from sqlalchemy.exc import OperationalError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from core.config_loader import get_config
from database.database import build_engine, session_scope
from database.repository import CareerRepository, SqlStorage

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def load_careers_file(path: Path) -> List[Dict[str, Any]]:
    """Read a YAML (or JSON) list of careers, or a mapping with a 'careers' key."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or []
    if isinstance(data, dict):
        data = data.get("careers", [])
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a list of careers")
    return data


@retry(
    retry=retry_if_exception_type(OperationalError),
    stop=stop_after_attempt(5),
    wait=wait_fixed(2),
    reraise=True,
)
def init_db(url: str, careers_file: Optional[Path] = None) -> int:
    """
    Create tables and optionally seed careers.

    Returns:
        Number of careers inserted.
    """
    logger.info("Initializing database...")
    storage = SqlStorage(build_engine(url))
    try:
        storage.create_tables()
        logger.info("Tables created or verified.")

        if careers_file is None:
            return 0

        careers = load_careers_file(careers_file)
        with session_scope(storage.session_factory) as session:
            repo = CareerRepository(session)
            for career in careers:
                repo.add_career(career)
        logger.info(f"Seeded {len(careers)} careers from {careers_file}")
        return len(careers)

    except Exception as e:
        logger.error(f"Error initializing DB: {e}")
        raise
    finally:
        storage.close()


def main():
    parser = argparse.ArgumentParser(description="Create storage tables and seed careers")
    parser.add_argument("--url", help="Database URL (defaults to storage.url from config)")
    parser.add_argument("--careers", help="YAML/JSON file with careers to insert")
    args = parser.parse_args()

    url = args.url or get_config().storage.url
    init_db(url, Path(args.careers) if args.careers else None)


if __name__ == "__main__":
    main()
