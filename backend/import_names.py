import asyncio
import logging
import sys

from config import NAMES_FILE
from database import SessionLocal, create_db_and_tables
from catalog import load_names
from logging_config import configure_logging

logger = logging.getLogger("import_names")


async def run(path: str) -> int:
    await create_db_and_tables()
    async with SessionLocal() as session:
        return await load_names(session, path)


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    configure_logging()

    # Usage: python import_names.py [path/to/processed-names.json]
    path = argv[0] if argv else NAMES_FILE
    count = asyncio.run(run(path))
    logger.info("Import complete! %d names added.", count)
    return 0


if __name__ == "__main__":
    sys.exit(main())
