"""
Bulk load of the name catalog from the pre-processed popularity dataset.

The dataset is a JSON list (or CSV) of records like
    {"nameText": "Emma", "gender": 1, "popularityScore": 98, "origin": null}
with gender coded 0 = male, 1 = female, 2 = neutral. Names are written
once and never touched again by the services.
"""

import logging
from pathlib import Path
from typing import Union

import pandas as pd
from sqlmodel import func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from config import CATALOG_BATCH_SIZE
from models import Gender, Name

logger = logging.getLogger(__name__)

GENDER_CODES = {0: Gender.male, 1: Gender.female, 2: Gender.neutral}
GENDER_ALIASES = {
    "m": Gender.male,
    "boy": Gender.male,
    "f": Gender.female,
    "girl": Gender.female,
    "n": Gender.neutral,
    "unisex": Gender.neutral,
}

COLUMN_ALIASES = {
    "nameText": "text",
    "name_text": "text",
    "name": "text",
    "popularityScore": "popularity_score",
    "popularity": "popularity_score",
}


def parse_gender(value) -> Gender:
    if isinstance(value, Gender):
        return value
    if isinstance(value, str):
        key = value.strip().lower()
        if key.isdigit():
            return GENDER_CODES[int(key)]
        return GENDER_ALIASES.get(key) or Gender(key)
    return GENDER_CODES[int(value)]


def read_catalog(path: Union[str, Path]) -> pd.DataFrame:
    path = Path(path)
    if path.suffix.lower() == ".csv":
        return pd.read_csv(path)
    return pd.read_json(path)


def normalize_catalog(frame: pd.DataFrame) -> pd.DataFrame:
    """Rename columns, drop rows without text, coerce types.

    Result has exactly text, gender, popularity_score, origin.
    """
    df = frame.rename(columns=COLUMN_ALIASES)
    if "text" not in df.columns or "gender" not in df.columns:
        raise ValueError("Catalog needs at least name text and gender columns")

    for column in ("popularity_score", "origin"):
        if column not in df.columns:
            df[column] = None

    df = df.dropna(subset=["text", "gender"]).copy()
    df["text"] = df["text"].astype(str).str.strip()
    df = df[df["text"] != ""].copy()

    df["gender"] = df["gender"].map(parse_gender)
    df["popularity_score"] = pd.to_numeric(df["popularity_score"], errors="coerce").fillna(0).astype(int)
    df["origin"] = df["origin"].astype(object).where(df["origin"].notna(), None)

    return df[["text", "gender", "popularity_score", "origin"]].reset_index(drop=True)


def _to_name(row: dict) -> Name:
    # numpy scalars don't bind as sqlite parameters
    return Name(
        text=str(row["text"]),
        gender=row["gender"],
        popularity_score=int(row["popularity_score"]),
        origin=None if pd.isna(row["origin"]) else str(row["origin"]),
    )


async def load_names(
    session: AsyncSession,
    source: Union[str, Path, pd.DataFrame],
    batch_size: int = CATALOG_BATCH_SIZE,
) -> int:
    """Insert the catalog unless names are already present. Returns rows inserted."""
    existing = (await session.exec(select(func.count(Name.id)))).one()
    if existing > 0:
        logger.info("Names already loaded (%d in database). Skipping.", existing)
        return 0

    if isinstance(source, pd.DataFrame):
        frame = source
    else:
        path = Path(source)
        if not path.exists():
            logger.warning("Could not find names file at %s", path.resolve())
            return 0
        logger.info("Found names file at %s", path)
        frame = read_catalog(path)

    df = normalize_catalog(frame)
    if df.empty:
        logger.warning("No names found in the catalog source.")
        return 0

    records = df.to_dict(orient="records")
    total = len(records)
    logger.info("Loading %d names into database...", total)

    for start in range(0, total, batch_size):
        batch = records[start:start + batch_size]
        session.add_all([_to_name(row) for row in batch])
        await session.commit()
        logger.info("Loaded %d/%d names...", min(start + batch_size, total), total)

    logger.info("Successfully loaded %d names", total)
    return total
