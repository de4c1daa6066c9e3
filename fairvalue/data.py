"""
Listing loader.

The scraper writes one JSON file per listing into a directory (data/json by
default). A file may also hold a list of listings. Files that cannot be read
or parsed are logged and skipped; one bad capture never blocks a fit.
"""

import json
import logging
from pathlib import Path
from typing import List, Union

import pandas as pd
from pydantic import ValidationError

from fairvalue.engine.types import ListingRecord

logger = logging.getLogger(__name__)


def parse_listings(payload: Union[dict, list], source: str = "<memory>") -> List[ListingRecord]:
    """Parse one decoded JSON payload into listing records.

    Args:
        payload: A listing object or a list of listing objects
        source: Name used in log messages

    Returns:
        Records that parsed; invalid entries are skipped with a warning
    """
    items = payload if isinstance(payload, list) else [payload]
    records = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning("Skipping non-object entry %d in %s", index, source)
            continue
        try:
            records.append(ListingRecord.model_validate(item))
        except ValidationError as e:
            logger.warning(
                "Skipping invalid listing %d in %s: %d validation error(s)",
                index,
                source,
                e.error_count(),
            )
    return records


def load_listings(directory: Union[str, Path]) -> List[ListingRecord]:
    """Load every ``*.json`` listing under a directory, in filename order.

    Raises:
        FileNotFoundError: If the directory does not exist
    """
    listings_dir = Path(directory)
    if not listings_dir.is_dir():
        raise FileNotFoundError(
            f"Listings directory not found: {listings_dir}. "
            "Run the scraper pipeline to produce listing JSON files first."
        )

    records: List[ListingRecord] = []
    files = sorted(listings_dir.glob("*.json"))
    for path in files:
        try:
            with open(path, encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Skipping unreadable listing file %s: %s", path.name, e)
            continue
        records.extend(parse_listings(payload, source=path.name))

    logger.info("Loaded %d listings from %d files in %s", len(records), len(files), listings_dir)
    return records


def listings_to_frame(listings: List[ListingRecord]) -> pd.DataFrame:
    """Tabular view of listings, one row per record, with location and validity."""
    rows = []
    for listing in listings:
        row = listing.model_dump(exclude={"description", "features"})
        row["location"] = listing.location
        row["is_valid"] = listing.is_valid_for_fit
        rows.append(row)
    return pd.DataFrame(rows)
