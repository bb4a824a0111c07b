"""
Raw Dataset Loader

Reads the static JSON collections the dashboard is built from and
fingerprints their content so derived metrics can be memoized.
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union
import hashlib
import json

import structlog

from dashboard_engine.config import get_settings

logger = structlog.get_logger(__name__)


# Raw collection name -> file name in the data directory
RAW_FILES: Dict[str, str] = {
    "orders": "orders.json",
    "order_items": "order_items.json",
    "refunds": "order_item_refunds.json",
    "products": "products.json",
    "sessions": "website_sessions.json",
    "pageviews": "website_pageviews.json",
}


@dataclass
class RawDataset:
    """The six raw, loosely-typed row collections.

    Values are whatever the source delivered. Cleaners treat anything that
    is not a list as empty.
    """
    orders: Any = field(default_factory=list)
    order_items: Any = field(default_factory=list)
    refunds: Any = field(default_factory=list)
    products: Any = field(default_factory=list)
    sessions: Any = field(default_factory=list)
    pageviews: Any = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def row_counts(self) -> Dict[str, int]:
        """Number of raw rows per collection (0 for non-list values)"""
        return {
            name: len(rows) if isinstance(rows, list) else 0
            for name, rows in self.as_dict().items()
        }

    def fingerprint(self) -> str:
        """SHA-256 of the collections' content, stable across key order"""
        payload = json.dumps(self.as_dict(), sort_keys=True, default=str)
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def _read_json_array(path: Path) -> Any:
    if not path.is_file():
        logger.warning("Raw data file not found", path=str(path))
        return []

    try:
        with open(path, "r", encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Failed to read raw data file", path=str(path), error=str(e))
        return []


def load_raw_dataset(data_dir: Optional[Union[str, Path]] = None) -> RawDataset:
    """
    Load all raw collections from a data directory.

    Args:
        data_dir: Directory holding the JSON files (defaults to settings)

    Returns:
        RawDataset; unreadable or missing files become empty collections
    """
    directory = Path(data_dir or get_settings().engine.data_dir)

    collections = {
        name: _read_json_array(directory / filename)
        for name, filename in RAW_FILES.items()
    }
    dataset = RawDataset(**collections)

    logger.info("Raw dataset loaded", data_dir=str(directory), **dataset.row_counts())
    return dataset


def save_raw_dataset(dataset: RawDataset, data_dir: Union[str, Path]) -> Dict[str, Path]:
    """Write each collection to its JSON file, returning the written paths"""
    directory = Path(data_dir)
    directory.mkdir(parents=True, exist_ok=True)

    written = {}
    for name, filename in RAW_FILES.items():
        path = directory / filename
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(getattr(dataset, name), fh, default=str)
        written[name] = path

    return written
