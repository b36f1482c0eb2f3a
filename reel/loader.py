"""
Record file loading.

Reads a record set from a JSON or YAML file. The file holds either a list
of entries or a mapping with a ``records`` list. Each entry becomes a
Record; its ``data`` mapping becomes the nested metadata bag.
"""

from pathlib import Path
from typing import Any, List, Union
import json
import logging

import yaml

from reel.models import Record

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


class RecordLoadError(Exception):
    """Raised when a record file cannot be read."""
    pass


def _read(path: Path) -> Any:
    with open(path, encoding="utf-8") as f:
        if path.suffix.lower() in YAML_SUFFIXES:
            try:
                return yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise RecordLoadError(f"Invalid YAML in {path}: {e}") from e
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise RecordLoadError(f"Invalid JSON in {path}: {e}") from e


def records_from_data(data: Any) -> List[Record]:
    """
    Convert loaded data into records.

    Raises:
        RecordLoadError: If data is not a list of mappings
    """
    if isinstance(data, dict) and "records" in data:
        data = data["records"]

    if not isinstance(data, list):
        raise RecordLoadError(f"Expected a list of records, got {type(data).__name__}")

    records = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise RecordLoadError(f"Record {index} is not a mapping: {entry!r}")
        records.append(Record.from_dict(entry))
    return records


def load_records(path: Union[str, Path]) -> List[Record]:
    """
    Load records from a JSON or YAML file.

    Args:
        path: Path to the record file

    Returns:
        Records in file order
    """
    path = Path(path)
    if not path.exists():
        raise RecordLoadError(f"Records file not found: {path}")

    records = records_from_data(_read(path))
    logger.debug(f"Loaded {len(records)} records from {path}")
    return records
