# users_api/services/csv_ingestion.py
"""Reads uploaded user CSV files into records keyed by stored field names."""
import csv
import logging
from pathlib import Path
from typing import Dict, Iterator, Mapping, Optional, Union

logger = logging.getLogger(__name__)

# CSV header -> stored field name. Headers missing here are dropped.
USER_CSV_HEADER_MAP: Dict[str, str] = {
    "firstname": "firstName",
    "lastname": "lastName",
    "email": "email",
    "phone": "phone",
    "status": "status",
    "provider": "marketingSource",
    "birth_date": "birthDate",
}


def parse_csv(
    path: Union[str, Path],
    header_map: Mapping[str, str] = USER_CSV_HEADER_MAP,
) -> Iterator[Dict[str, Optional[str]]]:
    """
    Yields one dict per data row, in file order, with headers renamed through
    ``header_map``. Header matching is case-sensitive. Cell contents are not
    validated; bad rows are rejected later by the store. Bytes that are not
    valid UTF-8 are decoded as U+FFFD instead of failing the whole file.
    """
    with open(path, newline="", encoding="utf-8-sig", errors="replace") as csv_file:
        reader = csv.DictReader(csv_file)
        dropped = [h for h in (reader.fieldnames or []) if h not in header_map]
        if dropped:
            logger.info(f"Ignoring unmapped CSV columns in {Path(path).name}: {dropped}")
        row_count = 0
        for row in reader:
            row_count += 1
            yield {header_map[header]: value for header, value in row.items() if header in header_map}
        logger.debug(f"Parsed {row_count} row(s) from {Path(path).name}")
