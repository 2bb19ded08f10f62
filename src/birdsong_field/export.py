"""Session CSV export.

Rows follow detection order. Relative band values are written with
three decimals, numbers are bare and the two species name columns are
double-quoted.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Union

from .events import DetectionRecord

logger = logging.getLogger(__name__)

CSV_HEADER = [
    "timestamp_ms",
    "datetime_local",
    "low_rel",
    "mid_rel",
    "high_rel",
    "energy",
    "species_key",
    "common_name_es",
    "scientific_name",
    "confidence",
]

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def quote(text: str) -> str:
    """Wrap text in double quotes, doubling embedded quotes."""
    return '"' + str(text).replace('"', '""') + '"'


def local_datetime(timestamp_ms: int) -> str:
    """Render an epoch-ms timestamp in local time."""
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime(DATETIME_FORMAT)


def format_row(record: DetectionRecord) -> List[str]:
    """Format one detection as CSV fields."""
    return [
        str(record.timestamp),
        local_datetime(record.timestamp),
        f"{record.low_rel:.3f}",
        f"{record.mid_rel:.3f}",
        f"{record.high_rel:.3f}",
        str(int(record.energy)),
        record.species_key,
        quote(record.common_name_es),
        quote(record.scientific_name),
        str(int(record.confidence)),
    ]


def to_csv(records: Iterable[DetectionRecord]) -> str:
    """Serialize detections to CSV text (header first, ``\\n`` separated).

    Args:
        records: Detections in chronological order

    Returns:
        CSV content
    """
    rows = [",".join(CSV_HEADER)]
    rows.extend(",".join(format_row(record)) for record in records)
    return "\n".join(rows)


def write_csv(
    records: Iterable[DetectionRecord],
    path: Union[str, Path],
) -> Path:
    """Write detections to a CSV file.

    Args:
        records: Detections in chronological order
        path: Output file

    Returns:
        Path written
    """
    path = Path(path)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)

    records = list(records)
    path.write_text(to_csv(records) + "\n", encoding="utf-8")
    logger.info(f"Exported {len(records)} detection(s) to {path}")
    return path
