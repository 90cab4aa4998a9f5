"""Helpers for opaque telemetry records.

Records are plain mappings owned by the remote endpoint. These helpers read
only the identifier and timestamp fields.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from ..core.constants import RECORD_ID_FIELD, TIMESTAMP_FIELDS

logger = logging.getLogger(__name__)

# Epoch values above this are milliseconds
_EPOCH_MS_THRESHOLD = 1e12


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 string, epoch number or datetime into an aware datetime.

    Naive values are taken as UTC. Returns None when the value cannot be
    interpreted.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, int | float):
        seconds = value / 1000.0 if abs(value) > _EPOCH_MS_THRESHOLD else float(value)
        try:
            return datetime.fromtimestamp(seconds, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            try:
                return parse_timestamp(float(text))
            except ValueError:
                return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def extract_timestamp(record: Any) -> datetime | None:
    """Return the first parseable timestamp field of ``record``."""
    if not isinstance(record, Mapping):
        return None
    for field in TIMESTAMP_FIELDS:
        ts = parse_timestamp(record.get(field))
        if ts is not None:
            return ts
    return None


def remove_duplicates(records: Iterable[Any], key: str = RECORD_ID_FIELD) -> list[Any]:
    """Drop records whose ``key`` value was already seen.

    The first occurrence wins. Records without the key are kept.
    """
    seen: set[Any] = set()
    unique: list[Any] = []
    for record in records:
        value = record.get(key) if isinstance(record, Mapping) else None
        if value is None:
            unique.append(record)
            continue
        marker = value if _hashable(value) else repr(value)
        if marker in seen:
            continue
        seen.add(marker)
        unique.append(record)
    return unique


def sort_by_timestamp_desc(records: Sequence[Any]) -> list[Any]:
    """Newest first; records without a timestamp go last in their original order."""
    stamped: list[tuple[datetime, int, Any]] = []
    unstamped: list[Any] = []
    for index, record in enumerate(records):
        ts = extract_timestamp(record)
        if ts is None:
            unstamped.append(record)
        else:
            stamped.append((ts, index, record))
    # Negated index keeps equal timestamps in their original order under reverse=True
    stamped.sort(key=lambda item: (item[0], -item[1]), reverse=True)
    return [record for _, _, record in stamped] + unstamped


def filter_by_time_range(
    records: Iterable[Any], start: datetime, end: datetime
) -> list[Any]:
    """Records whose timestamp falls in ``[start, end)``."""
    selected = []
    for record in records:
        ts = extract_timestamp(record)
        if ts is not None and start <= ts < end:
            selected.append(record)
    return selected


def as_records(payload: Any) -> list[Any]:
    """Return ``payload`` as a list of records.

    Lists pass through. JSON text or bytes is decoded first, so a fetch
    function may hand back the raw body it received. Anything that is not
    (or does not decode to) a list yields an empty list.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, tuple):
        return list(payload)
    if isinstance(payload, str | bytes | bytearray):
        try:
            decoded = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("records_payload_undecodable", extra={"error_message": str(e)})
            return []
        return decoded if isinstance(decoded, list) else []
    return []


def _hashable(value: Any) -> bool:
    try:
        hash(value)
    except TypeError:
        return False
    return True
