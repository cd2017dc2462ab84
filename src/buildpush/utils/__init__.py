"""Shared parsing helpers for inputs and buildx attribute strings."""

from __future__ import annotations

import csv
import io

_TRUE_VALUES = frozenset({"1", "t", "T", "true", "TRUE", "True"})
_FALSE_VALUES = frozenset({"0", "f", "F", "false", "FALSE", "False"})


def parse_csv_records(value: str, *, quote: bool = True) -> list[list[str]]:
    """Parse ``value`` as CSV and return the non-empty records.

    Quoted fields may span lines. With ``quote=False`` quote characters are kept
    as ordinary text (used for exporter specs such as ``--output``).
    """
    quoting = csv.QUOTE_MINIMAL if quote else csv.QUOTE_NONE
    records: list[list[str]] = []
    for record in csv.reader(io.StringIO(value), quoting=quoting):
        if not record or all(not field.strip() for field in record):
            continue
        records.append(record)
    return records


def get_list(value: str, *, ignore_comma: bool = False, quote: bool = True) -> list[str]:
    """Split a multi-line (and, unless ``ignore_comma``, comma-separated) input into items.

    Items are trimmed and empty items dropped. With ``ignore_comma`` each line
    is kept whole, so values like ``type=local,dest=out`` survive intact.
    """
    if not value:
        return []
    items: list[str] = []
    for record in parse_csv_records(value, quote=quote):
        if len(record) == 1:
            if ignore_comma:
                items.append(record[0])
            else:
                items.extend(record[0].split(","))
        elif ignore_comma:
            items.append(",".join(record))
        else:
            items.extend(record)
    return [item.strip() for item in items if item.strip()]


def parse_bool(value: str) -> bool:
    """Parse a boolean the way buildx does (``1``, ``t``, ``true``, ``0``, ``f``, ``false``...).

    Raises ValueError for anything else.
    """
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"parseBool syntax error: {value}")


def split_kvp(field: str) -> tuple[str, str]:
    """Split ``key=value`` at the first ``=``; both parts are trimmed. Value is ``""`` if absent."""
    key, _, value = field.partition("=")
    return key.strip(), value.strip()
