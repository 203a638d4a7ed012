"""
Text wire format between generated AppleScript and Python.

osascript only gives us a single flattened string back, so every script
agrees with this module on how records are laid out:

- Record format (default): each record is its fields joined by
  FIELD_SENTINEL and terminated by RECORD_SENTINEL. Scripts build the string
  themselves by concatenation, so nothing is joined by osascript.
- Native list format: an AppleScript list returned as-is, which osascript
  prints joined by ", ". Values containing ", " cannot be recovered, so this
  is only used for email addresses and phone numbers.
- The original "|"-joined scalar reply is not produced by any script here:
  a "|" inside a note or name could not be represented in it.

Empty output always decodes to an empty collection.
"""
import logging
from datetime import datetime
from typing import Iterable, Optional, Sequence

logger = logging.getLogger(__name__)

NATIVE_LIST_SEP = ", "
FIELD_SENTINEL = "<<~f~>>"
RECORD_SENTINEL = "<<~r~>>"

# Returned by fetch scripts when neither id nor name lookup resolves
NOT_FOUND = "Contact not found"

SEARCH_FIELDS = ("name", "organization", "id")
FETCH_FIELDS = ("id", "name", "organization", "job_title", "note", "creation_date", "modification_date")
URL_FIELDS = ("label", "value")
RECENT_FIELDS = ("name", "id", "creation_date", "modification_date")


class WireFormatError(ValueError):
    """Raised when a value cannot be represented in the chosen format."""


# ---------------------------------------------------------------------------
# Native AppleScript list format
# ---------------------------------------------------------------------------

def decode_native_list(text: str) -> list[str]:
    """Split osascript's rendering of a list of strings."""
    if not text or not text.strip():
        return []
    items = (item.strip() for item in text.split(NATIVE_LIST_SEP))
    return [item for item in items if item]


# ---------------------------------------------------------------------------
# Sentinel record format
# ---------------------------------------------------------------------------

def encode_records(rows: Iterable[Sequence[str]]) -> str:
    """Encode rows exactly the way the generated scripts do."""
    out = []
    for row in rows:
        for value in row:
            if FIELD_SENTINEL in value or RECORD_SENTINEL in value:
                raise WireFormatError(f"value contains a reserved sentinel: {value!r}")
        out.append(FIELD_SENTINEL.join(row) + RECORD_SENTINEL)
    return "".join(out)


def decode_records(text: str, width: int) -> list[list[str]]:
    """
    Decode sentinel-delimited records.

    Splits on RECORD_SENTINEL first, then each entry on FIELD_SENTINEL.
    Short records are padded with "", long ones have their surplus folded
    into the last field.
    """
    if not text:
        return []

    records = []
    for entry in text.split(RECORD_SENTINEL):
        # A list of records rendered natively leaves ", " between entries
        if entry.startswith(NATIVE_LIST_SEP):
            entry = entry[len(NATIVE_LIST_SEP):]
        if not entry.strip():
            continue
        fields = entry.split(FIELD_SENTINEL)
        if len(fields) > width:
            fields = fields[:width - 1] + [FIELD_SENTINEL.join(fields[width - 1:])]
        fields += [""] * (width - len(fields))
        records.append(fields)
    return records


def decode_record_dicts(text: str, names: Sequence[str]) -> list[dict]:
    """decode_records with each record keyed by field name."""
    return [dict(zip(names, fields)) for fields in decode_records(text, len(names))]


def parse_iso_date(text: str) -> Optional[datetime]:
    """Parse an AppleScript «class isot» timestamp ("2024-05-01T09:30:00")."""
    if not text or not text.strip():
        return None
    try:
        return datetime.fromisoformat(text.strip())
    except ValueError:
        logger.debug(f"Unparseable date from Contacts: {text!r}")
        return None
