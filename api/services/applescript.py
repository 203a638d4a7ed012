"""
AppleScript generation for Contacts.app.

Each directory operation has its own builder that renders complete script
source. Builders are pure: they never run anything, and every user-supplied
string goes through escape() before it is placed inside a literal.

Scripts return text laid out per api.services.result_parser, using the same
sentinel constants.
"""
from dataclasses import dataclass, field
from typing import Optional, Sequence

from api.services.contact_models import (
    COLLECTION_FIELDS,
    CreateContactRequest,
    RecentType,
    split_name,
    value_label,
)
from api.services.result_parser import FIELD_SENTINEL, NOT_FOUND, RECORD_SENTINEL
from config.settings import settings

# AppleScript class name of a single entry in each collection
_ELEMENT_CLASS = {"emails": "email", "phones": "phone", "urls": "url"}

# AppleScript property names for the scalar fields update can touch
_SCALAR_PROPERTY = {
    "organization": "organization",
    "job_title": "job title",
    "note": "note",
}

_PRELUDE = f"""property fieldSep : "{FIELD_SENTINEL}"
property recordSep : "{RECORD_SENTINEL}"

on textOf(v)
    if v is missing value then return ""
    return v as text
end textOf

on isoOf(d)
    if d is missing value then return ""
    return (d as «class isot» as string)
end isoOf
"""


def escape(raw: Optional[str]) -> str:
    """
    Make text safe to place between double quotes in AppleScript source.

    Backslash is escaped first so the escapes added afterwards are not
    doubled. Never fails; None becomes "".
    """
    if raw is None:
        return ""
    return (
        str(raw)
        .replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )


def quote(raw: Optional[str]) -> str:
    """escape() wrapped in double quotes, ready to embed as a literal."""
    return f'"{escape(raw)}"'


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(int(value), high))


def _indent(lines: Sequence[str], depth: int = 1) -> list[str]:
    pad = "    " * depth
    return [pad + line if line else line for line in lines]


def _record_expr(*exprs: str) -> str:
    """AppleScript expression joining exprs into one sentinel-terminated record."""
    return " & my fieldSep & ".join(exprs) + " & my recordSep"


class AppleScript:
    """Base for all Contacts script builders."""

    kind = "script"

    def body(self) -> list[str]:
        raise NotImplementedError

    def render(self) -> str:
        lines = ['tell application "Contacts"']
        lines += _indent(self.body())
        lines.append("end tell")
        return _PRELUDE + "\n" + "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.render()


def _resolve_by_id(contact_id: str) -> list[str]:
    return [f"set targetPerson to person id {quote(contact_id)}"]


def _append_entries(collection: str, target: str, entries: Sequence[tuple[str, str]]) -> list[str]:
    element = _ELEMENT_CLASS[collection]
    return [
        f"make new {element} at end of {collection} of {target} "
        f"with properties {{label:{quote(label)}, value:{quote(value)}}}"
        for label, value in entries
    ]


def _labeled(collection: str, values: Sequence) -> list[tuple[str, str]]:
    """Pair values with their labels: synthesized for emails/phones, supplied for urls."""
    if collection == "urls":
        return [(u.label, u.value) for u in values]
    return [(value_label(collection, i), v) for i, v in enumerate(values)]


@dataclass(frozen=True)
class SearchScript(AppleScript):
    """
    Name/organization/note substring search.

    With a query, uses Contacts' own whose-filter. Without one, enumerates
    the first few people only, since a full scan is slow.
    """
    query: Optional[str] = None
    limit: int = 20

    kind = "search"

    def body(self) -> list[str]:
        limit = clamp(self.limit, 1, settings.max_search_limit)
        if self.query:
            q = quote(self.query)
            lines = [
                f"set matches to (every person whose name contains {q} "
                f"or organization contains {q} or note contains {q})",
            ]
        else:
            limit = min(limit, settings.browse_window)
            lines = ["set matches to people"]

        return lines + [
            'set out to ""',
            "set n to count of matches",
            f"if n > {limit} then set n to {limit}",
            "repeat with i from 1 to n",
            "    set p to item i of matches",
            "    set out to out & " + _record_expr(
                "my textOf(name of p)", "my textOf(organization of p)", "(id of p)"
            ),
            "end repeat",
            "return out",
        ]


@dataclass(frozen=True)
class FetchScript(AppleScript):
    """Resolve by id, then by exact name; return NOT_FOUND if neither works."""
    identifier: str

    kind = "fetch"

    def body(self) -> list[str]:
        ident = quote(self.identifier)
        return [
            "try",
            f"    set targetPerson to person id {ident}",
            "    get id of targetPerson",
            "on error",
            "    try",
            f"        set targetPerson to person {ident}",
            "        get id of targetPerson",
            "    on error",
            f"        return {quote(NOT_FOUND)}",
            "    end try",
            "end try",
            "set p to targetPerson",
            "return " + _record_expr(
                "(id of p)",
                "my textOf(name of p)",
                "my textOf(organization of p)",
                "my textOf(job title of p)",
                "my textOf(note of p)",
                "my isoOf(creation date of p)",
                "my isoOf(modification date of p)",
            ),
        ]


@dataclass(frozen=True)
class FetchValuesScript(AppleScript):
    """Read one collection of a resolved contact."""
    contact_id: str
    collection: str

    kind = "fetch_values"

    def __post_init__(self):
        if self.collection not in COLLECTION_FIELDS:
            raise ValueError(f"Unknown collection: {self.collection}")

    def body(self) -> list[str]:
        lines = _resolve_by_id(self.contact_id)
        if self.collection == "urls":
            return lines + [
                'set out to ""',
                "repeat with anEntry in urls of targetPerson",
                "    set out to out & " + _record_expr(
                    "my textOf(label of anEntry)", "my textOf(value of anEntry)"
                ),
                "end repeat",
                "return out",
            ]
        # emails and phones come back as a native list
        return lines + [
            "set valueList to {}",
            f"repeat with anEntry in {self.collection} of targetPerson",
            "    set end of valueList to my textOf(value of anEntry)",
            "end repeat",
            "return valueList",
        ]


@dataclass(frozen=True)
class CreateScript(AppleScript):
    """Create a person, set non-empty fields, append collections, save, return the id."""
    request: CreateContactRequest

    kind = "create"

    def body(self) -> list[str]:
        r = self.request
        first, last = split_name(r.name)
        lines = ["set newPerson to make new person"]

        scalars = [
            ("first name", first),
            ("last name", last),
            ("organization", r.organization),
            ("job title", r.job_title),
            ("note", r.note),
        ]
        for prop, value in scalars:
            # Empty values would overwrite Contacts' defaults
            if value:
                lines.append(f"set {prop} of newPerson to {quote(value)}")

        for collection in COLLECTION_FIELDS:
            lines += _append_entries(collection, "newPerson", _labeled(collection, getattr(r, collection)))

        return lines + ["save", "return id of newPerson"]


@dataclass(frozen=True)
class UpdateFieldScript(AppleScript):
    """Set a single scalar field (or the name pair) on an existing contact."""
    contact_id: str
    field: str
    value: str

    kind = "update_field"

    def __post_init__(self):
        if self.field != "name" and self.field not in _SCALAR_PROPERTY:
            raise ValueError(f"Unknown scalar field: {self.field}")

    def body(self) -> list[str]:
        lines = _resolve_by_id(self.contact_id)
        if self.field == "name":
            first, last = split_name(self.value)
            lines += [
                f"set first name of targetPerson to {quote(first)}",
                f"set last name of targetPerson to {quote(last)}",
            ]
        else:
            prop = _SCALAR_PROPERTY[self.field]
            lines.append(f"set {prop} of targetPerson to {quote(self.value)}")
        return lines + ["save"]


@dataclass(frozen=True)
class ReplaceValuesScript(AppleScript):
    """Delete every entry of a collection, then append the new entries in order."""
    contact_id: str
    collection: str
    values: tuple = field(default_factory=tuple)

    kind = "replace_values"

    def __post_init__(self):
        if self.collection not in COLLECTION_FIELDS:
            raise ValueError(f"Unknown collection: {self.collection}")

    def body(self) -> list[str]:
        element = _ELEMENT_CLASS[self.collection]
        lines = _resolve_by_id(self.contact_id)
        lines.append(f"delete every {element} of targetPerson")
        lines += _append_entries(self.collection, "targetPerson", _labeled(self.collection, self.values))
        return lines + ["save"]


@dataclass(frozen=True)
class RecentScript(AppleScript):
    """
    People created and/or modified within the last days_back days.

    Only the first recent_scan_limit matches are read back, in Contacts'
    own order, and sorting by date happens afterwards in Python. When more
    people match than that, some of the newest can be missed; narrow
    days_back or raise CONTACTS_RECENT_SCAN_LIMIT.
    """
    days_back: int = 30
    date_type: RecentType = "modified"

    kind = "recent"

    def body(self) -> list[str]:
        days = clamp(self.days_back, 1, settings.max_days_back)
        scan = max(1, settings.recent_scan_limit)
        conditions = {
            "created": "creation date > cutoff",
            "modified": "modification date > cutoff",
            "both": "creation date > cutoff or modification date > cutoff",
        }
        if self.date_type not in conditions:
            raise ValueError(f"Unknown date type: {self.date_type}")

        return [
            f"set cutoff to (current date) - ({days} * days)",
            f"set matches to (every person whose {conditions[self.date_type]})",
            'set out to ""',
            "set n to count of matches",
            f"if n > {scan} then set n to {scan}",
            "repeat with i from 1 to n",
            "    set p to item i of matches",
            "    set out to out & " + _record_expr(
                "my textOf(name of p)",
                "(id of p)",
                "my isoOf(creation date of p)",
                "my isoOf(modification date of p)",
            ),
            "end repeat",
            "return out",
        ]
