"""
Fake ScriptRunners for tests.

FakeRunner returns canned text per script kind. InMemoryContacts interprets
the builder objects like Contacts.app would and answers in the same wire
format as the real scripts, so create/fetch/update can be exercised end to
end without osascript.
"""
import itertools

from api.services.applescript import (
    CreateScript,
    FetchScript,
    FetchValuesScript,
    RecentScript,
    ReplaceValuesScript,
    SearchScript,
    UpdateFieldScript,
)
from api.services.contact_models import ContactUrl, split_name, value_label
from api.services.result_parser import NATIVE_LIST_SEP, NOT_FOUND, encode_records


class FakeRunner:
    """
    ScriptRunner returning canned output per script kind.

    A response may be a string, an exception instance (raised), a callable
    taking the script, or a list of any of those consumed in order.
    """

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.scripts = []

    def execute(self, script):
        self.scripts.append(script)
        kind = getattr(script, "kind", "raw")
        response = self.responses.get(kind, "")
        if isinstance(response, list):
            response = response.pop(0) if response else ""
        if callable(response):
            response = response(script)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def kinds(self):
        return [getattr(s, "kind", "raw") for s in self.scripts]


class InMemoryContacts:
    """
    ScriptRunner that behaves like Contacts.app by interpreting the builder
    objects it receives and answering in the wire format the real scripts use.

    fail_fields: update fields whose scripts raise the given exception.
    """

    def __init__(self, fail_fields=None, failure=None):
        self.people = {}
        self.scripts = []
        self.fail_fields = set(fail_fields or ())
        self.failure = failure
        self._ids = itertools.count(1)

    def add(self, name, organization="", job_title="", note="", emails=(), phones=(), urls=()):
        first, last = split_name(name)
        contact_id = f"ID-{next(self._ids)}:ABPerson"
        self.people[contact_id] = {
            "first": first,
            "last": last,
            "organization": organization,
            "job_title": job_title,
            "note": note,
            "emails": [(value_label("emails", i), e) for i, e in enumerate(emails)],
            "phones": [(value_label("phones", i), p) for i, p in enumerate(phones)],
            "urls": [(u.label, u.value) for u in urls],
            "creation_date": "2024-05-01T09:30:00",
            "modification_date": "2024-05-02T10:00:00",
        }
        return contact_id

    def _name(self, person):
        return " ".join(p for p in (person["first"], person["last"]) if p)

    def _resolve(self, identifier):
        if identifier in self.people:
            return identifier
        for contact_id, person in self.people.items():
            if self._name(person) == identifier:
                return contact_id
        return None

    def execute(self, script):
        self.scripts.append(script)

        if isinstance(script, CreateScript):
            r = script.request
            return self.add(
                r.name, r.organization or "", r.job_title or "", r.note or "",
                r.emails, r.phones, r.urls,
            )

        if isinstance(script, FetchScript):
            contact_id = self._resolve(script.identifier)
            if contact_id is None:
                return NOT_FOUND
            p = self.people[contact_id]
            return encode_records([[
                contact_id, self._name(p), p["organization"], p["job_title"], p["note"],
                p["creation_date"], p["modification_date"],
            ]])

        if isinstance(script, FetchValuesScript):
            entries = self.people[script.contact_id][script.collection]
            if script.collection == "urls":
                return encode_records([[label, value] for label, value in entries])
            return NATIVE_LIST_SEP.join(value for _, value in entries)

        if isinstance(script, UpdateFieldScript):
            if script.field in self.fail_fields:
                raise self.failure
            p = self.people[script.contact_id]
            if script.field == "name":
                p["first"], p["last"] = split_name(script.value)
            else:
                p[script.field] = script.value
            return ""

        if isinstance(script, ReplaceValuesScript):
            if script.collection in self.fail_fields:
                raise self.failure
            p = self.people[script.contact_id]
            if script.collection == "urls":
                p["urls"] = [(u.label, u.value) for u in script.values]
            else:
                p[script.collection] = [(value_label(script.collection, i), v) for i, v in enumerate(script.values)]
            return ""

        if isinstance(script, SearchScript):
            rows = []
            for contact_id, p in self.people.items():
                q = script.query
                if q and not any(q in field for field in (self._name(p), p["organization"], p["note"])):
                    continue
                rows.append([self._name(p), p["organization"], contact_id])
            return encode_records(rows)

        if isinstance(script, RecentScript):
            return encode_records([
                [self._name(p), contact_id, p["creation_date"], p["modification_date"]]
                for contact_id, p in self.people.items()
            ])

        raise AssertionError(f"Unexpected script: {script!r}")


def make_url(label, value):
    return ContactUrl(label=label, value=value)
