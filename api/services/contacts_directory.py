"""
Directory operations over Contacts.app.

ContactsDirectory turns each request into one or more AppleScript runs and
assembles the response dicts returned by the API and the MCP tools:

- search: one script, native whose-filter or bounded enumeration
- fetch: scalar record first, then emails, phones and urls separately
- create: one script, returns the new id
- update: resolve, then one independent script per provided field
- recent: one script filtered by date, sorted newest first here

Calls are serialized with a lock: Contacts is a single application instance
and is not safe under concurrent scripts.
"""
import logging
import threading
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ValidationError

from api.services.applescript import (
    AppleScript,
    CreateScript,
    FetchScript,
    FetchValuesScript,
    RecentScript,
    ReplaceValuesScript,
    SearchScript,
    UpdateFieldScript,
    clamp,
)
from api.services.contact_models import (
    COLLECTION_FIELDS,
    ContactRecord,
    ContactUrl,
    CreateContactRequest,
    FetchRequest,
    FieldUpdate,
    RecentRequest,
    SearchRequest,
    UpdateContactRequest,
)
from api.services.errors import ContactNotFoundError, ContactValidationError, ScriptExecutionError
from api.services.result_parser import (
    FETCH_FIELDS,
    NOT_FOUND,
    RECENT_FIELDS,
    SEARCH_FIELDS,
    URL_FIELDS,
    decode_native_list,
    decode_record_dicts,
    parse_iso_date,
)
from api.services.script_executor import OsascriptExecutor, ScriptRunner
from config.settings import settings

logger = logging.getLogger(__name__)

NOT_FOUND_RESPONSE = {"success": False, "message": NOT_FOUND}


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "request"
        parts.append(f"{loc}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts)


def validate_request(model: type[BaseModel], arguments: Optional[dict]) -> BaseModel:
    """Validate raw arguments into a request model, raising ContactValidationError."""
    try:
        return model.model_validate(arguments or {})
    except ValidationError as e:
        raise ContactValidationError(
            f"Invalid arguments: {_describe_validation_error(e)}",
            errors=e.errors(include_url=False, include_context=False),
        ) from e


class ContactsDirectory:
    """The five directory operations, run against a ScriptRunner."""

    def __init__(self, runner: Optional[ScriptRunner] = None):
        self.runner = runner or OsascriptExecutor()
        self._lock = threading.RLock()

    def _run(self, script: AppleScript) -> str:
        return self.runner.execute(script)

    # ------------------------------------------------------------------
    # search
    # ------------------------------------------------------------------

    def search(self, request: SearchRequest) -> dict:
        limit = clamp(request.limit, 1, settings.max_search_limit)
        query = (request.query or "").strip() or None

        with self._lock:
            output = self._run(SearchScript(query=query, limit=limit))

        rows = decode_record_dicts(output, SEARCH_FIELDS)[:limit]
        contacts = [
            {"id": r["id"], "name": r["name"].strip(), "organization": r["organization"].strip()}
            for r in rows
        ]
        return {"success": True, "count": len(contacts), "contacts": contacts}

    # ------------------------------------------------------------------
    # fetch
    # ------------------------------------------------------------------

    def get_contact(self, identifier: str) -> Optional[ContactRecord]:
        """Resolve by id, then exact name. Returns None when neither matches."""
        with self._lock:
            output = self._run(FetchScript(identifier=identifier))
            if output == NOT_FOUND:
                return None

            rows = decode_record_dicts(output, FETCH_FIELDS)
            if not rows:
                logger.warning(f"Empty fetch result for {identifier!r}")
                return None
            row = rows[0]

            contact = ContactRecord(
                id=row["id"],
                name=row["name"],
                organization=row["organization"],
                job_title=row["job_title"],
                note=row["note"],
                creation_date=parse_iso_date(row["creation_date"]),
                modification_date=parse_iso_date(row["modification_date"]),
            )
            contact.emails = self._fetch_collection(contact.id, "emails")
            contact.phones = self._fetch_collection(contact.id, "phones")
            contact.urls = self._fetch_collection(contact.id, "urls")
            return contact

    def _fetch_collection(self, contact_id: str, collection: str) -> list:
        # A failing collection read leaves that collection empty; the contact is still returned
        try:
            output = self._run(FetchValuesScript(contact_id=contact_id, collection=collection))
        except ScriptExecutionError as e:
            logger.warning(f"Could not read {collection} for contact {contact_id}: {e}")
            return []

        if collection == "urls":
            return [ContactUrl(**row) for row in decode_record_dicts(output, URL_FIELDS)]
        return decode_native_list(output)

    def fetch(self, request: FetchRequest) -> dict:
        contact = self.get_contact(request.identifier)
        if contact is None:
            return dict(NOT_FOUND_RESPONSE)
        return {"success": True, "contact": contact.to_dict()}

    # ------------------------------------------------------------------
    # create
    # ------------------------------------------------------------------

    def create(self, request: CreateContactRequest) -> dict:
        with self._lock:
            contact_id = self._run(CreateScript(request=request)).strip()

        if not contact_id:
            raise ScriptExecutionError("Contacts did not return an id for the new contact")
        logger.info(f"Created contact {contact_id}")

        contact = ContactRecord(
            id=contact_id,
            name=request.name,
            organization=request.organization or "",
            job_title=request.job_title or "",
            note=request.note or "",
            emails=list(request.emails),
            phones=list(request.phones),
            urls=list(request.urls),
        )
        return {
            "success": True,
            "message": f"Created contact: {request.name}",
            "contact_id": contact_id,
            "contact": contact.to_dict(),
        }

    # ------------------------------------------------------------------
    # update
    # ------------------------------------------------------------------

    def _field_script(self, contact_id: str, field: str, value) -> AppleScript:
        if field in COLLECTION_FIELDS:
            return ReplaceValuesScript(contact_id=contact_id, collection=field, values=tuple(value))
        return UpdateFieldScript(contact_id=contact_id, field=field, value=value)

    def apply_updates(self, contact_id: str, request: UpdateContactRequest) -> list[FieldUpdate]:
        """Run one script per provided field, in order. Failures are recorded, not raised."""
        outcomes = []
        for field in request.provided_fields():
            script = self._field_script(contact_id, field, getattr(request, field))
            try:
                self._run(script)
            except ScriptExecutionError as e:
                logger.error(f"Failed to update {field} for contact {contact_id}: {e}")
                outcomes.append(FieldUpdate(field=field, ok=False, reason=str(e)))
                continue
            outcomes.append(FieldUpdate(field=field, ok=True))
        return outcomes

    def update(self, request: UpdateContactRequest) -> dict:
        with self._lock:
            existing = self.get_contact(request.identifier)
            if existing is None:
                raise ContactNotFoundError(request.identifier)
            outcomes = self.apply_updates(existing.id, request)

        return {
            "success": True,
            "message": f"Updated contact: {request.identifier}",
            "contact_id": existing.id,
            "updated_fields": [o.field for o in outcomes if o.ok],
            "failed_fields": {o.field: o.reason for o in outcomes if not o.ok},
        }

    # ------------------------------------------------------------------
    # recent
    # ------------------------------------------------------------------

    def recent(self, request: RecentRequest) -> dict:
        days_back = clamp(request.days_back, 1, settings.max_days_back)
        limit = clamp(request.limit, 1, settings.max_recent_limit)

        with self._lock:
            output = self._run(RecentScript(days_back=days_back, date_type=request.type))

        rows = []
        for r in decode_record_dicts(output, RECENT_FIELDS):
            rows.append({
                "id": r["id"],
                "name": r["name"],
                "creation_date": parse_iso_date(r["creation_date"]),
                "modification_date": parse_iso_date(r["modification_date"]),
            })

        def sort_key(row: dict) -> datetime:
            if request.type == "created":
                dates = [row["creation_date"]]
            elif request.type == "modified":
                dates = [row["modification_date"]]
            else:
                dates = [row["creation_date"], row["modification_date"]]
            dates = [d for d in dates if d is not None]
            return max(dates) if dates else datetime.min

        rows.sort(key=sort_key, reverse=True)
        contacts = [
            {
                "id": row["id"],
                "name": row["name"],
                "creation_date": row["creation_date"].isoformat() if row["creation_date"] else None,
                "modification_date": row["modification_date"].isoformat() if row["modification_date"] else None,
            }
            for row in rows[:limit]
        ]
        return {
            "success": True,
            "type": request.type,
            "days_back": days_back,
            "count": len(contacts),
            "contacts": contacts,
        }

    # ------------------------------------------------------------------
    # dispatch
    # ------------------------------------------------------------------

    def call(self, operation: str, arguments: Optional[dict] = None) -> dict:
        """Validate raw arguments for an operation and run it."""
        if operation not in OPERATIONS:
            raise ContactValidationError(f"Unknown operation: {operation}")
        model, method_name = OPERATIONS[operation]
        request = validate_request(model, arguments)
        return getattr(self, method_name)(request)


# operation name -> (request model, ContactsDirectory method)
OPERATIONS: dict[str, tuple[type[BaseModel], str]] = {
    "search": (SearchRequest, "search"),
    "fetch": (FetchRequest, "fetch"),
    "create": (CreateContactRequest, "create"),
    "update": (UpdateContactRequest, "update"),
    "recent": (RecentRequest, "recent"),
}


# Singleton directory instance
_directory: Optional[ContactsDirectory] = None


def get_contacts_directory() -> ContactsDirectory:
    """Get or create singleton contacts directory."""
    global _directory
    if _directory is None:
        _directory = ContactsDirectory()
    return _directory


def reset_contacts_directory() -> None:
    """Drop the singleton (for tests)."""
    global _directory
    _directory = None
