"""
Contacts API routes.

Thin HTTP layer over ContactsDirectory. Static paths are declared before
/{identifier} so they are not captured by it.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Body, HTTPException, Query
from pydantic import BaseModel

from api.services.contact_models import (
    ContactUrl,
    CreateContactRequest,
    FetchRequest,
    RecentRequest,
    RecentType,
    SearchRequest,
    UpdateContactRequest,
)
from api.services.contacts_directory import get_contacts_directory, validate_request
from api.services.errors import (
    ContactNotFoundError,
    ContactValidationError,
    ScriptExecutionError,
    ScriptTimeoutError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/contacts", tags=["contacts"])


class ContactPatch(BaseModel):
    """PATCH body: UpdateContactRequest without the identifier (it is in the path)."""
    name: Optional[str] = None
    organization: Optional[str] = None
    job_title: Optional[str] = None
    emails: Optional[list[str]] = None
    phones: Optional[list[str]] = None
    urls: Optional[list[ContactUrl]] = None
    note: Optional[str] = None


def _raise_http(e: Exception):
    """Map bridge errors to HTTP errors."""
    if isinstance(e, ContactValidationError):
        raise HTTPException(status_code=400, detail=e.message) from e
    if isinstance(e, ContactNotFoundError):
        raise HTTPException(status_code=404, detail=str(e)) from e
    if isinstance(e, ScriptTimeoutError):
        raise HTTPException(status_code=504, detail=e.message) from e
    if isinstance(e, ScriptExecutionError):
        raise HTTPException(status_code=502, detail=e.message) from e
    raise e


@router.get("/search")
def search_contacts(
    query: Optional[str] = Query(default=None, description="Name, organization, or note substring"),
    limit: int = Query(default=20, ge=1),
):
    """Search contacts by name, organization, or note."""
    try:
        return get_contacts_directory().search(SearchRequest(query=query, limit=limit))
    except ScriptExecutionError as e:
        _raise_http(e)


@router.get("/recent")
def recent_contacts(
    days_back: int = Query(default=30, ge=1),
    type: RecentType = Query(default="modified"),
    limit: int = Query(default=20, ge=1),
):
    """Contacts created and/or modified in the last days_back days."""
    try:
        return get_contacts_directory().recent(
            RecentRequest(days_back=days_back, type=type, limit=limit)
        )
    except ScriptExecutionError as e:
        _raise_http(e)


@router.get("/{identifier}")
def get_contact(identifier: str):
    """Get full contact details by id or exact name."""
    try:
        request = validate_request(FetchRequest, {"identifier": identifier})
        result = get_contacts_directory().fetch(request)
    except (ContactValidationError, ScriptExecutionError) as e:
        _raise_http(e)

    if not result["success"]:
        raise HTTPException(status_code=404, detail=result["message"])
    return result


@router.post("")
def create_contact(request: CreateContactRequest):
    """Create a new contact."""
    try:
        return get_contacts_directory().create(request)
    except ScriptExecutionError as e:
        _raise_http(e)


@router.patch("/{identifier}")
def update_contact(identifier: str, patch: ContactPatch = Body(...)):
    """Update the fields present in the body; collections are replaced, not merged."""
    payload = patch.model_dump(exclude_unset=True)
    payload["identifier"] = identifier
    try:
        request = validate_request(UpdateContactRequest, payload)
        return get_contacts_directory().update(request)
    except (ContactValidationError, ContactNotFoundError, ScriptExecutionError) as e:
        _raise_http(e)
