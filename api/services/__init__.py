"""
Contacts Bridge Services Package.

Example:
    from api.services import get_contacts_directory, SearchRequest

    directory = get_contacts_directory()
    directory.search(SearchRequest(query="Lovelace"))

Key service modules:
- applescript: escaping and per-operation script builders
- script_executor: osascript runner
- result_parser: text wire format shared with the scripts
- contact_models: ContactRecord and request models
- contacts_directory: search/fetch/create/update/recent
- errors: error taxonomy
"""

from api.services.contact_models import (
    ContactRecord,
    ContactUrl,
    CreateContactRequest,
    FetchRequest,
    RecentRequest,
    SearchRequest,
    UpdateContactRequest,
)
from api.services.contacts_directory import (
    ContactsDirectory,
    get_contacts_directory,
    reset_contacts_directory,
)
from api.services.errors import (
    ContactNotFoundError,
    ContactValidationError,
    ContactsError,
    ScriptExecutionError,
    ScriptTimeoutError,
)
