"""
Error types for the Contacts scripting bridge.

Validation and not-found errors are user-facing and get turned into
structured failure payloads. Execution errors wrap osascript diagnostics
verbatim and are converted to an error message at the outermost boundary.
"""
from typing import Optional


class ContactsError(Exception):
    """Base class for all Contacts bridge errors."""


class ContactValidationError(ContactsError):
    """Raised when a request is malformed, before any script is built."""

    def __init__(self, message: str, errors: Optional[list] = None):
        self.message = message
        self.errors = errors or []
        super().__init__(message)


class ContactNotFoundError(ContactsError):
    """Raised when an identifier resolves to no contact by id or by name."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Contact not found: {identifier}")


class ScriptExecutionError(ContactsError):
    """Raised when osascript cannot be started or exits non-zero."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        self.message = message
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class ScriptTimeoutError(ScriptExecutionError):
    """Raised when osascript does not finish within the configured timeout."""

    def __init__(self, timeout: float, stderr: str = ""):
        self.timeout = timeout
        super().__init__(
            f"AppleScript execution timed out after {timeout:g}s",
            returncode=None,
            stderr=stderr,
        )
