#!/usr/bin/env python3
"""
MCP Server for macOS Contacts.

Exposes search, fetch, create, update and recent-contacts as MCP tools over
stdio (line-delimited JSON-RPC 2.0). Each tool call is translated into
AppleScript and run against Contacts.app.

Usage:
    python mcp_server.py

Register with an MCP client:
    claude mcp add contacts -s user -- python /path/to/mcp_server.py
"""
import json
import logging
import sys
from typing import Any, Optional

from api.services.contacts_directory import ContactsDirectory, get_contacts_directory
from api.services.errors import ContactNotFoundError, ContactValidationError, ContactsError
from config.settings import settings

# Configure logging to stderr (stdout is for MCP protocol)
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(message)s",
    stream=sys.stderr
)
logger = logging.getLogger(__name__)

SERVER_INFO = {"name": "macos-contacts", "version": "1.0.0"}
PROTOCOL_VERSION = "2024-11-05"

_URL_ITEMS = {
    "type": "object",
    "properties": {
        "label": {"type": "string"},
        "value": {"type": "string"},
    },
    "required": ["label", "value"],
}

# tool name -> ContactsDirectory operation
TOOL_OPERATIONS = {
    "search_contacts": "search",
    "get_contact": "fetch",
    "create_contact": "create",
    "update_contact": "update",
    "get_recent_contacts": "recent",
}

TOOLS = [
    {
        "name": "search_contacts",
        "description": "Search for contacts by name, organization, or notes. Without a query, returns the first few contacts in the address book.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search term to match against name, organization, or notes",
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum number of results to return",
                    "default": 20,
                },
            },
        },
    },
    {
        "name": "get_contact",
        "description": "Get full contact details (emails, phones, URLs, note, dates) by unique ID or exact name.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "identifier": {
                    "type": "string",
                    "description": "Contact name or unique ID",
                },
            },
            "required": ["identifier"],
        },
    },
    {
        "name": "create_contact",
        "description": "Create a new contact. The name is split into first name (first word) and last name (the rest).",
        "inputSchema": {
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Full name of the contact"},
                "organization": {"type": "string", "description": "Organization or company name"},
                "job_title": {"type": "string", "description": "Job title or position"},
                "emails": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Email addresses (labeled home, work, email3, ... by position)",
                },
                "phones": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Phone numbers (labeled home, work, phone3, ... by position)",
                },
                "urls": {
                    "type": "array",
                    "items": _URL_ITEMS,
                    "description": "URLs (social media, websites, etc.) with labels",
                },
                "note": {"type": "string", "description": "Notes about the contact"},
            },
            "required": ["name"],
        },
    },
    {
        "name": "update_contact",
        "description": "Update an existing contact. Only the fields you pass are changed; emails, phones and urls replace the existing lists.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "identifier": {"type": "string", "description": "Contact name or unique ID"},
                "name": {"type": "string", "description": "Updated full name"},
                "organization": {"type": "string", "description": "Updated organization or company name"},
                "job_title": {"type": "string", "description": "Updated job title or position"},
                "emails": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Updated email addresses (replaces all existing)",
                },
                "phones": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Updated phone numbers (replaces all existing)",
                },
                "urls": {
                    "type": "array",
                    "items": _URL_ITEMS,
                    "description": "Updated URLs (replaces all existing)",
                },
                "note": {"type": "string", "description": "Updated notes"},
            },
            "required": ["identifier"],
        },
    },
    {
        "name": "get_recent_contacts",
        "description": "Get contacts created or modified within the last N days, newest first.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "days_back": {
                    "type": "integer",
                    "description": "Number of days back to search",
                    "default": 30,
                },
                "type": {
                    "type": "string",
                    "enum": ["created", "modified", "both"],
                    "description": "Type of date to filter by",
                    "default": "modified",
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum number of results to return",
                    "default": 20,
                },
            },
        },
    },
]


class ContactsMCPServer:
    """MCP Server exposing Contacts directory operations as tools."""

    def __init__(self, directory: Optional[ContactsDirectory] = None):
        self.directory = directory or get_contacts_directory()
        self.tools: list[dict] = TOOLS

    def call_tool(self, tool_name: str, arguments: Optional[dict]) -> dict:
        """
        Run a tool and build the MCP tools/call result.

        Validation failures come back as a structured {"success": false}
        payload. Not-found on update, script failures and unknown tools come
        back as an error message with isError set.
        """
        try:
            operation = TOOL_OPERATIONS.get(tool_name)
            if operation is None:
                raise ContactsError(f"Unknown tool: {tool_name}")
            result = self.directory.call(operation, arguments)
        except ContactValidationError as e:
            logger.info(f"Rejected {tool_name} call: {e.message}")
            result = {"success": False, "message": e.message}
        except ContactNotFoundError as e:
            return self._error_result(str(e))
        except ContactsError as e:
            logger.error(f"Error executing tool {tool_name}: {e}")
            return self._error_result(str(e))

        return {"content": [{"type": "text", "text": self._format_response(result)}]}

    def _error_result(self, message: str) -> dict:
        return {
            "content": [{"type": "text", "text": f"Error: {message}"}],
            "isError": True,
        }

    def _format_response(self, data: Any) -> str:
        return json.dumps(data, indent=2, ensure_ascii=False)

    def handle_request(self, request: dict) -> Optional[dict]:
        """Handle one JSON-RPC message. Returns the response, or None for notifications."""
        method = request.get("method")
        request_id = request.get("id")

        if method == "initialize":
            return make_response({
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": SERVER_INFO,
            }, request_id)

        if method == "notifications/initialized":
            return None  # No response needed

        if method == "tools/list":
            return make_response({"tools": self.tools}, request_id)

        if method == "tools/call":
            params = request.get("params", {}) or {}
            result = self.call_tool(params.get("name"), params.get("arguments", {}))
            return make_response(result, request_id)

        if request_id is not None:
            return make_error(f"Unknown method: {method}", request_id, code=-32601)
        return None


def make_response(response: dict, request_id: str | int) -> dict:
    return {"jsonrpc": "2.0", "id": request_id, "result": response}


def make_error(message: str, request_id: str | int, code: int = -32000) -> dict:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


def send(message: dict):
    """Write one JSON-RPC message to stdout."""
    print(json.dumps(message), flush=True)


def main(server: Optional[ContactsMCPServer] = None):
    """Main MCP server loop."""
    server = server or ContactsMCPServer()
    logger.info("macOS Contacts MCP Server running on stdio")

    for line in sys.stdin:
        if not line.strip():
            continue

        request_id = None
        try:
            request = json.loads(line.strip())
            request_id = request.get("id")
            response = server.handle_request(request)
            if response is not None:
                send(response)

        except json.JSONDecodeError as e:
            logger.error(f"JSON decode error: {e}")
        except Exception as e:
            logger.error(f"Error handling request: {e}")
            if request_id is not None:
                send(make_error(str(e), request_id))


if __name__ == "__main__":
    main()
