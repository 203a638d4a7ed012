"""
Contacts Bridge Configuration Settings
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Server (HTTP surface)
    port: int = Field(default=8000, alias="CONTACTS_PORT")
    host: str = Field(default="127.0.0.1", alias="CONTACTS_HOST")

    log_level: str = Field(
        default="INFO",
        alias="CONTACTS_LOG_LEVEL",
        description="Root log level for the MCP server and API"
    )

    # ==========================================================================
    # SCRIPT EXECUTION
    # ==========================================================================
    # Contacts.app can stall on a permission prompt, so every osascript run is
    # bounded. There are no retries: most failures are syntax or permission
    # errors that would fail the same way again.
    # ==========================================================================

    osascript_path: str = Field(
        default="osascript",
        alias="CONTACTS_OSASCRIPT",
        description="Path to the osascript binary"
    )
    script_timeout_seconds: float = Field(
        default=30.0,
        alias="CONTACTS_SCRIPT_TIMEOUT",
        description="Max runtime for a single AppleScript invocation (seconds)"
    )

    # Row bounds, clamped before they are embedded in a script
    max_search_limit: int = Field(default=50, alias="CONTACTS_MAX_SEARCH_LIMIT")
    browse_window: int = Field(
        default=10,
        alias="CONTACTS_BROWSE_WINDOW",
        description="People enumerated when search has no query"
    )
    max_recent_limit: int = Field(default=20, alias="CONTACTS_MAX_RECENT_LIMIT")
    recent_scan_limit: int = Field(
        default=200,
        alias="CONTACTS_RECENT_SCAN_LIMIT",
        description="Matches read back from Contacts before sorting recent results"
    )
    max_days_back: int = Field(default=3650, alias="CONTACTS_MAX_DAYS_BACK")


settings = Settings()
