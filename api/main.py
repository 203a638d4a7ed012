"""
Contacts Bridge - HTTP API for macOS Contacts
FastAPI Application Entry Point

Run with:
    uvicorn api.main:app --host 127.0.0.1 --port 8000

The MCP server (mcp_server.py) talks to Contacts directly and does not need
this API running.
"""
# Load environment variables from .env file first, before any imports
from dotenv import load_dotenv
load_dotenv()

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.routes import contacts
from config.settings import settings

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Contacts Bridge",
    description="Search, fetch, create, update and list recent macOS contacts via AppleScript",
    version="1.0.0",
)

app.include_router(contacts.router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Convert validation errors to 400 with clear messages."""
    errors = exc.errors()

    # Sanitize errors for JSON serialization (convert bytes to string)
    sanitized_errors = []
    for error in errors:
        sanitized = dict(error)
        if "input" in sanitized and isinstance(sanitized["input"], bytes):
            sanitized["input"] = sanitized["input"].decode("utf-8", errors="replace")
        sanitized.pop("ctx", None)
        sanitized_errors.append(sanitized)

    return JSONResponse(status_code=400, content={"detail": sanitized_errors})


@app.get("/health")
async def health_check():
    """Basic liveness check. Does not touch Contacts."""
    return {"status": "healthy", "osascript": settings.osascript_path}


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    uvicorn.run(app, host=settings.host, port=settings.port)
