"""
Contacts Bridge API Routes Package.

Example:
    from api.routes import contacts_router

    app.include_router(contacts_router)
"""

from api.routes.contacts import router as contacts_router

__all__ = ["contacts_router"]
