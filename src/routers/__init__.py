"""
Routers Package

Contains FastAPI router modules for:
- Session issuance (/sessionsignature)
- Signed wiki page endpoints (/page, /page/{title})
"""

from routers.page_router import page_router as page_router
from routers.session_router import session_router as session_router

__all__ = ["page_router", "session_router"]
