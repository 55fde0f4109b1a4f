from fastapi import Header, Request

from docvault.audit_trail.service import Actor
from docvault.config import settings
from docvault.database import get_db
from docvault.document_store.service import DocumentStore
from docvault.middleware.logging import client_ip
from docvault.search_index.service import SearchIndex

# Re-export get_db for use in Depends()
get_db = get_db


def get_document_store() -> DocumentStore:
    return DocumentStore(settings)


def get_search_index() -> SearchIndex:
    return SearchIndex(settings)


def _actor(request: Request, user_id: str, user_role: str | None, session_id: str | None) -> Actor:
    return Actor(
        user_id=user_id,
        user_role=user_role,
        session_id=session_id,
        ip_address=getattr(request.state, "client_ip", None) or client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


def get_actor(
    request: Request,
    x_user_id: str = Header("system"),
    x_user_role: str | None = Header(None),
    x_session_id: str | None = Header(None),
) -> Actor:
    """Identity for writes; authentication happens upstream."""
    return _actor(request, x_user_id, x_user_role, x_session_id)


def get_reader(
    request: Request,
    x_user_id: str = Header("anonymous"),
    x_user_role: str | None = Header(None),
    x_session_id: str | None = Header(None),
) -> Actor:
    """Identity for view/download access logging."""
    return _actor(request, x_user_id, x_user_role, x_session_id)
