"""FastAPI dependencies shared by the Projectflow routers.

Authentication is handled upstream of this service; the authenticated
user's id arrives in a request header (``X-User-ID`` by default, see
``WebConfig.actor_header``) and is treated as the acting user.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, Request
from fastapi import status as http_status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from projectflow.lifecycle.engine import ProjectLifecycleEngine
from projectflow.logging import bind_actor_context, get_logger
from projectflow.notifications import WebhookNotifier

logger = get_logger(__name__)


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Dependency that retrieves session factory from app state."""
    return request.app.state.session_factory  # type: ignore[no-any-return]


def get_notifier(request: Request) -> WebhookNotifier:
    """Dependency that retrieves the notification webhook client from app state."""
    return request.app.state.notifier  # type: ignore[no-any-return]


def get_lifecycle_engine(request: Request) -> ProjectLifecycleEngine:
    """Dependency that retrieves the project lifecycle engine from app state."""
    return request.app.state.lifecycle_engine  # type: ignore[no-any-return]


def get_actor_id(request: Request) -> UUID:
    """Dependency resolving the acting user's id from the actor header.

    Raises:
        HTTPException: 401 if the header is missing or not a UUID
    """
    header = request.app.state.config.web.actor_header
    raw_value = request.headers.get(header)
    if raw_value is None:
        logger.warning("actor_header_missing", header=header)
        raise HTTPException(
            status_code=http_status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {header} header",
        )

    try:
        actor_id = UUID(raw_value)
    except ValueError:
        logger.warning("actor_header_invalid", header=header)
        raise HTTPException(
            status_code=http_status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid {header} header",
        ) from None

    bind_actor_context(str(actor_id))
    return actor_id
