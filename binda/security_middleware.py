"""
Security middleware for setting RLS context and enforcing security policies.
"""

import logging
from typing import Callable, Optional

from fastapi import Request, Response
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers to all responses.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response


def _is_postgres(db: Session) -> bool:
    return db.get_bind().dialect.name == "postgresql"


def set_rls_context(db: Session, tenant_id: Optional[str], user_id: Optional[str] = None) -> None:
    """
    Push the tenant (and acting user) into the database session so RLS policies
    keyed on ``current_setting('app.current_tenant_id')`` can filter rows.

    Application code never relies on this alone; every query is also filtered by
    the TenantContext it was handed. No-op on databases without ``set_config``.
    """
    if not _is_postgres(db):
        return

    try:
        db.execute(
            text("SELECT set_config('app.current_tenant_id', :tenant_id, false)"),
            {"tenant_id": tenant_id or ""},
        )
        db.execute(
            text("SELECT set_config('app.current_user_id', :user_id, false)"),
            {"user_id": user_id or ""},
        )
        logger.debug(f"RLS context set for tenant_id={tenant_id} user_id={user_id}")
    except Exception as e:
        logger.error(f"Failed to set RLS context for tenant_id={tenant_id}: {e}")
        raise


def clear_rls_context(db: Session) -> None:
    """
    Reset the RLS settings before the connection goes back to the pool.

    ``set_config(..., false)`` is session-level on Postgres, so without this the next
    request to check out the connection would inherit the previous caller's tenant.
    A connection that cannot be reset is invalidated instead of being reused.
    """
    if not _is_postgres(db):
        return

    try:
        # Uncommitted work is discarded on close anyway; an aborted transaction would reject the reset
        db.rollback()
        db.execute(text("SELECT set_config('app.current_tenant_id', '', false)"))
        db.execute(text("SELECT set_config('app.current_user_id', '', false)"))
        db.commit()
        logger.debug("RLS context cleared")
    except Exception as e:
        logger.error(f"Failed to clear RLS context, discarding connection: {e}")
        db.invalidate()


def bypass_rls(db: Session) -> None:
    """
    Bypass RLS for the current transaction. Only for system jobs authenticated
    with the cron secret or service-role key (expired lock cleanup).
    """
    if not _is_postgres(db):
        return

    try:
        db.execute(text("SET LOCAL row_security = off"))
        logger.warning("RLS bypassed for this transaction")
    except Exception as e:
        logger.error(f"Failed to bypass RLS: {e}")
        raise
