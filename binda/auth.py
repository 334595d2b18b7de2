import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .config import AUTH_JWT_ALGORITHM, AUTH_JWT_AUDIENCE, AUTH_JWT_SECRET
from .database import get_db
from .models import Tenant, UserProfile
from .security_middleware import set_rls_context
from .tenancy import TenantContext

logger = logging.getLogger(__name__)

# Missing headers are reported as 401 by get_current_user, not 403 by HTTPBearer
security = HTTPBearer(auto_error=False)


def verify_access_token(token: str) -> dict:
    """
    Verify an access token issued by the auth provider.

    Tokens are HS256 JWTs signed with the project secret; signature, expiry and
    audience are all checked.
    """
    if len(token.split(".")) != 3:
        raise HTTPException(status_code=401, detail="Invalid token format. Expected a valid JWT token.")

    try:
        return jwt.decode(
            token,
            AUTH_JWT_SECRET,
            algorithms=[AUTH_JWT_ALGORITHM],
            audience=AUTH_JWT_AUDIENCE,
        )
    except ExpiredSignatureError as e:
        raise HTTPException(
            status_code=401,
            detail="Token has expired. Please refresh your session.",
            headers={"X-Token-Expired": "true"},
        ) from e
    except JWTError as e:
        logger.warning(f"⚠️ Token verification failed: {e}")
        raise HTTPException(status_code=401, detail="Invalid authentication token") from e


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> UserProfile:
    """Resolve the caller's profile from the bearer token, creating it on first sight"""

    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    claims = verify_access_token(credentials.credentials)
    subject = claims.get("sub")
    if not subject:
        logger.error(f"❌ Token missing subject claim. Available claims: {list(claims.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    user = db.query(UserProfile).filter(UserProfile.id == subject).first()

    if not user:
        # First authenticated request after sign-up; tenant is attached at onboarding
        user = UserProfile(
            id=subject,
            email=claims.get("email"),
            name=(claims.get("user_metadata") or {}).get("full_name") or claims.get("name"),
            role="customer",
        )
        db.add(user)
        try:
            db.commit()
            db.refresh(user)
            logger.info(f"🆕 Created profile for user {subject}")
        except IntegrityError:
            # Concurrent first request created it
            db.rollback()
            user = db.query(UserProfile).filter(UserProfile.id == subject).first()
            if not user:
                raise

    set_rls_context(db, user.tenant_id, user.id)
    return user


async def get_tenant_context(
    user: UserProfile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TenantContext:
    """TenantContext for a dashboard request; the tenant comes from the caller's profile"""
    if not user.tenant_id:
        raise HTTPException(status_code=403, detail="No business is associated with this account")

    tenant = db.query(Tenant).filter(Tenant.id == user.tenant_id).first()
    if not tenant:
        logger.error(f"❌ User {user.id} references missing tenant {user.tenant_id}")
        raise HTTPException(status_code=403, detail="No business is associated with this account")

    return TenantContext(
        tenant_id=tenant.id,
        timezone=tenant.timezone,
        currency=tenant.currency,
        user_id=user.id,
        role=user.role,
    )


async def get_optional_tenant_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[TenantContext]:
    """
    TenantContext for routes shared by the dashboard and the public booking flow.
    Anonymous callers get None; a presented token must still be valid.
    """
    if not credentials:
        return None

    user = await get_current_user(credentials, db)
    if not user.tenant_id:
        return None
    return await get_tenant_context(user, db)
