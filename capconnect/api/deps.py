"""
Request dependencies: database session, Supabase-auth token verification
and role gates.
"""

import logging
import uuid
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel
from sqlalchemy.orm import Session

from capconnect.database import crud
from capconnect.database.database import get_db
from capconnect.database.models import Company, User
from capconnect.storage.client import get_supabase, is_configured

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token", auto_error=False)


class AuthUser(BaseModel):
    """The Supabase-auth identity behind a bearer token."""
    id: uuid.UUID
    email: Optional[str] = None


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or missing token",
        headers={"WWW-Authenticate": "Bearer"},
    )


def verify_token(token: str) -> AuthUser:
    """
    Resolve a Supabase access token to its auth user. Any failure on the
    Supabase side is reported as 401.
    """
    try:
        response = get_supabase().auth.get_user(token)
        auth_user = response.user if response else None
    except Exception as e:
        logger.warning("Token verification failed: %s", e)
        auth_user = None

    if auth_user is None:
        raise _unauthorized()
    return AuthUser(id=auth_user.id, email=auth_user.email or None)


def get_auth_user(token: str = Depends(oauth2_scheme)) -> AuthUser:
    return verify_token(token)


def get_current_user(
    auth_user: AuthUser = Depends(get_auth_user),
    db: Session = Depends(get_db),
) -> User:
    user = crud.get_user(db, auth_user.id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="profile_required")
    return user


def _check_role(user: User, role: str) -> User:
    if user.role != role:
        logger.warning("User %s (%s) denied access to %s-only endpoint", user.id, user.role, role)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"This endpoint requires the {role} role",
        )
    return user


def require_role(role: str) -> Callable[..., User]:
    """Dependency factory: the current user, or 403 when the role differs."""

    def _require_role(user: User = Depends(get_current_user)) -> User:
        return _check_role(user, role)

    return _require_role


require_founder = require_role("founder")
require_investor = require_role("investor")


def get_founder_company(
    user: User = Depends(require_founder),
    db: Session = Depends(get_db),
) -> Company:
    company = crud.get_company_for_user(db, user.id)
    if company is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="company_required")
    return company


# ──────────────────────────────────────────────────────────────────────────────
#  Demo-aware variants: `?demo=true` skips auth entirely and yields None
# ──────────────────────────────────────────────────────────────────────────────
def demo_requested(demo: bool = Query(False, description="Return sample data")) -> bool:
    return demo


def require_role_or_demo(
    role: Optional[str] = None,
    demo_when_unconfigured: bool = False,
) -> Callable[..., Optional[User]]:
    """
    Like `require_role`, except that a `?demo=true` request resolves to None
    without reading the token or the database. With `demo_when_unconfigured`
    the same happens while Supabase credentials are missing.
    """

    def _require_role_or_demo(
        demo: bool = Depends(demo_requested),
        token: Optional[str] = Depends(optional_oauth2_scheme),
        db: Session = Depends(get_db),
    ) -> Optional[User]:
        if demo or (demo_when_unconfigured and not is_configured()):
            return None
        if not token:
            raise _unauthorized()
        user = get_current_user(verify_token(token), db)
        return _check_role(user, role) if role else user

    return _require_role_or_demo


founder_or_demo = require_role_or_demo("founder")
investor_or_demo = require_role_or_demo("investor")
notification_reader = require_role_or_demo(demo_when_unconfigured=True)
