import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from capconnect.api.deps import AuthUser, get_auth_user, get_current_user
from capconnect.api.schemas import ProfileIn, UserOut
from capconnect.database import crud
from capconnect.database.database import get_db
from capconnect.database.models import User
from capconnect.storage.client import get_supabase

logger = logging.getLogger(__name__)

router = APIRouter()
auth_router = APIRouter()

DASHBOARD_PATHS = {
    "founder": "/dashboard/founder",
    "investor": "/dashboard/investor",
}


def _origin(request: Request) -> str:
    return str(request.base_url).rstrip("/")


# ──────────────────────────────────────────────────────────────────────────────
#  OAuth / magic-link callback
# ──────────────────────────────────────────────────────────────────────────────
@auth_router.get("/auth/callback")
def auth_callback(
    request: Request,
    code: str = Query(None),
    db: Session = Depends(get_db),
):
    """
    Exchange the Supabase auth code for a session, then send new users to
    role selection and returning users to their dashboard.
    """
    origin = _origin(request)
    if not code:
        return RedirectResponse(f"{origin}/auth/auth-code-error", status_code=status.HTTP_302_FOUND)

    try:
        session = get_supabase().auth.exchange_code_for_session({"auth_code": code})
        auth_user = session.user if session else None
    except Exception as e:
        logger.warning("Auth code exchange failed: %s", e)
        auth_user = None

    if auth_user is None:
        return RedirectResponse(f"{origin}/auth/auth-code-error", status_code=status.HTTP_302_FOUND)

    existing = crud.get_user(db, auth_user.id)
    if existing is None:
        target = "/auth/role-select"
    else:
        target = DASHBOARD_PATHS.get(existing.role, "/")
    logger.info("Auth callback for %s redirecting to %s", auth_user.id, target)
    return RedirectResponse(f"{origin}{target}", status_code=status.HTTP_302_FOUND)


# ──────────────────────────────────────────────────────────────────────────────
#  Profile (role selection)
# ──────────────────────────────────────────────────────────────────────────────
@router.post("/users/profile", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_profile(
    profile: ProfileIn,
    auth_user: AuthUser = Depends(get_auth_user),
    db: Session = Depends(get_db),
) -> UserOut:
    """Create the profile row for a freshly signed-in user."""
    if crud.get_user(db, auth_user.id) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Profile already exists")

    user = crud.create_user(db, auth_user.id, auth_user.email, profile.model_dump())
    logger.info("Created %s profile for user %s", user.role, user.id)
    return UserOut.model_validate(user)


@router.get("/users/me", response_model=UserOut)
def read_me(user: User = Depends(get_current_user)) -> UserOut:
    return UserOut.model_validate(user)
