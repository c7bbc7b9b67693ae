from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import select
from sqlalchemy.orm import Session

from accessmap.core.deps import get_current_session
from accessmap.core.security import create_access_token, get_password_hash, verify_password
from accessmap.db.session import get_db
from accessmap.models.users import AuthSession, UserAuth, UserProfile
from accessmap.schemas.auth import RegisterRequest, TokenResponse

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def _start_session(db: Session, user: UserAuth) -> TokenResponse:
    auth_session = AuthSession(user_id=user.id)
    db.add(auth_session)
    db.commit()
    db.refresh(auth_session)
    return TokenResponse(access_token=create_access_token(user.id, session_id=auth_session.id))


@router.post("/register", response_model=TokenResponse, status_code=201)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> TokenResponse:
    existing = db.scalar(select(UserAuth).where(UserAuth.email == payload.email))
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    user = UserAuth(email=payload.email, password_hash=get_password_hash(payload.password))
    user.profile = UserProfile(display_name=payload.display_name.strip())

    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("Account created: %s", user.id)
    return _start_session(db, user)


@router.post("/token", response_model=TokenResponse)
def login(form: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)) -> TokenResponse:
    user = db.scalar(select(UserAuth).where(UserAuth.email == form.username))
    if not user or not verify_password(form.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User inactive")

    return _start_session(db, user)


@router.post("/logout", status_code=204)
def logout(
    auth_session: AuthSession = Depends(get_current_session),
    db: Session = Depends(get_db),
) -> Response:
    auth_session.revoked_at = datetime.utcnow()
    db.add(auth_session)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
