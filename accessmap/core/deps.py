from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from accessmap.core.errors import AuthRequiredError
from accessmap.core.security import decode_access_token
from accessmap.db.session import get_db
from accessmap.models.enums import UserRole
from accessmap.models.users import AuthSession, UserAuth

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def get_current_session(
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> AuthSession:
    if not token:
        raise AuthRequiredError()
    try:
        payload = decode_access_token(token)
    except JWTError:
        raise AuthRequiredError("Invalid token")

    user_id: str | None = payload.get("sub")
    session_id: str | None = payload.get("sid")
    if not user_id or not session_id:
        raise AuthRequiredError("Invalid token")

    auth_session = db.get(AuthSession, session_id)
    if not auth_session or not auth_session.is_active or auth_session.user_id != user_id:
        raise AuthRequiredError("Session expired, please sign in again")
    if not auth_session.user.is_active:
        raise AuthRequiredError("User inactive")
    return auth_session


def get_current_user(auth_session: AuthSession = Depends(get_current_session)) -> UserAuth:
    return auth_session.user


def require_role(*allowed: UserRole):
    allowed_values = {r.value for r in allowed}

    def _dep(user: UserAuth = Depends(get_current_user)) -> UserAuth:
        if user.role not in allowed_values:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return user

    return _dep
