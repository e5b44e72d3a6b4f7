"""Reusable FastAPI dependencies for auth and database access."""
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from .auth import decode_token
from .database import get_db
from .models import User
from .schemas import Actor

oauth_scheme = OAuth2PasswordBearer(tokenUrl="/users/login")


def get_current_user(token: str = Depends(oauth_scheme), db: Session = Depends(get_db)) -> User:
    payload = decode_token(token)
    subject: str | None = payload.get("sub")
    if subject is None or not subject.isdigit():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing subject in token")
    user = db.get(User, int(subject))
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def get_current_actor(current_user: User = Depends(get_current_user)) -> Actor:
    """Resolve the caller to the (id, role) pair the booking workflow consumes."""

    return Actor(actor_id=current_user.id, actor_role=current_user.role)
