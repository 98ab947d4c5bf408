import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .config import settings
from .database import User, get_db
from .errors import MissingAuthContextError
from .models import AuthenticatedUser, TokenData

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
COOKIE_NAME = "access_token"

# Password hashing
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# JWT token scheme; the cookie is accepted as a fallback for the web app
security = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(
    username: str, device_id: str, expires_delta: Optional[timedelta] = None
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = {"sub": username, "did": device_id, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> TokenData:
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    return TokenData(username=payload.get("sub"), device_id=payload.get("did"))


def authenticate(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> AuthenticatedUser:
    """Validate the caller and put the user on the request context.

    Routers mount this as a dependency so it runs before any handler.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = credentials.credentials if credentials else request.cookies.get(COOKIE_NAME)
    if not token:
        raise credentials_exception

    try:
        token_data = decode_access_token(token)
    except JWTError:
        raise credentials_exception
    if token_data.username is None:
        raise credentials_exception

    user = db.query(User).filter(User.username == token_data.username).first()
    if user is None or not user.is_active:
        raise credentials_exception

    current = AuthenticatedUser(
        user_id=user.id,
        username=user.username,
        device_id=token_data.device_id or None,
    )
    request.state.user = current
    return current


def get_authenticated_user(request: Request) -> AuthenticatedUser:
    """Read back what ``authenticate`` stored; its absence is a server bug."""
    user = getattr(request.state, "user", None)
    if not isinstance(user, AuthenticatedUser):
        logger.error(f"No authenticated user on request context for {request.url.path}")
        raise MissingAuthContextError()
    return user
