import logging
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..auth import COOKIE_NAME, create_access_token
from ..config import settings
from ..database import get_db
from ..models import Token, UserCreate, UserLogin, UserResponse
from ..services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(user: UserCreate, db: Session = Depends(get_db)):
    """Create an account; its history sequences start at zero."""
    return UserService(db).register(
        username=user.username,
        email=user.email,
        password=user.password,
        full_name=user.full_name,
    )


@router.post("/authenticate", response_model=Token)
def authenticate(credentials: UserLogin, db: Session = Depends(get_db)):
    user = UserService(db).authenticate(credentials.username, credentials.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Every session belongs to a device; one is minted when the client has none
    device_id = credentials.device_id or uuid4().hex
    access_token = create_access_token(user.username, device_id)
    logger.info(f"User {user.username} authenticated on device {device_id}")

    token = Token(access_token=access_token, token_type="bearer", device_id=device_id)
    response = JSONResponse(content=token.model_dump())
    response.set_cookie(
        key=COOKIE_NAME,
        value=access_token,
        httponly=True,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return response


@router.post("/logout")
def logout():
    response = JSONResponse(content={"status": "ok"})
    response.delete_cookie(COOKIE_NAME)
    return response
