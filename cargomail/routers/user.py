from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import authenticate, get_authenticated_user
from ..database import User, get_db
from ..errors import NotFoundError
from ..models import AuthenticatedUser, ProfileUpdate, UserResponse
from ..services.user_service import UserService

router = APIRouter(
    prefix="/user", tags=["user"], dependencies=[Depends(authenticate)]
)


@router.get("/profile", response_model=UserResponse)
def get_profile(
    current: AuthenticatedUser = Depends(get_authenticated_user),
    db: Session = Depends(get_db),
):
    user = db.query(User).filter(User.id == current.user_id).first()
    if user is None:
        raise NotFoundError("User not found")
    return user


@router.patch("/profile", response_model=UserResponse)
def update_profile(
    payload: ProfileUpdate,
    current: AuthenticatedUser = Depends(get_authenticated_user),
    db: Session = Depends(get_db),
):
    return UserService(db).update_profile(
        current.user_id, payload.model_dump(exclude_unset=True)
    )
