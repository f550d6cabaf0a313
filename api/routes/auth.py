# api/routes/auth.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.sa.database import get_db
from core.sa.models import User as UserModel
from core.services.auth import AuthService
from api.deps import get_current_user, get_token
from api.schemas.auth import SignUp, SignIn, PasswordUpdate, Session as SessionSchema
from api.schemas.user import User

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=SessionSchema, status_code=status.HTTP_201_CREATED)
def sign_up(data: SignUp, db: Session = Depends(get_db)):
    """Create an account and return a session for it."""
    return AuthService(db).sign_up(data.email, data.password, data.name)


@router.post("/signin", response_model=SessionSchema)
def sign_in(data: SignIn, db: Session = Depends(get_db)):
    return AuthService(db).sign_in(data.email, data.password)


@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
def sign_out(
    token: str = Depends(get_token),
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    AuthService(db).sign_out(token)


@router.get("/me", response_model=User)
def get_me(user: UserModel = Depends(get_current_user)):
    return user


@router.put("/password", status_code=status.HTTP_204_NO_CONTENT)
def update_password(
    data: PasswordUpdate,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    AuthService(db).update_password(user, data.current_password, data.new_password)
