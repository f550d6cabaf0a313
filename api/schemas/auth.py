# api/schemas/auth.py
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from api.schemas.user import User


class SignUp(BaseModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1, max_length=255)


class SignIn(BaseModel):
    email: str
    password: str


class PasswordUpdate(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6)


class Session(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: User

    model_config = ConfigDict(from_attributes=True)
