from pydantic import BaseModel, EmailStr
from typing import Literal, Optional

from app.models.enums import UserRole


class UserBase(BaseModel):
    name: str
    email: EmailStr
    phone: Optional[str] = None

    model_config = {"from_attributes": True}


class UserCreate(UserBase):
    password: str
    role: Literal["customer", "venue_owner"] = "customer"


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserOut(UserBase):
    id: int
    role: UserRole


class AccountDelete(BaseModel):
    password: Optional[str] = None
